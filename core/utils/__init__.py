"""
유틸리티 패키지

금액 변환, idempotency key 생성, 타임존 처리 등 공통 유틸리티
"""

from core.utils.amounts import ZERO, format_amount, to_decimal, to_finite_decimal
from core.utils.idempotency import make_idempotency_key, parse_idempotency_key
from core.utils.timezone import (
    KST,
    ensure_utc,
    format_local,
    now_utc,
    parse_iso_datetime,
    to_local,
    tz_from_offset,
)

__all__ = [
    "ZERO",
    "format_amount",
    "to_decimal",
    "to_finite_decimal",
    "make_idempotency_key",
    "parse_idempotency_key",
    "KST",
    "ensure_utc",
    "format_local",
    "now_utc",
    "parse_iso_datetime",
    "to_local",
    "tz_from_offset",
]
