"""
금액 변환 유틸리티

모든 금액은 Decimal로 다룬다. float 입력은 str을 거쳐 변환하여
이진 부동소수점 오차가 원장에 섞이지 않도록 한다.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal | None:
    """임의 입력을 Decimal로 변환

    Args:
        value: int, float, str, Decimal 등

    Returns:
        변환된 Decimal (변환 불가 시 None). NaN/Infinity도 그대로 반환하므로
        유한성 검사는 호출자가 수행한다.

    Example:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal("abc") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return value

    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None


def to_finite_decimal(value: Any) -> Decimal | None:
    """유한한 Decimal로 변환 (NaN, Infinity, 변환 불가 → None)"""
    amount = to_decimal(value)
    if amount is None or not amount.is_finite():
        return None
    return amount


def format_amount(amount: Decimal) -> str:
    """표시용 금액 문자열 (천 단위 구분, 소수점은 있는 경우만)

    Example:
        >>> format_amount(Decimal("1500"))
        '1,500'
        >>> format_amount(Decimal("-10.50"))
        '-10.50'
    """
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,}"
