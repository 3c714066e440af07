"""
원격 저장소 응답 -> 도메인 모델 변환

API 라우트는 camelCase, 테이블 행은 snake_case로 내려오므로 둘 다 허용한다.
모든 금액은 Decimal로 변환하며, 알 수 없는 유형/상태는 거부한다.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from adapters.http.errors import PayloadError
from core.domain.models import Movement, Session, UserRef
from core.types import MovementType, SessionStatus
from core.utils.amounts import to_finite_decimal
from core.utils.timezone import parse_iso_datetime


def _pick(data: dict[str, Any], *keys: str) -> Any:
    """여러 키 후보 중 처음으로 값이 있는 것"""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _amount(data: dict[str, Any], *keys: str, required: bool = False) -> Decimal | None:
    raw = _pick(data, *keys)
    if raw is None:
        if required:
            raise PayloadError(f"필수 금액 필드 누락: {keys[0]}", data)
        return None

    value = to_finite_decimal(raw)
    if value is None:
        raise PayloadError(f"금액 형식 오류: {keys[0]}={raw!r}", data)
    return value


def _timestamp(data: dict[str, Any], *keys: str, required: bool = False) -> datetime | None:
    raw = _pick(data, *keys)
    if raw is None:
        if required:
            raise PayloadError(f"필수 시각 필드 누락: {keys[0]}", data)
        return None

    if isinstance(raw, datetime):
        return raw

    try:
        return parse_iso_datetime(str(raw))
    except ValueError as e:
        raise PayloadError(f"시각 형식 오류: {keys[0]}={raw!r}", data) from e


def _optional_str(data: dict[str, Any], *keys: str) -> str | None:
    value = _pick(data, *keys)
    return str(value) if value is not None else None


def parse_user(data: dict[str, Any] | None) -> UserRef | None:
    """사용자 표시 정보 파싱 (없으면 None)"""
    if not data or data.get("id") is None:
        return None

    return UserRef(
        id=str(data["id"]),
        email=_optional_str(data, "email"),
        full_name=_optional_str(data, "fullName", "full_name"),
    )


def parse_session(data: dict[str, Any]) -> Session:
    """세션 응답 -> Session 모델

    응답 예시:
    {
        "id": "f1c2...",
        "status": "OPEN",
        "openingAmount": "1000.00",
        "openedAt": "2026-02-20T09:00:00Z",
        "closingAmount": null,
        "systemExpected": null,
        "discrepancyAmount": null,
        "openedBy": "user-1"
    }

    Raises:
        PayloadError: 필수 필드 누락, 금액/시각 형식 오류, 알 수 없는 상태
    """
    if not isinstance(data, dict) or data.get("id") is None:
        raise PayloadError("세션 응답에 id가 없습니다", data)

    raw_status = str(data.get("status", "")).upper()
    try:
        status = SessionStatus(raw_status)
    except ValueError as e:
        raise PayloadError(f"알 수 없는 세션 상태: {raw_status!r}", data) from e

    return Session(
        id=str(data["id"]),
        status=status,
        opening_amount=_amount(data, "openingAmount", "opening_amount", required=True),
        opened_at=_timestamp(
            data, "openedAt", "opened_at", "opening_time", "createdAt", "created_at",
            required=True,
        ),
        closing_amount=_amount(data, "closingAmount", "closing_amount"),
        closed_at=_timestamp(data, "closedAt", "closed_at", "closing_time"),
        system_expected=_amount(
            data, "systemExpected", "system_expected", "expectedAmount", "expected_amount"
        ),
        discrepancy_amount=_amount(data, "discrepancyAmount", "discrepancy_amount"),
        notes=_optional_str(data, "notes"),
        opened_by=_optional_str(data, "openedBy", "opened_by"),
        closed_by=_optional_str(data, "closedBy", "closed_by"),
    )


def parse_movement(data: dict[str, Any]) -> Movement:
    """이동 응답 -> Movement 모델

    응답 예시:
    {
        "id": "m-1",
        "sessionId": "f1c2...",
        "type": "OUT",
        "amount": "50.00",
        "reason": "잔돈 교환",
        "referenceType": null,
        "createdAt": "2026-02-20T10:15:00Z",
        "createdByUser": {"id": "user-1", "fullName": "홍길동", "email": "..."}
    }

    Raises:
        PayloadError: 필수 필드 누락, 금액/시각 형식 오류, 알 수 없는 유형
    """
    if not isinstance(data, dict) or data.get("id") is None:
        raise PayloadError("이동 응답에 id가 없습니다", data)

    raw_type = str(data.get("type", "")).upper()
    try:
        movement_type = MovementType(raw_type)
    except ValueError as e:
        raise PayloadError(f"알 수 없는 이동 유형: {raw_type!r}", data) from e

    session_id = _pick(data, "sessionId", "session_id")
    if session_id is None:
        raise PayloadError("이동 응답에 sessionId가 없습니다", data)

    user = parse_user(_pick(data, "createdByUser", "created_by_user"))
    created_by = _optional_str(data, "createdBy", "created_by")
    if created_by is None and user is not None:
        created_by = user.id

    return Movement(
        id=str(data["id"]),
        session_id=str(session_id),
        type=movement_type,
        amount=_amount(data, "amount", required=True),
        created_at=_timestamp(data, "createdAt", "created_at", required=True),
        reason=_optional_str(data, "reason"),
        reference_type=_optional_str(data, "referenceType", "reference_type"),
        reference_id=_optional_str(data, "referenceId", "reference_id"),
        created_by=created_by,
        created_by_user=user,
    )


def unwrap(data: Any, key: str) -> Any:
    """{"session": {...}} 형태 응답의 내부 값 추출 (감싸지 않은 응답은 그대로)"""
    if isinstance(data, dict) and key in data:
        return data[key]
    return data
