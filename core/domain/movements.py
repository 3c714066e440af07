"""
현금 이동 규칙

이동 유형별 부호 규칙, 금액 검증, 정규화.

부호 규칙:
- IN, SALE: 저장 금액은 항상 양수 크기, 잔액에 +amount
- OUT, RETURN: 저장 금액은 항상 양수 크기, 잔액에 -amount
- ADJUSTMENT: 저장 금액이 부호를 가짐, 잔액에 +amount
  (감소 조정은 음수로 저장)

정규화는 저장 전에 반드시 수행한다. 원장 집계는 정규화된 금액을 가정한다.
"""

from decimal import Decimal
from typing import Any

from core.constants import Limits
from core.domain.errors import (
    AmountTooLarge,
    InvalidAmount,
    InvalidMovementType,
    MissingDirection,
    NegativeAmountNotAllowed,
    ZeroAmount,
)
from core.domain.models import Movement
from core.types import INFLOW_TYPES, OUTFLOW_TYPES, AdjustmentDirection, MovementType
from core.utils.amounts import ZERO, to_finite_decimal


def coerce_movement_type(value: str | MovementType) -> MovementType:
    """경계 입력을 MovementType으로 변환

    Args:
        value: 유형 문자열 (대소문자 무관) 또는 MovementType

    Returns:
        MovementType

    Raises:
        InvalidMovementType: 닫힌 집합 외의 값
    """
    if isinstance(value, MovementType):
        return value

    if not isinstance(value, str):
        raise InvalidMovementType(value)

    try:
        return MovementType(value.strip().upper())
    except ValueError as e:
        raise InvalidMovementType(value) from e


def coerce_direction(
    value: str | AdjustmentDirection | None,
) -> AdjustmentDirection | None:
    """조정 방향 변환 (None은 그대로 None)

    Raises:
        MissingDirection: 알 수 없는 방향 문자열
    """
    if value is None or isinstance(value, AdjustmentDirection):
        return value

    try:
        return AdjustmentDirection(str(value).strip().lower())
    except ValueError as e:
        raise MissingDirection() from e


def validate_movement_amount(
    amount: Any,
    movement_type: str | MovementType,
    max_amount: Decimal = Limits.MAX_MOVEMENT_AMOUNT,
) -> Decimal:
    """이동 금액 검증

    Args:
        amount: 사용자 입력 금액
        movement_type: 이동 유형
        max_amount: 절대값 상한

    Returns:
        검증된 Decimal 금액

    Raises:
        InvalidAmount: 유한한 숫자가 아님
        ZeroAmount: 0
        AmountTooLarge: |amount| > max_amount
        NegativeAmountNotAllowed: ADJUSTMENT가 아닌데 음수
        InvalidMovementType: 알 수 없는 유형
    """
    kind = coerce_movement_type(movement_type)

    value = to_finite_decimal(amount)
    if value is None:
        raise InvalidAmount(amount)

    if value == ZERO:
        raise ZeroAmount()

    if abs(value) > max_amount:
        raise AmountTooLarge(value, max_amount)

    if kind != MovementType.ADJUSTMENT and value < ZERO:
        raise NegativeAmountNotAllowed(value, kind.value)

    return value


def normalize_movement_amount(
    amount: Any,
    movement_type: str | MovementType,
    direction: str | AdjustmentDirection | None = None,
) -> Decimal:
    """사용자 입력 금액을 저장용 정규 형태로 변환

    - ADJUSTMENT 외 유형: abs(amount)
    - ADJUSTMENT + decrease: -abs(amount)
    - ADJUSTMENT + increase (또는 미지정): abs(amount)

    Raises:
        InvalidAmount: 유한한 숫자가 아님
    """
    kind = coerce_movement_type(movement_type)

    value = to_finite_decimal(amount)
    if value is None:
        raise InvalidAmount(amount)

    magnitude = abs(value)

    if kind != MovementType.ADJUSTMENT:
        return magnitude

    if coerce_direction(direction) == AdjustmentDirection.DECREASE:
        return -magnitude
    return magnitude


def balance_effect(movement_type: MovementType, amount: Decimal) -> Decimal:
    """잔액 기여분 (부호 규칙 적용)"""
    if movement_type in INFLOW_TYPES:
        return abs(amount)
    if movement_type in OUTFLOW_TYPES:
        return -abs(amount)
    return amount


def signed_amount(movement: Movement) -> Decimal:
    """이동의 잔액 기여분"""
    return balance_effect(movement.type, movement.amount)
