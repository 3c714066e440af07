"""
원장 집계

세션의 이동 목록을 유형별 합계와 순잔액으로 접는다.
합산만 수행하므로 입력 순서와 무관하다.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.domain.models import Movement, Session
from core.domain.movements import signed_amount
from core.types import MovementType
from core.utils.amounts import ZERO


@dataclass(frozen=True)
class MovementSummary:
    """이동 요약 (저장하지 않는 파생값)

    IN/OUT/SALE/RETURN 합계는 크기(절대값) 합계,
    ADJUSTMENT 합계와 balance는 부호 포함.

    Attributes:
        total_in: IN 합계
        total_out: OUT 합계
        total_sale: SALE 합계
        total_return: RETURN 합계
        total_adjustment: ADJUSTMENT 합계 (부호 포함)
        balance: 순잔액 (개시 금액 제외)
        count: 집계된 이동 수
    """

    total_in: Decimal = ZERO
    total_out: Decimal = ZERO
    total_sale: Decimal = ZERO
    total_return: Decimal = ZERO
    total_adjustment: Decimal = ZERO
    balance: Decimal = ZERO
    count: int = 0

    def to_dict(self) -> dict[str, Decimal]:
        """유형 키 기준 딕셔너리 (in/out/sale/return/adjustment/balance)"""
        return {
            "in": self.total_in,
            "out": self.total_out,
            "sale": self.total_sale,
            "return": self.total_return,
            "adjustment": self.total_adjustment,
            "balance": self.balance,
        }


def calculate_movement_summary(movements: Iterable[Movement]) -> MovementSummary:
    """이동 목록 요약 계산

    Args:
        movements: 한 세션의 정규화된 이동 목록 (단일 스냅샷)

    Returns:
        MovementSummary (빈 입력이면 모든 필드 0)

    Example:
        IN 100, OUT 50, SALE 200, RETURN 30, ADJUSTMENT -10
        → in=100, out=50, sale=200, return=30, adjustment=-10, balance=210
    """
    totals: dict[MovementType, Decimal] = {kind: ZERO for kind in MovementType}
    balance = ZERO
    count = 0

    for movement in movements:
        if movement.type == MovementType.ADJUSTMENT:
            totals[movement.type] += movement.amount
        else:
            totals[movement.type] += abs(movement.amount)
        balance += signed_amount(movement)
        count += 1

    return MovementSummary(
        total_in=totals[MovementType.IN],
        total_out=totals[MovementType.OUT],
        total_sale=totals[MovementType.SALE],
        total_return=totals[MovementType.RETURN],
        total_adjustment=totals[MovementType.ADJUSTMENT],
        balance=balance,
        count=count,
    )


def session_balance(
    session: Session | None,
    summary: MovementSummary,
) -> Decimal | None:
    """현재 세션 잔액 (개시 금액 + 요약 잔액)

    세션이 없으면 None. "세션 없음"과 "빈 세션(잔액 0)"을 구분한다.
    """
    if session is None:
        return None
    return session.opening_amount + summary.balance
