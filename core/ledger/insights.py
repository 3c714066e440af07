"""
대시보드 지표

세션 이동 스냅샷으로부터 오늘의 유입/유출, 평균 거래액,
피크 시간대, 위험 점수 등을 계산한다.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Sequence

from core.domain.models import Movement, Session
from core.ledger.summary import MovementSummary, session_balance
from core.types import INFLOW_TYPES, OUTFLOW_TYPES
from core.utils.amounts import ZERO

# 위험 점수 가중치
NEGATIVE_BALANCE_SCORE = 30
HIGH_VOLUME_SCORE = 20
HIGH_VOLUME_COUNT = 50
LARGE_TRANSACTION_SCORE = 5
LARGE_TRANSACTION_FACTOR = 3
MAX_RISK_SCORE = 100


@dataclass(frozen=True)
class CashInsights:
    """대시보드 지표

    Attributes:
        current_balance: 현재 잔액 (세션 없으면 None)
        today_movements: 오늘 생성된 이동
        today_inflows: 오늘 IN + SALE 크기 합계
        today_outflows: 오늘 OUT + RETURN 크기 합계
        average_transaction_value: 전체 이동 평균 크기
        transaction_velocity: 오늘 시간당 이동 수 (count / 24)
        cash_turnover: 유출 / 유입 (유입 0이면 0)
        peak_hours: 오늘 이동이 가장 많은 시간대 목록
        risk_score: 0~100 위험 점수
    """

    current_balance: Decimal | None
    today_movements: list[Movement] = field(default_factory=list)
    today_inflows: Decimal = ZERO
    today_outflows: Decimal = ZERO
    average_transaction_value: Decimal = ZERO
    transaction_velocity: Decimal = ZERO
    cash_turnover: Decimal = ZERO
    peak_hours: list[int] = field(default_factory=list)
    risk_score: int = 0

    @property
    def net_flow(self) -> Decimal:
        """오늘 순유입"""
        return self.today_inflows - self.today_outflows


def _local(dt: datetime, tz: tzinfo) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def movements_on_day(
    movements: Sequence[Movement],
    day: datetime,
    tz: tzinfo = timezone.utc,
) -> list[Movement]:
    """지정 시각과 같은 (tz 기준) 날짜에 생성된 이동"""
    target = _local(day, tz).date()
    return [m for m in movements if _local(m.created_at, tz).date() == target]


def calculate_peak_hours(
    movements: Sequence[Movement],
    tz: tzinfo = timezone.utc,
) -> list[int]:
    """이동 수가 최대인 시간대 (동률이면 모두, 이동 없으면 빈 목록)"""
    if not movements:
        return []

    counts = [0] * 24
    for movement in movements:
        counts[_local(movement.created_at, tz).hour] += 1

    peak = max(counts)
    return [hour for hour, count in enumerate(counts) if count == peak]


def average_magnitude(movements: Sequence[Movement]) -> Decimal:
    """평균 이동 크기 (이동 없으면 0)"""
    if not movements:
        return ZERO
    return sum((m.magnitude for m in movements), ZERO) / len(movements)


def calculate_risk_score(
    balance: Decimal | None,
    movements: Sequence[Movement],
) -> int:
    """위험 점수

    - 음수 잔액: +30
    - 이동 50건 초과: +20
    - 평균 크기의 3배 초과 이동 1건당: +5
    - 최대 100
    """
    score = 0

    if balance is not None and balance < ZERO:
        score += NEGATIVE_BALANCE_SCORE

    if len(movements) > HIGH_VOLUME_COUNT:
        score += HIGH_VOLUME_SCORE

    if movements:
        threshold = average_magnitude(movements) * LARGE_TRANSACTION_FACTOR
        large = sum(1 for m in movements if m.magnitude > threshold)
        score += large * LARGE_TRANSACTION_SCORE

    return min(score, MAX_RISK_SCORE)


def build_insights(
    movements: Sequence[Movement],
    session: Session | None,
    summary: MovementSummary,
    now: datetime | None = None,
    tz: tzinfo = timezone.utc,
) -> CashInsights:
    """대시보드 지표 계산

    Args:
        movements: 세션 이동 스냅샷
        session: 현재 세션 (None 허용)
        summary: 같은 스냅샷의 요약
        now: 기준 시각 (None이면 현재 UTC)
        tz: "오늘" 판정 타임존

    Returns:
        CashInsights
    """
    now = now or datetime.now(timezone.utc)
    balance = session_balance(session, summary)
    today = movements_on_day(movements, now, tz)

    inflows = sum((m.magnitude for m in today if m.type in INFLOW_TYPES), ZERO)
    outflows = sum((m.magnitude for m in today if m.type in OUTFLOW_TYPES), ZERO)

    return CashInsights(
        current_balance=balance,
        today_movements=today,
        today_inflows=inflows,
        today_outflows=outflows,
        average_transaction_value=average_magnitude(movements),
        transaction_velocity=Decimal(len(today)) / 24,
        cash_turnover=outflows / inflows if inflows > ZERO else ZERO,
        peak_hours=calculate_peak_hours(today, tz),
        risk_score=calculate_risk_score(balance, today),
    )
