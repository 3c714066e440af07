"""
현금 세션 규칙

개시/마감 금액 검증, 마감 차액 판정, 이동 등록 전제조건.

모든 검사는 마지막으로 가져온 세션/요약 스냅샷 기준이다.
서버 쓰기가 최종 권한이며, 여기서의 검사는 즉시 피드백을 위한 선검사다.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from core.domain.errors import (
    AdjustmentExceedsBalance,
    InsufficientBalance,
    InvalidClosingAmount,
    InvalidOpeningAmount,
    MissingDirection,
    NoOpenSession,
    SessionNotOpen,
)
from core.domain.models import CashCount, Session
from core.domain.movements import coerce_direction, coerce_movement_type
from core.domain.state_machines import SessionStateMachine
from core.ledger.summary import MovementSummary
from core.types import AdjustmentDirection, CashLimits, MovementType, SessionStatus
from core.utils.amounts import ZERO, to_finite_decimal


def validate_opening_amount(
    amount: Any,
    limits: CashLimits | None = None,
) -> Decimal:
    """개시 금액 검증

    Args:
        amount: 개시 금액
        limits: 금액 한도 (None이면 기본값)

    Returns:
        검증된 Decimal

    Raises:
        InvalidOpeningAmount: 유한하지 않음, 음수, 또는 한도 초과
    """
    limits = limits or CashLimits()

    value = to_finite_decimal(amount)
    if value is None:
        raise InvalidOpeningAmount("개시 금액이 유효하지 않습니다", amount)

    if value < ZERO:
        raise InvalidOpeningAmount("개시 금액은 0 이상이어야 합니다", value)

    if value > limits.max_opening_amount:
        raise InvalidOpeningAmount(
            f"개시 금액이 너무 큽니다 (최대 {limits.max_opening_amount})", value
        )

    return value


def validate_closing_amount(amount: Any) -> Decimal:
    """마감 금액 검증

    Raises:
        InvalidClosingAmount: 유한하지 않음 또는 음수
    """
    value = to_finite_decimal(amount)
    if value is None:
        raise InvalidClosingAmount("마감 금액이 유효하지 않습니다", amount)

    if value < ZERO:
        raise InvalidClosingAmount("마감 금액은 0 이상이어야 합니다", value)

    return value


def total_counts(counts: Iterable[CashCount]) -> Decimal:
    """권종별 실사 합계"""
    return sum((count.total for count in counts), ZERO)


def resolve_closing_amount(
    closing_amount: Any = None,
    counts: list[CashCount] | None = None,
) -> Decimal:
    """마감 금액 결정 (직접 입력 또는 권종 실사 합계)

    둘 다 주어지면 일치해야 한다.

    Raises:
        InvalidClosingAmount: 둘 다 없음, 음수 권종/수량, 불일치, 금액 오류
    """
    if counts:
        for count in counts:
            if count.denomination < ZERO or count.quantity < 0:
                raise InvalidClosingAmount("권종과 수량은 0 이상이어야 합니다")

        counted = total_counts(counts)

        if closing_amount is None:
            return validate_closing_amount(counted)

        declared = validate_closing_amount(closing_amount)
        if declared != counted:
            raise InvalidClosingAmount(
                f"마감 금액({declared})이 실사 합계({counted})와 다릅니다",
                declared,
            )
        return declared

    if closing_amount is None:
        raise InvalidClosingAmount("마감 금액을 입력해야 합니다")

    return validate_closing_amount(closing_amount)


def ensure_session_open(session: Session | None) -> Session:
    """세션이 OPEN 상태인지 확인

    Raises:
        NoOpenSession: 세션 없음
        SessionNotOpen: CLOSED / CANCELLED 세션
    """
    if session is None:
        raise NoOpenSession()

    machine = SessionStateMachine(session.status)
    if not machine.can_transition(SessionStatus.CLOSED):
        raise SessionNotOpen(session.id, session.status.value)

    return session


@dataclass(frozen=True)
class CloseAssessment:
    """마감 차액 판정 결과

    Attributes:
        closing_amount: 신고 마감 금액
        expected_balance: 시스템 예상 잔액 (개시 금액 + 요약 잔액)
        discrepancy: |closing - expected|
        threshold: 차액 큼 기준값
    """

    closing_amount: Decimal
    expected_balance: Decimal
    discrepancy: Decimal
    threshold: Decimal

    @property
    def has_discrepancy(self) -> bool:
        """차액 존재 여부"""
        return self.discrepancy > ZERO

    @property
    def is_high(self) -> bool:
        """차액 큼 여부 (명시적 확인 필요)"""
        return self.discrepancy > self.threshold

    @property
    def requires_confirmation(self) -> bool:
        """확인 프롬프트 필요 여부"""
        return self.is_high

    @property
    def needs_warning(self) -> bool:
        """비차단 경고 대상 (0 < 차액 <= 기준값)"""
        return self.has_discrepancy and not self.is_high

    @property
    def signed_difference(self) -> Decimal:
        """부호 포함 차액 (closing - expected, 양수면 과잉/음수면 부족)"""
        return self.closing_amount - self.expected_balance


def assess_close(
    session: Session | None,
    summary: MovementSummary,
    closing_amount: Decimal,
    limits: CashLimits | None = None,
) -> CloseAssessment:
    """마감 차액 판정

    Args:
        session: 마감 대상 세션
        summary: 해당 세션 이동 요약
        closing_amount: 검증된 마감 금액
        limits: 금액 한도

    Returns:
        CloseAssessment

    Raises:
        NoOpenSession / SessionNotOpen
    """
    limits = limits or CashLimits()
    session = ensure_session_open(session)

    expected = session.opening_amount + summary.balance
    discrepancy = abs(closing_amount - expected)

    return CloseAssessment(
        closing_amount=closing_amount,
        expected_balance=expected,
        discrepancy=discrepancy,
        threshold=limits.high_discrepancy_threshold(expected),
    )


def check_movement_preconditions(
    session: Session | None,
    summary: MovementSummary,
    movement_type: str | MovementType,
    amount: Decimal,
    direction: str | AdjustmentDirection | None = None,
) -> Decimal:
    """이동 등록 전제조건 검사

    Args:
        session: 현재 세션 스냅샷
        summary: 현재 세션 요약 스냅샷
        movement_type: 이동 유형
        amount: 사용자 입력 금액 (검증 완료)
        direction: 조정 방향 (ADJUSTMENT 필수)

    Returns:
        현재 잔액 (개시 금액 + 요약 잔액)

    Raises:
        NoOpenSession / SessionNotOpen: 열린 세션 없음
        MissingDirection: ADJUSTMENT 방향 누락
        InsufficientBalance: OUT 금액 > 현재 잔액
        AdjustmentExceedsBalance: 감소 조정액 > 현재 잔액
    """
    session = ensure_session_open(session)
    kind = coerce_movement_type(movement_type)
    current_balance = session.opening_amount + summary.balance

    if kind == MovementType.OUT and abs(amount) > current_balance:
        raise InsufficientBalance(abs(amount), current_balance)

    if kind == MovementType.ADJUSTMENT:
        resolved = coerce_direction(direction)
        if resolved is None:
            raise MissingDirection()

        if resolved == AdjustmentDirection.DECREASE and abs(amount) > current_balance:
            raise AdjustmentExceedsBalance(abs(amount), current_balance)

    return current_balance
