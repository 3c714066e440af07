"""
현금 서랍 도메인 모델

원격 저장소 응답을 표준화한 불변 모델.
모든 금액은 Decimal 타입 사용.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from core.types import MovementType, SessionStatus


@dataclass(frozen=True)
class UserRef:
    """표시용 사용자 정보 (원장 계산에는 사용하지 않음)"""

    id: str
    email: str | None = None
    full_name: str | None = None

    @property
    def display_name(self) -> str:
        """표시 이름 (이름 → 이메일 → id 순)"""
        return self.full_name or self.email or self.id


@dataclass(frozen=True)
class Movement:
    """현금 이동 (추가 전용 원장의 한 항목)

    Attributes:
        id: 고유 ID
        session_id: 소속 세션 ID
        type: 이동 유형
        amount: 정규화된 금액 (ADJUSTMENT만 부호 보유)
        created_at: 생성 시각 (정렬/필터/일자 집계 기준)
        reason: 사유 (선택)
        reference_type: 원천 엔티티 종류 (정보용)
        reference_id: 원천 엔티티 ID (정보용)
        created_by: 생성자 ID
        created_by_user: 생성자 표시 정보
    """

    id: str
    session_id: str
    type: MovementType
    amount: Decimal
    created_at: datetime
    reason: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    created_by: str | None = None
    created_by_user: UserRef | None = None

    @property
    def magnitude(self) -> Decimal:
        """금액 크기 (절대값)"""
        return abs(self.amount)


@dataclass(frozen=True)
class Session:
    """현금 세션 (현금함 개시~마감 기간)

    Attributes:
        id: 세션 ID
        status: 상태 (OPEN / CLOSED / CANCELLED)
        opening_amount: 개시 금액 (생성 후 불변)
        opened_at: 개시 시각
        closing_amount: 마감 금액 (열린 동안 None)
        closed_at: 마감 시각
        system_expected: 마감 시점 시스템 예상 잔액
        discrepancy_amount: 마감 차액 (closing - expected, 부호 포함)
        notes: 메모
        opened_by: 개시자 ID
        closed_by: 마감자 ID
    """

    id: str
    status: SessionStatus
    opening_amount: Decimal
    opened_at: datetime
    closing_amount: Decimal | None = None
    closed_at: datetime | None = None
    system_expected: Decimal | None = None
    discrepancy_amount: Decimal | None = None
    notes: str | None = None
    opened_by: str | None = None
    closed_by: str | None = None

    @property
    def is_open(self) -> bool:
        """열린 세션 여부"""
        return self.status == SessionStatus.OPEN


@dataclass(frozen=True)
class CashCount:
    """마감 시 권종별 실사 수량

    Attributes:
        denomination: 권종 금액
        quantity: 수량
    """

    denomination: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        """권종 합계"""
        return self.denomination * self.quantity
