"""
어댑터 공통 데이터 모델

원격 저장소/변경 피드/확인 프롬프트와 주고받는 요청·이벤트 모델.
모든 금액은 Decimal 타입 사용.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from core.domain.models import CashCount
from core.types import ChangeKind, MovementType, RiskLevel
from core.utils.amounts import ZERO


@dataclass(frozen=True)
class OpenSessionRequest:
    """세션 개시 요청

    Attributes:
        opening_amount: 개시 금액 (검증 완료)
        notes: 메모
    """

    opening_amount: Decimal
    notes: str | None = None

    def __post_init__(self) -> None:
        """유효성 검증"""
        if self.opening_amount < ZERO:
            raise ValueError("opening_amount must be non-negative")

    def to_payload(self) -> dict[str, Any]:
        """요청 바디 (금액은 문자열)"""
        return {
            "openingAmount": str(self.opening_amount),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class CloseSessionRequest:
    """세션 마감 요청

    Attributes:
        session_id: 마감 대상 세션 ID
        closing_amount: 신고 마감 금액
        system_expected: 시스템 예상 잔액 (개시 금액 + 요약 잔액)
        notes: 메모
        counts: 권종별 실사 (선택)
    """

    session_id: str
    closing_amount: Decimal
    system_expected: Decimal
    notes: str | None = None
    counts: tuple[CashCount, ...] = ()

    def __post_init__(self) -> None:
        """유효성 검증"""
        if self.closing_amount < ZERO:
            raise ValueError("closing_amount must be non-negative")

    @property
    def discrepancy(self) -> Decimal:
        """부호 포함 차액 (closing - expected)"""
        return self.closing_amount - self.system_expected

    def to_payload(self) -> dict[str, Any]:
        """요청 바디 (금액은 문자열)"""
        payload: dict[str, Any] = {
            "sessionId": self.session_id,
            "closingAmount": str(self.closing_amount),
            "systemExpected": str(self.system_expected),
            "notes": self.notes,
        }
        if self.counts:
            payload["counts"] = [
                {"denomination": str(c.denomination), "quantity": c.quantity}
                for c in self.counts
            ]
        return payload


@dataclass(frozen=True)
class MovementRequest:
    """이동 등록 요청

    amount는 정규화된 값이어야 한다 (ADJUSTMENT만 부호 보유).

    Attributes:
        session_id: 대상 세션 ID
        type: 이동 유형
        amount: 정규화된 금액
        reason: 사유
        reference_type: 원천 엔티티 종류
        reference_id: 원천 엔티티 ID
    """

    session_id: str
    type: MovementType
    amount: Decimal
    reason: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None

    def __post_init__(self) -> None:
        """유효성 검증"""
        if self.amount == ZERO:
            raise ValueError("amount must be non-zero")

        if self.type != MovementType.ADJUSTMENT and self.amount < ZERO:
            raise ValueError(f"amount must be positive for {self.type.value}")

    def to_payload(self) -> dict[str, Any]:
        """요청 바디 (금액은 문자열)"""
        return {
            "sessionId": self.session_id,
            "type": self.type.value,
            "amount": str(self.amount),
            "reason": self.reason,
            "referenceType": self.reference_type,
            "referenceId": self.reference_id,
        }


@dataclass(frozen=True)
class ChangeEvent:
    """변경 피드 이벤트

    payload는 참고용이며 원장에 직접 반영하지 않는다.
    """

    kind: ChangeKind
    session_id: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConfirmationRequest:
    """확인 프롬프트 요청"""

    title: str
    description: str
    confirm_text: str = "확인"
    cancel_text: str = "취소"
    risk_level: RiskLevel = RiskLevel.DEFAULT
