"""
현금 서랍 도메인 예외

검증 오류(네트워크 전 로컬 검출)와 전제조건 오류(마지막 스냅샷 기준 검출)를
구분한다. 모든 예외는 사용자에게 그대로 보여줄 수 있는 message를 가진다.
"""

from decimal import Decimal
from typing import Any


class CashDrawerError(Exception):
    """현금 서랍 예외 루트"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# -------------------------------------------------------------------------
# 검증 오류
# -------------------------------------------------------------------------


class CashValidationError(CashDrawerError):
    """입력값 검증 실패 (쓰기 요청 전에 검출)"""

    pass


class InvalidAmount(CashValidationError):
    """유한한 숫자가 아닌 금액"""

    def __init__(self, value: Any):
        self.value = value
        super().__init__("유효하지 않은 금액입니다")


class ZeroAmount(CashValidationError):
    """0 금액"""

    def __init__(self) -> None:
        super().__init__("금액은 0일 수 없습니다")


class AmountTooLarge(CashValidationError):
    """한도 초과 금액"""

    def __init__(self, amount: Decimal, limit: Decimal):
        self.amount = amount
        self.limit = limit
        super().__init__(f"금액이 허용 한도({limit})를 초과했습니다")


class NegativeAmountNotAllowed(CashValidationError):
    """ADJUSTMENT 외 유형의 음수 금액"""

    def __init__(self, amount: Decimal, movement_type: str):
        self.amount = amount
        self.movement_type = movement_type
        super().__init__(f"{movement_type} 이동 금액은 양수여야 합니다")


class MissingDirection(CashValidationError):
    """ADJUSTMENT 방향 누락"""

    def __init__(self) -> None:
        super().__init__("조정 방향(증가/감소)을 지정해야 합니다")


class InvalidMovementType(CashValidationError):
    """허용되지 않은 이동 유형"""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"유효하지 않은 이동 유형입니다: {value!r}")


class InvalidOpeningAmount(CashValidationError):
    """개시 금액 검증 실패"""

    def __init__(self, reason: str, amount: Any = None):
        self.amount = amount
        super().__init__(reason)


class InvalidClosingAmount(CashValidationError):
    """마감 금액 검증 실패"""

    def __init__(self, reason: str, amount: Any = None):
        self.amount = amount
        super().__init__(reason)


# -------------------------------------------------------------------------
# 전제조건 오류
# -------------------------------------------------------------------------


class CashPreconditionError(CashDrawerError):
    """전제조건 실패 (마지막 세션/요약 스냅샷 기준)"""

    pass


class NoOpenSession(CashPreconditionError):
    """열린 세션 없음"""

    def __init__(self) -> None:
        super().__init__("열린 현금 세션이 없습니다")


class SessionNotOpen(CashPreconditionError):
    """대상 세션이 OPEN 상태가 아님"""

    def __init__(self, session_id: str, status: str):
        self.session_id = session_id
        self.status = status
        super().__init__(f"세션이 열려 있지 않습니다 (상태: {status})")


class InsufficientBalance(CashPreconditionError):
    """출금액이 현재 잔액 초과"""

    def __init__(self, amount: Decimal, balance: Decimal):
        self.amount = amount
        self.balance = balance
        super().__init__("현금함 잔액이 부족하여 출금할 수 없습니다")


class AdjustmentExceedsBalance(CashPreconditionError):
    """감소 조정액이 현재 잔액 초과"""

    def __init__(self, amount: Decimal, balance: Decimal):
        self.amount = amount
        self.balance = balance
        super().__init__("감소 조정액은 현재 잔액을 초과할 수 없습니다")
