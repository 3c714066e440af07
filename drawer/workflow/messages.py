"""
오류 → 사용자 메시지 변환

검증/전제조건 오류는 자체 메시지를 그대로 쓰고, 서버 오류 중
조직 정보 누락, 권한 거부, 열린 세션 없음은 별도 안내를 붙인다.
"""

from enum import Enum

import httpx

from adapters.http.errors import CashApiError
from core.domain.errors import CashDrawerError
from core.domain.state_machines import StateMachineError
from core.types import OperationKind


class ErrorCategory(str, Enum):
    """사용자 안내 분류"""

    VALIDATION = "validation"
    MISSING_ORGANIZATION = "missing_organization"
    PERMISSION_DENIED = "permission_denied"
    NO_OPEN_SESSION = "no_open_session"
    NETWORK = "network"
    SERVER = "server"
    UNKNOWN = "unknown"


MISSING_ORGANIZATION_MESSAGE = (
    "조직이 선택되지 않았습니다. 조직 선택기에서 조직을 고른 뒤 다시 시도하세요."
)
PERMISSION_DENIED_MESSAGE = (
    "현금 작업 권한이 없습니다. 관리자에게 현금 세션 권한을 요청하세요."
)
NO_OPEN_SESSION_MESSAGE = "열린 현금 세션이 없습니다. 먼저 세션을 여세요."
TIMEOUT_MESSAGE = "서버 응답 시간이 초과되었습니다. 잠시 후 다시 시도하세요."
NETWORK_MESSAGE = "서버에 연결할 수 없습니다. 네트워크 상태를 확인하세요."

GENERIC_FAILURE = {
    OperationKind.OPEN_SESSION: "현금 세션을 열지 못했습니다",
    OperationKind.CLOSE_SESSION: "현금 세션을 마감하지 못했습니다",
    OperationKind.REGISTER_MOVEMENT: "현금 이동을 등록하지 못했습니다",
    OperationKind.FETCH_DATA: "현금 데이터를 불러오지 못했습니다",
}


def categorize_error(error: BaseException) -> ErrorCategory:
    """오류 분류"""
    if isinstance(error, (CashDrawerError, StateMachineError)):
        return ErrorCategory.VALIDATION

    if isinstance(error, CashApiError):
        if error.status_code == 400 and error.matches("organization", "header"):
            return ErrorCategory.MISSING_ORGANIZATION
        if error.status_code == 403 and error.matches("rls", "permission"):
            return ErrorCategory.PERMISSION_DENIED
        if error.status_code == 404 and error.matches("no open session"):
            return ErrorCategory.NO_OPEN_SESSION
        return ErrorCategory.SERVER

    if isinstance(error, httpx.HTTPError):
        return ErrorCategory.NETWORK

    return ErrorCategory.UNKNOWN


def describe_error(error: BaseException, operation: OperationKind) -> str:
    """사용자에게 보여줄 메시지

    Args:
        error: 발생한 예외
        operation: 실패한 작업 종류

    Returns:
        사용자 메시지
    """
    category = categorize_error(error)
    fallback = GENERIC_FAILURE.get(operation, "작업을 완료하지 못했습니다")

    if category == ErrorCategory.VALIDATION:
        return getattr(error, "message", None) or str(error) or fallback

    if category == ErrorCategory.MISSING_ORGANIZATION:
        return MISSING_ORGANIZATION_MESSAGE

    if category == ErrorCategory.PERMISSION_DENIED:
        return PERMISSION_DENIED_MESSAGE

    if category == ErrorCategory.NO_OPEN_SESSION:
        return NO_OPEN_SESSION_MESSAGE

    if category == ErrorCategory.SERVER and isinstance(error, CashApiError):
        message = error.message or fallback
        if error.details:
            return f"{message}: {error.details}"
        return message

    if category == ErrorCategory.NETWORK:
        if isinstance(error, httpx.TimeoutException):
            return TIMEOUT_MESSAGE
        return NETWORK_MESSAGE

    return fallback
