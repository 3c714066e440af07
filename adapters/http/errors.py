"""
원격 현금 저장소 API 예외
"""

from typing import Any


class CashApiError(Exception):
    """원격 저장소 API 에러

    Args:
        status_code: HTTP 상태 코드
        message: 서버 에러 메시지 (error 또는 message 필드)
        details: 추가 설명 (선택)
    """

    def __init__(self, status_code: int, message: str, details: Any = None):
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(f"Cash API Error [{status_code}]: {message}")

    def matches(self, *keywords: str) -> bool:
        """메시지 또는 details에 키워드 포함 여부 (대소문자 무시)"""
        text = f"{self.message} {self.details or ''}".lower()
        return any(keyword.lower() in text for keyword in keywords)


class RateLimitError(CashApiError):
    """429 응답이 재시도 한도를 넘은 경우"""

    def __init__(self, retry_after: float, message: str = "Rate limit exceeded"):
        self.retry_after = retry_after
        super().__init__(429, f"{message}. Retry after {retry_after} seconds.")


class PayloadError(CashApiError):
    """응답 바디를 도메인 모델로 변환할 수 없는 경우"""

    def __init__(self, message: str, details: Any = None):
        super().__init__(502, message, details)
