"""
Mock 확인 프롬프트

테스트용 확인 프롬프트. IConfirmationPrompt Protocol 준수.
"""

from adapters.models import ConfirmationRequest


class MockConfirmationPrompt:
    """Mock 확인 프롬프트

    미리 정한 응답을 순서대로 돌려주고, 받은 요청을 기록한다.
    응답 목록이 비면 default를 사용.

    Args:
        default: 기본 응답 (True = 확인)
        answers: 순서대로 사용할 응답 목록
    """

    def __init__(self, default: bool = True, answers: list[bool] | None = None):
        self.default = default
        self.answers = list(answers or [])
        self.requests: list[ConfirmationRequest] = []

    async def confirm(self, request: ConfirmationRequest) -> bool:
        """확인 요청 기록 후 응답"""
        self.requests.append(request)
        if self.answers:
            return self.answers.pop(0)
        return self.default

    @property
    def prompt_count(self) -> int:
        """받은 확인 요청 수"""
        return len(self.requests)

    @property
    def last_request(self) -> ConfirmationRequest | None:
        """마지막 확인 요청"""
        return self.requests[-1] if self.requests else None
