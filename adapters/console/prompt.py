"""
콘솔 확인 프롬프트

IConfirmationPrompt Protocol 준수.
- ConsolePrompt: 표준 입력으로 y/n 확인
- AutoConfirmPrompt: 항상 확인 (--yes)
"""

import asyncio
import logging
import sys
from typing import Callable, TextIO

from adapters.models import ConfirmationRequest
from core.types import RiskLevel

logger = logging.getLogger(__name__)

YES_ANSWERS = frozenset({"y", "yes", "예", "네"})

RISK_BANNER = {
    RiskLevel.DEFAULT: "",
    RiskLevel.INFO: "[확인] ",
    RiskLevel.WARNING: "[주의] ",
}


class ConsolePrompt:
    """표준 입력 확인 프롬프트

    입력 대기는 이벤트 루프를 막지 않도록 별도 스레드에서 수행한다.

    Args:
        input_func: 입력 함수 (테스트용 주입, 기본: input)
        stream: 설명 출력 스트림
    """

    def __init__(
        self,
        input_func: Callable[[str], str] | None = None,
        stream: TextIO | None = None,
    ):
        self.input_func = input_func or input
        self.stream = stream or sys.stdout

    async def confirm(self, request: ConfirmationRequest) -> bool:
        """확인 요청 출력 후 y/n 입력"""
        banner = RISK_BANNER.get(request.risk_level, "")
        print(f"\n{banner}{request.title}", file=self.stream)
        print(request.description, file=self.stream, flush=True)

        question = f"{request.confirm_text}(y) / {request.cancel_text}(n): "
        try:
            answer = await asyncio.to_thread(self.input_func, question)
        except EOFError:
            logger.info("확인 입력 없음 (EOF), 취소 처리")
            return False

        return answer.strip().lower() in YES_ANSWERS


class AutoConfirmPrompt:
    """항상 확인하는 프롬프트 (비대화형 실행용)"""

    async def confirm(self, request: ConfirmationRequest) -> bool:
        """로그만 남기고 확인"""
        logger.info(
            "자동 확인",
            extra={"title": request.title, "risk_level": request.risk_level.value},
        )
        return True
