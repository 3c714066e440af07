"""
콘솔 어댑터

CLI 실행 시 사용하는 알림/확인 프롬프트 구현체.
"""

from adapters.console.notifier import LoggingNotifier
from adapters.console.prompt import AutoConfirmPrompt, ConsolePrompt

__all__ = [
    "AutoConfirmPrompt",
    "ConsolePrompt",
    "LoggingNotifier",
]
