"""
콘솔 알림 서비스

사용자 알림을 터미널에 출력하고 로그에도 남긴다.
INotifier Protocol 준수.
"""

import logging
import sys
from typing import Any, TextIO

from core.types import NotificationSeverity

logger = logging.getLogger(__name__)


# 심각도별 표시 접두사
SEVERITY_PREFIX = {
    NotificationSeverity.SUCCESS: "[OK]",
    NotificationSeverity.INFO: "[INFO]",
    NotificationSeverity.WARNING: "[WARN]",
    NotificationSeverity.ERROR: "[ERROR]",
}

# 심각도별 로그 레벨
SEVERITY_LOG_LEVEL = {
    NotificationSeverity.SUCCESS: logging.INFO,
    NotificationSeverity.INFO: logging.INFO,
    NotificationSeverity.WARNING: logging.WARNING,
    NotificationSeverity.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """콘솔 알림 서비스

    Args:
        stream: 출력 스트림 (기본: stdout)
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout

    async def send(
        self,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 출력"""
        severity = NotificationSeverity(severity)
        prefix = SEVERITY_PREFIX.get(severity, "[INFO]")

        print(f"{prefix} {message}", file=self.stream, flush=True)
        logger.log(
            SEVERITY_LOG_LEVEL.get(severity, logging.INFO),
            message,
            extra={"severity": severity.value, **(extra or {})},
        )
        return True
