"""
Mock 알림

변경 작업 결과 알림(성공/경고/오류)을 기록만 하는 INotifier 구현.
"""

from dataclasses import dataclass, field
from typing import Any

from core.types import NotificationSeverity


@dataclass(frozen=True)
class NotificationRecord:
    """기록된 알림 한 건"""

    message: str
    severity: NotificationSeverity
    extra: dict[str, Any] | None = None
    sent: bool = True


@dataclass
class MockNotifier:
    """알림 기록용 Mock

    ```python
    notifier = MockNotifier()
    await workflow.open_session("1000")
    assert notifier.messages_for(NotificationSeverity.SUCCESS) == ["현금 세션이 열렸습니다"]
    ```

    Attributes:
        should_fail: True면 기록은 하되 send가 False 반환
        raise_error: 설정 시 send가 해당 예외를 발생
    """

    should_fail: bool = False
    raise_error: Exception | None = None
    notifications: list[NotificationRecord] = field(default_factory=list)

    async def send(
        self,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
        extra: dict[str, Any] | None = None,
    ) -> bool:
        if self.raise_error is not None:
            raise self.raise_error

        self.notifications.append(NotificationRecord(
            message=message,
            severity=NotificationSeverity(severity),
            extra=extra,
            sent=not self.should_fail,
        ))
        return not self.should_fail

    def clear(self) -> None:
        self.notifications.clear()

    @property
    def messages(self) -> list[str]:
        return [n.message for n in self.notifications]

    def messages_for(self, severity: NotificationSeverity) -> list[str]:
        return [n.message for n in self.notifications if n.severity == severity]

    def get_by_severity(self, severity: NotificationSeverity) -> list[NotificationRecord]:
        return [n for n in self.notifications if n.severity == severity]

    def get_errors(self) -> list[NotificationRecord]:
        return self.get_by_severity(NotificationSeverity.ERROR)

    def get_warnings(self) -> list[NotificationRecord]:
        return self.get_by_severity(NotificationSeverity.WARNING)

    def get_successes(self) -> list[NotificationRecord]:
        return self.get_by_severity(NotificationSeverity.SUCCESS)

    @property
    def last_notification(self) -> NotificationRecord | None:
        return self.notifications[-1] if self.notifications else None

    @property
    def message_count(self) -> int:
        return len(self.notifications)
