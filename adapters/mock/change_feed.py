"""
Mock 변경 피드

테스트용 인메모리 변경 피드.
IChangeFeed Protocol 준수.
"""

from dataclasses import dataclass

from adapters.interfaces import ChangeCallback
from adapters.models import ChangeEvent
from core.types import ChangeKind


@dataclass(frozen=True)
class MockSubscription:
    """구독 기록"""

    id: str
    session_id: str
    callback: ChangeCallback


class MockChangeFeed:
    """Mock 변경 피드

    publish()로 이벤트를 직접 발행하여 구독 콜백을 호출한다.
    구독/해제 순서를 log에 남겨 테스트에서 검증 가능.

    사용 예시:
    ```python
    feed = MockChangeFeed()
    sub_id = await feed.subscribe("session-1", on_change)
    await feed.emit("session-1", ChangeKind.MOVEMENT_INSERTED)
    ```
    """

    def __init__(self) -> None:
        self.subscriptions: dict[str, MockSubscription] = {}
        self.log: list[tuple[str, str]] = []
        self._counter = 0

    async def subscribe(self, session_id: str, callback: ChangeCallback) -> str:
        """세션 변경 구독"""
        self._counter += 1
        subscription = MockSubscription(f"sub-{self._counter}", session_id, callback)
        self.subscriptions[subscription.id] = subscription
        self.log.append(("subscribe", session_id))
        return subscription.id

    async def unsubscribe(self, subscription_id: str) -> None:
        """구독 해제 (없는 ID는 무시)"""
        subscription = self.subscriptions.pop(subscription_id, None)
        if subscription is not None:
            self.log.append(("unsubscribe", subscription.session_id))

    async def publish(self, event: ChangeEvent) -> int:
        """이벤트 발행

        Returns:
            호출된 콜백 수
        """
        delivered = 0
        for subscription in list(self.subscriptions.values()):
            if subscription.session_id == event.session_id:
                await subscription.callback(event)
                delivered += 1
        return delivered

    async def emit(
        self,
        session_id: str,
        kind: ChangeKind = ChangeKind.MOVEMENT_INSERTED,
    ) -> int:
        """간단 발행 헬퍼"""
        return await self.publish(ChangeEvent(kind=kind, session_id=session_id))

    # -------------------------------------------------------------------------
    # 테스트 헬퍼 메서드
    # -------------------------------------------------------------------------

    @property
    def active_session_ids(self) -> list[str]:
        """구독 중인 세션 ID 목록"""
        return [s.session_id for s in self.subscriptions.values()]
