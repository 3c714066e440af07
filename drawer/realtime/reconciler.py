"""
실시간 재조회

활성 세션 하나에 대한 변경 알림을 구독하고, 알림 폭주를 디바운스하여
한 번의 재조회로 합친다. 알림 페이로드로 원장을 직접 고치지 않고
항상 새로 가져온다.
"""

import logging
from typing import Awaitable, Callable

from adapters.interfaces import IChangeFeed
from adapters.models import ChangeEvent
from core.constants import Defaults
from drawer.realtime.debouncer import Debouncer

logger = logging.getLogger(__name__)


class RealtimeReconciler:
    """세션 단위 변경 구독 + 디바운스 재조회

    Args:
        feed: 변경 피드
        on_refresh: 재조회 함수 (캐시 무효화 + 재조회)
        debounce_seconds: 디바운스 대기 (초)

    사용 예시:
    ```python
    reconciler = RealtimeReconciler(feed, drawer.refresh)
    await reconciler.watch(session.id)
    ...
    await reconciler.stop()
    ```
    """

    def __init__(
        self,
        feed: IChangeFeed,
        on_refresh: Callable[[], Awaitable[None]],
        debounce_seconds: float = Defaults.DEBOUNCE_SEC,
    ):
        self.feed = feed
        self.on_refresh = on_refresh
        self._debouncer = Debouncer(self._refresh, debounce_seconds)

        self._session_id: str | None = None
        self._subscription_id: str | None = None
        self.event_count = 0

    @property
    def session_id(self) -> str | None:
        """현재 구독 중인 세션 ID"""
        return self._session_id

    @property
    def refresh_count(self) -> int:
        """디바운스 후 실행된 재조회 횟수"""
        return self._debouncer.fire_count

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    async def watch(self, session_id: str | None) -> None:
        """구독 대상 세션 변경

        기존 타이머와 구독을 먼저 정리한 뒤 새 세션을 구독한다.
        None이면 정리만 한다.
        """
        if session_id == self._session_id and self._subscription_id is not None:
            return

        await self._teardown()

        if session_id is None:
            return

        self._subscription_id = await self.feed.subscribe(session_id, self._on_change)
        self._session_id = session_id
        logger.info("실시간 구독 시작", extra={"session_id": session_id})

    async def stop(self) -> None:
        """구독 해제

        대기 중인 타이머는 취소하고 이미 실행 중인 재조회는 끝날 때까지
        기다린다. 이후 watch로 다시 구독할 수 있다.
        """
        self._debouncer.cancel()
        await self._debouncer.wait_idle()
        await self._teardown()

    async def _teardown(self) -> None:
        self._debouncer.cancel()

        subscription_id, self._subscription_id = self._subscription_id, None
        session_id, self._session_id = self._session_id, None
        if subscription_id is None:
            return

        await self.feed.unsubscribe(subscription_id)
        logger.info("실시간 구독 해제", extra={"session_id": session_id})

    async def _on_change(self, event: ChangeEvent) -> None:
        # 해제 직전에 도착한 다른 세션 알림
        if event.session_id != self._session_id:
            return

        self.event_count += 1
        logger.debug(
            "변경 알림 수신",
            extra={"kind": event.kind.value, "session_id": event.session_id},
        )
        self._debouncer.schedule()

    async def _refresh(self) -> None:
        logger.debug("디바운스 재조회", extra={"session_id": self._session_id})
        await self.on_refresh()
