"""
단발성 디바운스 타이머

짧은 시간 안에 몰려오는 알림을 한 번의 동작으로 합친다.
타이머는 태스크 핸들 하나로 관리하며 취소는 여러 번 호출해도 안전하다.
"""

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """취소 가능한 단발성 타이머

    schedule()이 호출될 때마다 기존 타이머를 취소하고 새로 건다.
    마지막 호출 후 delay가 지나야 action이 한 번 실행된다.

    Args:
        action: 실행할 비동기 함수
        delay: 대기 시간 (초)
    """

    def __init__(self, action: Callable[[], Awaitable[None]], delay: float):
        if delay < 0:
            raise ValueError(f"delay must be >= 0: {delay}")
        self.action = action
        self.delay = delay

        self._task: asyncio.Task[None] | None = None
        # 타이머 만료 후 action을 실행 중인 태스크
        self._running: asyncio.Task[None] | None = None
        self._closed = False
        self.fire_count = 0

    @property
    def pending(self) -> bool:
        """대기 중인 타이머 존재 여부"""
        return self._task is not None and not self._task.done()

    @property
    def running(self) -> bool:
        """action 실행 중 여부"""
        return self._running is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self) -> None:
        """타이머 (재)시작 (close 이후에는 무시)"""
        if self._closed:
            return
        self.cancel()
        self._task = asyncio.create_task(self._fire_later())

    def cancel(self) -> None:
        """대기 중인 타이머 취소"""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def close(self) -> None:
        """타이머 영구 중지"""
        self._closed = True
        self.cancel()

    async def _fire_later(self) -> None:
        await asyncio.sleep(self.delay)
        # 만료 직후 close된 경우
        if self._closed:
            return
        self._task = None
        self._running = asyncio.current_task()
        self.fire_count += 1
        try:
            await self.action()
        except Exception as e:
            logger.error(
                "디바운스 동작 실패",
                extra={"error": str(e)},
                exc_info=True,
            )
        finally:
            if self._running is asyncio.current_task():
                self._running = None

    async def wait_idle(self) -> None:
        """실행 중인 action이 끝날 때까지 대기

        대기 중인 타이머는 건드리지 않는다. action 안에서 호출하면 바로 반환.
        """
        task = self._running
        if task is None or task is asyncio.current_task():
            return
        await asyncio.wait({task})
