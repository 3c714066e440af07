"""
Read-through 캐시

키별로 원격 조회 결과를 보관하는 인메모리 캐시.
- get(key, loader): 캐시 적중이면 즉시 반환, 아니면 loader 실행 후 저장
- 같은 키의 동시 조회는 진행 중인 한 번의 로드를 공유
- invalidate(key): 항목 제거 (진행 중 로드 결과는 저장하지 않음)

키 규칙:
- ("session", "current"): 현재 세션
- ("movements", session_id): 세션별 이동 목록
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable

logger = logging.getLogger(__name__)

CacheKey = tuple[Hashable, ...]
Loader = Callable[[], Awaitable[Any]]

SESSION_KEY: CacheKey = ("session", "current")


def movements_key(session_id: str) -> CacheKey:
    """세션별 이동 목록 캐시 키"""
    return ("movements", session_id)


class ReadThroughCache:
    """Read-through 캐시

    캐시는 원장의 사본일 뿐이며 직접 수정하지 않는다.
    쓰기 후에는 invalidate로 항목을 버리고 다음 get에서 다시 읽는다.

    Example:
        cache = ReadThroughCache()
        session = await cache.get(SESSION_KEY, store.get_current_session)
        cache.invalidate(SESSION_KEY)
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, Any] = {}
        self._inflight: dict[CacheKey, asyncio.Future[Any]] = {}
        # 무효화 세대 (진행 중 로드가 무효화 이후 결과를 저장하지 않도록)
        self._generation: dict[CacheKey, int] = {}

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: CacheKey, default: Any = None) -> Any:
        """로드 없이 캐시 값 조회"""
        return self._entries.get(key, default)

    async def get(self, key: CacheKey, loader: Loader) -> Any:
        """캐시 조회 (미스 시 loader 실행)

        Args:
            key: 캐시 키
            loader: 인자 없는 비동기 조회 함수

        Returns:
            캐시 값 또는 새로 로드한 값

        Raises:
            loader가 던진 예외 (실패한 결과는 캐시하지 않음)
        """
        if key in self._entries:
            logger.debug(f"Cache hit: {key}")
            return self._entries[key]

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug(f"Cache load shared: {key}")
            return await asyncio.shield(pending)

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        self._inflight[key] = future
        generation = self._generation.get(key, 0)

        try:
            value = await loader()
        except BaseException as e:
            if not future.done():
                future.set_exception(e)
                # 공유 대기자가 없을 때 "exception never retrieved" 경고 방지
                future.exception()
            raise
        else:
            if self._generation.get(key, 0) == generation:
                self._entries[key] = value
                logger.debug(f"Cache stored: {key}")
            else:
                logger.debug(f"Cache load discarded after invalidate: {key}")
            if not future.done():
                future.set_result(value)
            return value
        finally:
            if self._inflight.get(key) is future:
                del self._inflight[key]

    def set(self, key: CacheKey, value: Any) -> None:
        """값 직접 저장 (테스트/초기화용)"""
        self._entries[key] = value

    def invalidate(self, key: CacheKey) -> bool:
        """항목 무효화

        Returns:
            제거된 항목이 있었는지 여부
        """
        self._generation[key] = self._generation.get(key, 0) + 1
        self._inflight.pop(key, None)
        removed = key in self._entries
        self._entries.pop(key, None)
        if removed:
            logger.debug(f"Cache invalidated: {key}")
        return removed

    def invalidate_prefix(self, prefix: Hashable) -> int:
        """첫 요소가 prefix인 모든 항목 무효화

        Returns:
            제거된 항목 수
        """
        keys = {k for k in self._entries if k and k[0] == prefix}
        keys.update(k for k in self._inflight if k and k[0] == prefix)
        removed = 0
        for key in keys:
            if self.invalidate(key):
                removed += 1
        return removed

    def clear(self) -> None:
        """전체 비우기"""
        for key in set(self._entries) | set(self._inflight):
            self._generation[key] = self._generation.get(key, 0) + 1
        self._entries.clear()
        self._inflight.clear()
