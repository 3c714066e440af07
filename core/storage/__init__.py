"""
스토리지 모듈

원격 원장 조회 결과를 보관하는 read-through 캐시 제공
"""

from core.storage.cache import SESSION_KEY, CacheKey, ReadThroughCache, movements_key

__all__ = [
    "CacheKey",
    "ReadThroughCache",
    "SESSION_KEY",
    "movements_key",
]
