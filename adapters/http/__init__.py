"""
원격 현금 저장소 어댑터

REST API(httpx)와 변경 피드 WebSocket(websockets) 연동을 담당.
"""

from adapters.http.errors import CashApiError, PayloadError, RateLimitError
from adapters.http.parsers import parse_movement, parse_session, parse_user
from adapters.http.rest_client import CashApiClient
from adapters.http.ws_client import ChangeFeedClient

__all__ = [
    "CashApiClient",
    "ChangeFeedClient",
    "CashApiError",
    "PayloadError",
    "RateLimitError",
    "parse_movement",
    "parse_session",
    "parse_user",
]
