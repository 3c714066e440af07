"""
원격 현금 저장소 REST API 클라이언트

Bearer 토큰 + 조직 헤더 인증, Idempotency-Key, Decimal 사용.
ICashDataStore Protocol 준수.
"""

import asyncio
import json
import logging
import math
from decimal import Decimal
from typing import Any

import httpx

from adapters.http.errors import CashApiError, PayloadError, RateLimitError
from adapters.http.parsers import parse_movement, parse_session, unwrap
from adapters.models import CloseSessionRequest, MovementRequest, OpenSessionRequest
from core.constants import ApiPaths, Defaults, Headers
from core.domain.models import Movement, Session
from core.types import SessionStatus

logger = logging.getLogger(__name__)

# 429 응답의 Retry-After가 없거나 읽을 수 없을 때 대기 시간 (초)
DEFAULT_RETRY_AFTER_SEC: float = 5.0


def parse_retry_after(value: str | None) -> float:
    """Retry-After 헤더를 대기 초로 변환

    초 단위 숫자만 인정한다. 없거나 HTTP-date 등 숫자가 아니면 기본값.
    """
    if value is None:
        return DEFAULT_RETRY_AFTER_SEC
    try:
        seconds = float(value)
    except ValueError:
        logger.debug("Unparsable Retry-After", extra={"retry_after": value})
        return DEFAULT_RETRY_AFTER_SEC
    if not math.isfinite(seconds) or seconds < 0:
        return DEFAULT_RETRY_AFTER_SEC
    return seconds


class CashApiClient:
    """원격 현금 저장소 REST API 클라이언트

    ICashDataStore Protocol 구현.
    모든 금액은 Decimal 타입으로 반환하며, 요청 바디의 금액은 문자열로 보낸다.

    재시도 규칙:
    - 429: Retry-After만큼 대기 후 재시도
    - 타임아웃/전송 오류: 조회는 선형 backoff로 재시도,
      쓰기는 idempotency key가 있을 때만 같은 키로 재시도

    Args:
        base_url: REST API 베이스 URL
        token: Bearer 토큰
        organization_id: 조직 ID (X-Organization-Id 헤더)
        timeout: 요청 타임아웃 (초)
        max_retries: 최대 시도 횟수
        transport: httpx 전송 계층 (테스트용 MockTransport 주입)
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        organization_id: str,
        timeout: float = Defaults.API_TIMEOUT_SEC,
        max_retries: int = Defaults.API_MAX_RETRIES,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_backoff: float = 1.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.organization_id = organization_id
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff

        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 가져오기 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _headers(self, idempotency_key: str | None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.token}",
            Headers.ORGANIZATION: self.organization_id,
            "Accept": "application/json",
        }
        if idempotency_key:
            headers[Headers.IDEMPOTENCY_KEY] = idempotency_key
        return headers

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        """4xx/5xx 응답을 CashApiError로 변환"""
        try:
            error_data = response.json()
        except ValueError:
            error_data = None

        if isinstance(error_data, dict):
            message = error_data.get("error") or error_data.get("message") or response.text
            details = error_data.get("details")
            # {error, message} 둘 다 있으면 message는 상세 설명
            if details is None and error_data.get("error") and error_data.get("message"):
                details = error_data.get("message")
        else:
            message = response.text or response.reason_phrase
            details = None

        raise CashApiError(
            status_code=response.status_code,
            message=str(message),
            details=details,
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> Any:
        """API 요청 실행

        Args:
            method: HTTP 메서드 (GET, POST)
            path: API 경로 (예: /cash/session/open)
            params: 쿼리 파라미터
            body: JSON 바디
            idempotency_key: 쓰기 요청 멱등 키 (재시도 시 재사용)

        Returns:
            JSON 응답 (실수는 Decimal로 파싱)

        Raises:
            RateLimitError: 429 응답이 재시도 한도 초과
            CashApiError: API 에러 응답
            httpx.TimeoutException / httpx.RequestError: 재시도 한도 초과
        """
        is_write = method.upper() != "GET"
        retry_transport = not is_write or idempotency_key is not None
        headers = self._headers(idempotency_key)
        content = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(body, default=str)

        client = await self._get_client()

        for attempt in range(self.max_retries):
            last_attempt = attempt >= self.max_retries - 1
            try:
                response = await client.request(
                    method,
                    path,
                    params=params,
                    content=content,
                    headers=headers,
                )
            except httpx.TimeoutException:
                logger.warning(
                    "Request timeout",
                    extra={"path": path, "attempt": attempt + 1},
                )
                if retry_transport and not last_attempt:
                    await asyncio.sleep(self.retry_backoff * (attempt + 1))
                    continue
                raise
            except httpx.RequestError as e:
                logger.error(
                    "Request error",
                    extra={"path": path, "error": str(e), "attempt": attempt + 1},
                )
                if retry_transport and not last_attempt:
                    await asyncio.sleep(self.retry_backoff * (attempt + 1))
                    continue
                raise

            if response.status_code == 429:
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
                logger.warning(
                    "Rate limited by cash API",
                    extra={"retry_after": retry_after, "attempt": attempt + 1},
                )
                if not last_attempt:
                    await asyncio.sleep(retry_after)
                    continue
                raise RateLimitError(retry_after=retry_after)

            if response.status_code >= 400:
                self._raise_for_error(response)

            if not response.content:
                return None

            try:
                return response.json(parse_float=Decimal)
            except ValueError as e:
                raise PayloadError("JSON 응답 파싱 실패", response.text) from e

        # 모든 재시도 실패
        raise CashApiError(status_code=-1, message="All retries failed")

    # -------------------------------------------------------------------------
    # 세션 조회
    # -------------------------------------------------------------------------

    async def get_current_session(self) -> Session | None:
        """현재 열린 세션 조회 (없으면 None)"""
        try:
            data = await self._request("GET", ApiPaths.CURRENT_SESSION)
        except CashApiError as e:
            if e.status_code == 404:
                return None
            raise

        session = unwrap(data, "session")
        return parse_session(session) if session else None

    async def get_session(self, session_id: str) -> Session | None:
        """세션 단건 조회 (없으면 None)"""
        try:
            data = await self._request("GET", f"{ApiPaths.SESSIONS}/{session_id}")
        except CashApiError as e:
            if e.status_code == 404:
                return None
            raise

        session = unwrap(data, "session")
        return parse_session(session) if session else None

    async def list_sessions(
        self,
        status: SessionStatus | None = None,
        limit: int = Defaults.SESSIONS_FETCH_LIMIT,
    ) -> list[Session]:
        """세션 목록 조회 (최근 개시 순, 첫 페이지)"""
        params: dict[str, Any] = {"page": 1, "limit": limit}
        if status is not None:
            params["status"] = status.value

        data = await self._request("GET", ApiPaths.SESSIONS, params=params)
        items = unwrap(data, "sessions") or []
        return [parse_session(item) for item in items]

    # -------------------------------------------------------------------------
    # 이동 조회
    # -------------------------------------------------------------------------

    async def list_movements(self, session_id: str) -> list[Movement]:
        """세션의 전체 이동 조회

        페이지(최대 200건)를 끝까지 당겨 하나의 스냅샷으로 반환한다.
        """
        movements: list[Movement] = []
        page = 1

        while True:
            data = await self._request(
                "GET",
                ApiPaths.MOVEMENTS,
                params={
                    "sessionId": session_id,
                    "page": page,
                    "limit": Defaults.MOVEMENTS_FETCH_LIMIT,
                },
            )
            items = unwrap(data, "movements") or []
            movements.extend(parse_movement(item) for item in items)

            pagination = data.get("pagination") if isinstance(data, dict) else None
            if pagination:
                pages = int(pagination.get("pages") or 0)
                if page >= pages:
                    break
            elif len(items) < Defaults.MOVEMENTS_FETCH_LIMIT:
                break

            if not items:
                break
            page += 1

        logger.debug(
            "Fetched movements",
            extra={"session_id": session_id, "count": len(movements), "pages": page},
        )
        return movements

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    async def open_session(
        self,
        request: OpenSessionRequest,
        idempotency_key: str | None = None,
    ) -> Session:
        """세션 개시"""
        data = await self._request(
            "POST",
            ApiPaths.OPEN_SESSION,
            body=request.to_payload(),
            idempotency_key=idempotency_key,
        )
        session = parse_session(unwrap(data, "session"))

        logger.info(
            "Cash session opened",
            extra={"session_id": session.id, "opening_amount": str(session.opening_amount)},
        )
        return session

    async def close_session(
        self,
        request: CloseSessionRequest,
        idempotency_key: str | None = None,
    ) -> Session:
        """세션 마감"""
        data = await self._request(
            "POST",
            ApiPaths.CLOSE_SESSION,
            body=request.to_payload(),
            idempotency_key=idempotency_key,
        )
        session = parse_session(unwrap(data, "session"))

        logger.info(
            "Cash session closed",
            extra={
                "session_id": session.id,
                "closing_amount": str(request.closing_amount),
                "system_expected": str(request.system_expected),
            },
        )
        return session

    async def create_movement(
        self,
        request: MovementRequest,
        idempotency_key: str | None = None,
    ) -> Movement:
        """이동 등록"""
        data = await self._request(
            "POST",
            ApiPaths.MOVEMENTS,
            body=request.to_payload(),
            idempotency_key=idempotency_key,
        )
        movement = parse_movement(unwrap(data, "movement"))

        logger.info(
            "Cash movement created",
            extra={
                "movement_id": movement.id,
                "type": movement.type.value,
                "amount": str(movement.amount),
            },
        )
        return movement
