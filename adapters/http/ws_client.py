"""
원격 현금 저장소 변경 피드 WebSocket 클라이언트

세션 단위 구독으로 "이동 등록"/"세션 변경" 알림 수신.
IChangeFeed Protocol 준수.

프레임 형식:
- 송신: {"action": "subscribe" | "unsubscribe", "sessionId": "...", "id": "<구독 ID>"}
- 수신: {"event": "movement_inserted" | "session_updated", "sessionId": "...", "data": {...}}
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from adapters.interfaces import ChangeCallback
from adapters.models import ChangeEvent
from core.constants import Headers
from core.types import ChangeKind, ConnectionState

logger = logging.getLogger(__name__)


StateChangeCallback = Callable[[ConnectionState], Awaitable[None]]


@dataclass(frozen=True)
class _Subscription:
    id: str
    session_id: str
    callback: ChangeCallback


class ChangeFeedClient:
    """변경 피드 WebSocket 클라이언트

    연결 하나로 여러 세션 구독을 다중화한다. 연결이 끊기면 지수 백오프로
    재연결하고 활성 구독을 다시 보낸다.

    Args:
        ws_url: WebSocket URL (예: wss://pos.example.com/cash/changes)
        token: Bearer 토큰
        organization_id: 조직 ID
        on_state_change: 연결 상태 변경 콜백
        connect: WebSocket 연결 함수 (테스트용 주입)
    """

    # 상수
    RECONNECT_MIN_DELAY = 1  # 최소 재연결 대기 (초)
    RECONNECT_MAX_DELAY = 30  # 최대 재연결 대기 (초)
    PING_INTERVAL = 30  # ping 간격 (초)
    PING_TIMEOUT = 10  # ping 타임아웃 (초)

    def __init__(
        self,
        ws_url: str,
        token: str,
        organization_id: str,
        on_state_change: StateChangeCallback | None = None,
        connect: Callable[..., Any] | None = None,
    ):
        self.ws_url = ws_url
        self.token = token
        self.organization_id = organization_id
        self.on_state_change = on_state_change
        self._connect = connect or ws_connect

        self._state = ConnectionState.DISCONNECTED
        self._ws: Any = None
        self._subscriptions: dict[str, _Subscription] = {}

        # 태스크 관리
        self._run_task: asyncio.Task[None] | None = None
        self._should_run = False

    @property
    def state(self) -> ConnectionState:
        """현재 연결 상태"""
        return self._state

    @property
    def subscription_count(self) -> int:
        """활성 구독 수"""
        return len(self._subscriptions)

    async def start(self) -> None:
        """연결 루프 시작 (이미 실행 중이면 무시)"""
        if self._run_task is not None and not self._run_task.done():
            return
        self._should_run = True
        self._run_task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        """연결 종료 (구독 목록은 유지)"""
        self._should_run = False

        if self._run_task is not None:
            self._run_task.cancel()
            try:
                await self._run_task
            except asyncio.CancelledError:
                pass
            self._run_task = None

        await self._close_socket()
        await self._set_state(ConnectionState.DISCONNECTED)
        logger.info("변경 피드 연결 종료")

    # -------------------------------------------------------------------------
    # 구독
    # -------------------------------------------------------------------------

    async def subscribe(self, session_id: str, callback: ChangeCallback) -> str:
        """세션 변경 구독

        연결 전이면 등록만 해두고 연결 시 전송한다.

        Returns:
            구독 ID
        """
        subscription = _Subscription(
            id=uuid.uuid4().hex,
            session_id=session_id,
            callback=callback,
        )
        self._subscriptions[subscription.id] = subscription

        await self._send_frame("subscribe", subscription)

        logger.debug(
            "변경 피드 구독",
            extra={"subscription_id": subscription.id, "session_id": session_id},
        )
        return subscription.id

    async def unsubscribe(self, subscription_id: str) -> None:
        """구독 해제 (없는 ID는 무시)"""
        subscription = self._subscriptions.pop(subscription_id, None)
        if subscription is None:
            return

        await self._send_frame("unsubscribe", subscription)

        logger.debug(
            "변경 피드 구독 해제",
            extra={"subscription_id": subscription_id, "session_id": subscription.session_id},
        )

    async def _send_frame(self, action: str, subscription: _Subscription) -> None:
        """구독 프레임 전송 (미연결이면 생략, 재연결 시 재전송)"""
        if self._ws is None or self._state != ConnectionState.CONNECTED:
            return

        frame = {"action": action, "sessionId": subscription.session_id, "id": subscription.id}
        try:
            await self._ws.send(json.dumps(frame))
        except ConnectionClosed as e:
            logger.warning(
                "구독 프레임 전송 실패, 재연결 시 재전송",
                extra={"action": action, "error": str(e)},
            )

    # -------------------------------------------------------------------------
    # 연결 루프
    # -------------------------------------------------------------------------

    async def _run_loop(self) -> None:
        """연결 → 재구독 → 수신, 끊기면 지수 백오프로 재연결"""
        delay = self.RECONNECT_MIN_DELAY
        first = True

        while self._should_run:
            await self._set_state(
                ConnectionState.CONNECTING if first else ConnectionState.RECONNECTING
            )
            first = False

            try:
                self._ws = await self._connect(
                    self.ws_url,
                    additional_headers={
                        "Authorization": f"Bearer {self.token}",
                        Headers.ORGANIZATION: self.organization_id,
                    },
                    ping_interval=self.PING_INTERVAL,
                    ping_timeout=self.PING_TIMEOUT,
                )
                await self._set_state(ConnectionState.CONNECTED)
                logger.info("변경 피드 연결 성공", extra={"url": self.ws_url})
                delay = self.RECONNECT_MIN_DELAY

                for subscription in list(self._subscriptions.values()):
                    await self._send_frame("subscribe", subscription)

                await self._receive_loop()

            except asyncio.CancelledError:
                raise
            except ConnectionClosed as e:
                logger.warning(
                    "변경 피드 연결 끊김",
                    extra={"error": str(e)},
                )
            except (WebSocketException, OSError, asyncio.TimeoutError) as e:
                logger.warning(
                    "변경 피드 연결 실패",
                    extra={"error": str(e), "next_delay": delay},
                )
            finally:
                await self._close_socket()

            if not self._should_run:
                break

            await self._set_state(ConnectionState.RECONNECTING)
            await asyncio.sleep(delay)
            delay = min(delay * 2, self.RECONNECT_MAX_DELAY)

    async def _receive_loop(self) -> None:
        """메시지 수신 루프 (정상 종료 시 반환)"""
        async for message in self._ws:
            await self._dispatch(message)

    async def _dispatch(self, message: str | bytes) -> None:
        """수신 메시지를 해당 세션 구독 콜백으로 전달"""
        try:
            data = json.loads(message)
        except json.JSONDecodeError as e:
            logger.warning(
                "메시지 파싱 실패",
                extra={"error": str(e), "raw": str(message)[:100]},
            )
            return

        if not isinstance(data, dict):
            return

        try:
            kind = ChangeKind(data.get("event"))
        except ValueError:
            logger.debug("알 수 없는 이벤트 무시", extra={"event": data.get("event")})
            return

        session_id = data.get("sessionId") or data.get("session_id")
        if not session_id:
            return

        event = ChangeEvent(
            kind=kind,
            session_id=str(session_id),
            payload=data.get("data") or {},
        )

        for subscription in list(self._subscriptions.values()):
            if subscription.session_id != event.session_id:
                continue
            try:
                await subscription.callback(event)
            except Exception as e:
                logger.error(
                    "변경 콜백 처리 중 에러",
                    extra={"subscription_id": subscription.id, "error": str(e)},
                    exc_info=True,
                )

    async def _close_socket(self) -> None:
        if self._ws is None:
            return
        ws, self._ws = self._ws, None
        try:
            await ws.close()
        except (WebSocketException, OSError) as e:
            logger.debug("WebSocket 종료 중 에러", extra={"error": str(e)})

    async def _set_state(self, new_state: ConnectionState) -> None:
        """상태 변경 및 콜백 호출"""
        old_state = self._state
        self._state = new_state

        if old_state != new_state:
            logger.info(
                "변경 피드 상태 변경",
                extra={"old_state": old_state.value, "new_state": new_state.value},
            )

            if self.on_state_change is not None:
                try:
                    await self.on_state_change(new_state)
                except Exception as e:
                    logger.error(
                        "상태 변경 콜백 에러",
                        extra={"error": str(e)},
                    )

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "ChangeFeedClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()
