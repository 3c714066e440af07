"""
Drawer Bootstrap

설정 로드, 의존성 주입, 생명주기 관리.
HTTP 저장소 + 변경 피드 WebSocket을 설정에서 생성하여 CashDrawer에 연결한다.
"""

import logging
from typing import Any

from adapters.http.rest_client import CashApiClient
from adapters.http.ws_client import ChangeFeedClient
from adapters.interfaces import ICashDataStore, IChangeFeed, IConfirmationPrompt, INotifier
from core.config.loader import DrawerSettings
from core.types import ConnectionState
from drawer.dashboard import CashDrawer

logger = logging.getLogger("drawer")


class DrawerApp:
    """현금 서랍 애플리케이션

    어댑터와 CashDrawer를 묶어 시작/종료 순서를 관리한다.

    Args:
        settings: 설정 객체
        drawer: 현금 서랍 대시보드
        rest_client: 소유한 HTTP 클라이언트 (종료 시 close)
        ws_client: 소유한 변경 피드 클라이언트 (시작/종료 관리)
    """

    def __init__(
        self,
        settings: DrawerSettings,
        drawer: CashDrawer,
        rest_client: CashApiClient | None = None,
        ws_client: ChangeFeedClient | None = None,
    ):
        self.settings = settings
        self.drawer = drawer
        self.rest_client = rest_client
        self.ws_client = ws_client

    async def start(self) -> None:
        """변경 피드 연결 → 최초 조회"""
        if self.ws_client is not None:
            await self.ws_client.start()
        await self.drawer.start()
        logger.info(
            "현금 서랍 준비 완료",
            extra={
                "session_id": self.drawer.snapshot.session_id,
                "realtime": self.ws_client is not None,
            },
        )

    async def stop(self) -> None:
        """구독 해제 → 피드 종료 → HTTP 종료 (역순)"""
        await self.drawer.stop()
        if self.ws_client is not None:
            await self.ws_client.stop()
        if self.rest_client is not None:
            await self.rest_client.close()

    async def __aenter__(self) -> "DrawerApp":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()


async def _log_feed_state(state: ConnectionState) -> None:
    if state == ConnectionState.RECONNECTING:
        logger.warning("변경 피드 재연결 중, 실시간 갱신 지연 가능")


def build_drawer(
    settings: DrawerSettings,
    prompt: IConfirmationPrompt,
    notifier: INotifier,
    store: ICashDataStore | None = None,
    feed: IChangeFeed | None = None,
) -> DrawerApp:
    """설정으로 DrawerApp 생성

    store/feed를 주입하면 해당 어댑터를 쓰고, 생략하면 설정의 api 섹션으로
    HTTP/WebSocket 클라이언트를 만든다. ws_url이 없거나 realtime.enabled가
    false면 실시간 재조회 없이 동작한다.

    Args:
        settings: 설정 객체
        prompt: 확인 프롬프트
        notifier: 사용자 알림
        store: 저장소 (테스트 주입용)
        feed: 변경 피드 (테스트 주입용)

    Returns:
        DrawerApp
    """
    rest_client: CashApiClient | None = None
    ws_client: ChangeFeedClient | None = None

    if store is None:
        rest_client = CashApiClient(
            base_url=settings.api.base_url,
            token=settings.api.token,
            organization_id=settings.api.organization_id,
            timeout=settings.api.timeout,
            max_retries=settings.api.max_retries,
        )
        store = rest_client

    # realtime_enabled가 거짓이면 ws_url 무시
    ws_url = settings.api.ws_url if settings.realtime_enabled else None
    if feed is None and ws_url:
        ws_client = ChangeFeedClient(
            ws_url=ws_url,
            token=settings.api.token,
            organization_id=settings.api.organization_id,
            on_state_change=_log_feed_state,
        )
        feed = ws_client

    drawer = CashDrawer(
        store=store,
        prompt=prompt,
        notifier=notifier,
        feed=feed,
        limits=settings.limits,
        debounce_seconds=settings.realtime.debounce_seconds,
        tz=settings.display_tz,
    )

    logger.info(
        "현금 서랍 구성 완료",
        extra={
            "base_url": settings.api.base_url,
            "realtime": feed is not None,
        },
    )
    return DrawerApp(settings, drawer, rest_client, ws_client)
