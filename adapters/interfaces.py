"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from adapters.models import (
    ChangeEvent,
    CloseSessionRequest,
    ConfirmationRequest,
    MovementRequest,
    OpenSessionRequest,
)
from core.domain.models import Movement, Session
from core.types import NotificationSeverity, SessionStatus


@runtime_checkable
class ICashDataStore(Protocol):
    """원격 현금 저장소 인터페이스

    세션과 이동의 소유자. 단일 OPEN 세션 불변식은 저장소가 보장한다.
    금액은 반드시 Decimal 타입 사용.
    """

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_current_session(self) -> Session | None:
        """현재 열린 세션 조회

        Returns:
            OPEN 세션 또는 None
        """
        ...

    async def get_session(self, session_id: str) -> Session | None:
        """세션 단건 조회"""
        ...

    async def list_sessions(
        self,
        status: SessionStatus | None = None,
        limit: int = 50,
    ) -> list[Session]:
        """세션 목록 조회 (최근 개시 순)"""
        ...

    async def list_movements(self, session_id: str) -> list[Movement]:
        """세션의 전체 이동 스냅샷 조회 (모든 페이지)

        Args:
            session_id: 세션 ID

        Returns:
            해당 세션의 이동 목록 전체
        """
        ...

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    async def open_session(
        self,
        request: OpenSessionRequest,
        idempotency_key: str | None = None,
    ) -> Session:
        """세션 개시

        Raises:
            CashApiError: 이미 열린 세션 존재 등 서버 거부
        """
        ...

    async def close_session(
        self,
        request: CloseSessionRequest,
        idempotency_key: str | None = None,
    ) -> Session:
        """세션 마감 (차액 기록)"""
        ...

    async def create_movement(
        self,
        request: MovementRequest,
        idempotency_key: str | None = None,
    ) -> Movement:
        """이동 등록"""
        ...


# 변경 피드 콜백 타입 정의
ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]


@runtime_checkable
class IChangeFeed(Protocol):
    """변경 알림 피드 인터페이스

    구독은 세션 단위로 한정된다.
    """

    async def subscribe(self, session_id: str, callback: ChangeCallback) -> str:
        """세션 변경 구독

        Returns:
            구독 ID
        """
        ...

    async def unsubscribe(self, subscription_id: str) -> None:
        """구독 해제 (없는 ID는 무시)"""
        ...


@runtime_checkable
class IConfirmationPrompt(Protocol):
    """위험 작업 확인 프롬프트 인터페이스"""

    async def confirm(self, request: ConfirmationRequest) -> bool:
        """확인 요청

        Returns:
            True: 사용자가 확인
            False: 취소 (작업 중단)
        """
        ...


@runtime_checkable
class INotifier(Protocol):
    """사용자 알림 인터페이스

    성공/오류/경고 메시지를 사용자에게 전달.
    """

    async def send(
        self,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Args:
            message: 알림 메시지
            severity: 알림 심각도
            extra: 추가 데이터 (선택)

        Returns:
            전송 성공 여부
        """
        ...
