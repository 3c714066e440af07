"""
Mock 현금 저장소

테스트용 인메모리 원격 저장소.
ICashDataStore Protocol 준수.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from adapters.http.errors import CashApiError
from adapters.models import (
    ChangeEvent,
    CloseSessionRequest,
    MovementRequest,
    OpenSessionRequest,
)
from core.domain.models import Movement, Session
from core.types import ChangeKind, SessionStatus


@dataclass
class CallRecord:
    """저장소 호출 기록"""

    operation: str
    args: dict[str, Any]
    idempotency_key: str | None = None


@dataclass
class MockStoreState:
    """Mock 상태 (메모리 내 저장)"""

    # 세션 (session_id -> Session), 삽입 순서 = 개시 순서
    sessions: dict[str, Session] = field(default_factory=dict)

    # 이동 (movement_id -> Movement)
    movements: dict[str, Movement] = field(default_factory=dict)

    # idempotency key -> 최초 결과
    replays: dict[str, Any] = field(default_factory=dict)

    # 작업별 예정된 실패 (operation -> 예외)
    scheduled_failures: dict[str, Exception] = field(default_factory=dict)

    # 호출 기록
    calls: list[CallRecord] = field(default_factory=list)

    counter: int = 0


class InMemoryCashDataStore:
    """인메모리 현금 저장소

    ICashDataStore Protocol 구현.
    서버 규칙(단일 OPEN 세션, 열린 세션에만 이동 등록, 마감 차액 기록)과
    Idempotency-Key 재생을 흉내낸다.

    사용 예시:
    ```python
    store = InMemoryCashDataStore()
    session = store.seed_session(opening_amount=Decimal("1000"))
    store.seed_movement(session.id, MovementType.SALE, Decimal("500"))

    store.fail_next("create_movement", CashApiError(403, "permission denied"))
    ```

    Args:
        state: 초기 상태 (None이면 빈 상태)
        change_feed: 쓰기 후 변경 이벤트를 발행할 MockChangeFeed (선택)
        user_id: 생성자/개시자로 기록할 사용자 ID
        latency: 각 호출의 인위적 지연 (초)
    """

    def __init__(
        self,
        state: MockStoreState | None = None,
        change_feed: Any = None,
        user_id: str = "user-1",
        latency: float = 0.0,
    ):
        self.state = state or MockStoreState()
        self.change_feed = change_feed
        self.user_id = user_id
        self.latency = latency

    # -------------------------------------------------------------------------
    # 상태 조작 메서드 (테스트용)
    # -------------------------------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        self.state.counter += 1
        return f"{prefix}-{self.state.counter}"

    def seed_session(
        self,
        opening_amount: Decimal = Decimal("0"),
        status: SessionStatus = SessionStatus.OPEN,
        opened_at: datetime | None = None,
        **kwargs: Any,
    ) -> Session:
        """세션 직접 추가 (단일 OPEN 규칙 검사 안 함)"""
        session = Session(
            id=kwargs.pop("id", None) or self._next_id("session"),
            status=status,
            opening_amount=opening_amount,
            opened_at=opened_at or datetime.now(timezone.utc),
            opened_by=kwargs.pop("opened_by", self.user_id),
            **kwargs,
        )
        self.state.sessions[session.id] = session
        return session

    def seed_movement(
        self,
        session_id: str,
        movement_type: Any,
        amount: Decimal,
        created_at: datetime | None = None,
        **kwargs: Any,
    ) -> Movement:
        """이동 직접 추가 (정규화/검증 안 함)"""
        movement = Movement(
            id=kwargs.pop("id", None) or self._next_id("movement"),
            session_id=session_id,
            type=movement_type,
            amount=amount,
            created_at=created_at or datetime.now(timezone.utc),
            created_by=kwargs.pop("created_by", self.user_id),
            **kwargs,
        )
        self.state.movements[movement.id] = movement
        return movement

    def fail_next(self, operation: str, error: Exception) -> None:
        """다음 해당 작업 호출 실패 설정"""
        self.state.scheduled_failures[operation] = error

    def calls_for(self, operation: str) -> list[CallRecord]:
        """특정 작업 호출 기록"""
        return [c for c in self.state.calls if c.operation == operation]

    @property
    def write_count(self) -> int:
        """쓰기 호출 수"""
        writes = {"open_session", "close_session", "create_movement"}
        return sum(1 for c in self.state.calls if c.operation in writes)

    async def _enter(
        self,
        operation: str,
        args: dict[str, Any],
        idempotency_key: str | None = None,
    ) -> None:
        self.state.calls.append(CallRecord(operation, args, idempotency_key))

        if self.latency:
            await asyncio.sleep(self.latency)

        error = self.state.scheduled_failures.pop(operation, None)
        if error is not None:
            raise error

    async def _publish(self, kind: ChangeKind, session_id: str, payload: dict[str, Any]) -> None:
        if self.change_feed is not None:
            await self.change_feed.publish(ChangeEvent(kind, session_id, payload))

    def _open_sessions(self) -> list[Session]:
        return [s for s in self.state.sessions.values() if s.status == SessionStatus.OPEN]

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_current_session(self) -> Session | None:
        """가장 최근에 개시된 OPEN 세션"""
        await self._enter("get_current_session", {})
        open_sessions = self._open_sessions()
        return open_sessions[-1] if open_sessions else None

    async def get_session(self, session_id: str) -> Session | None:
        """세션 단건 조회"""
        await self._enter("get_session", {"session_id": session_id})
        return self.state.sessions.get(session_id)

    async def list_sessions(
        self,
        status: SessionStatus | None = None,
        limit: int = 50,
    ) -> list[Session]:
        """세션 목록 (최근 개시 순)"""
        await self._enter("list_sessions", {"status": status, "limit": limit})
        sessions = [
            s for s in reversed(list(self.state.sessions.values()))
            if status is None or s.status == status
        ]
        return sessions[:limit]

    async def list_movements(self, session_id: str) -> list[Movement]:
        """세션 이동 전체 (등록 순)"""
        await self._enter("list_movements", {"session_id": session_id})
        return [m for m in self.state.movements.values() if m.session_id == session_id]

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
            CashApiError: 이미 열린 세션 존재 (400)
        """
        await self._enter("open_session", {"request": request}, idempotency_key)

        if idempotency_key and idempotency_key in self.state.replays:
            return self.state.replays[idempotency_key]

        if self._open_sessions():
            raise CashApiError(400, "A cash session is already open")

        session = self.seed_session(
            opening_amount=request.opening_amount,
            notes=request.notes,
        )
        if idempotency_key:
            self.state.replays[idempotency_key] = session

        await self._publish(ChangeKind.SESSION_UPDATED, session.id, {"status": session.status.value})
        return session

    async def close_session(
        self,
        request: CloseSessionRequest,
        idempotency_key: str | None = None,
    ) -> Session:
        """세션 마감 (discrepancy = closing - systemExpected 기록)

        Raises:
            CashApiError: 열린 세션 없음 (404)
        """
        await self._enter("close_session", {"request": request}, idempotency_key)

        if idempotency_key and idempotency_key in self.state.replays:
            return self.state.replays[idempotency_key]

        session = self.state.sessions.get(request.session_id)
        if session is None or session.status != SessionStatus.OPEN:
            raise CashApiError(404, "No open session")

        closed = Session(
            id=session.id,
            status=SessionStatus.CLOSED,
            opening_amount=session.opening_amount,
            opened_at=session.opened_at,
            closing_amount=request.closing_amount,
            closed_at=datetime.now(timezone.utc),
            system_expected=request.system_expected,
            discrepancy_amount=request.discrepancy,
            notes=request.notes,
            opened_by=session.opened_by,
            closed_by=self.user_id,
        )
        self.state.sessions[session.id] = closed
        if idempotency_key:
            self.state.replays[idempotency_key] = closed

        await self._publish(ChangeKind.SESSION_UPDATED, closed.id, {"status": closed.status.value})
        return closed

    async def create_movement(
        self,
        request: MovementRequest,
        idempotency_key: str | None = None,
    ) -> Movement:
        """이동 등록

        Raises:
            CashApiError: 대상 세션이 열려 있지 않음 (404)
        """
        await self._enter("create_movement", {"request": request}, idempotency_key)

        if idempotency_key and idempotency_key in self.state.replays:
            return self.state.replays[idempotency_key]

        session = self.state.sessions.get(request.session_id)
        if session is None or session.status != SessionStatus.OPEN:
            raise CashApiError(404, "No open session")

        movement = self.seed_movement(
            request.session_id,
            request.type,
            request.amount,
            id=f"movement-{uuid.uuid4().hex[:8]}",
            reason=request.reason,
            reference_type=request.reference_type,
            reference_id=request.reference_id,
        )
        if idempotency_key:
            self.state.replays[idempotency_key] = movement

        await self._publish(
            ChangeKind.MOVEMENT_INSERTED,
            movement.session_id,
            {"id": movement.id, "type": movement.type.value},
        )
        return movement
