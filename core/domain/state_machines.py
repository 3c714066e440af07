"""
State Machines

현금 세션 상태 전이 규칙.
세션은 OPEN으로 생성되고 CLOSED 또는 CANCELLED로 한 번만 종료된다.
"""

import logging

from core.types import SessionStatus

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """허용되지 않은 세션 상태 전이"""


# 허용 전이: {현재 상태: 목표 상태 집합}
SESSION_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.OPEN: frozenset({SessionStatus.CLOSED, SessionStatus.CANCELLED}),
    SessionStatus.CLOSED: frozenset(),
    SessionStatus.CANCELLED: frozenset(),
}


class SessionStateMachine:
    """현금 세션 상태 머신

    서버가 내려준 세션 상태에서 시작해 로컬 선검사에 사용한다.

    Args:
        initial_state: 시작 상태 (문자열 허용)
    """

    def __init__(self, initial_state: str | SessionStatus = SessionStatus.OPEN):
        self._state = SessionStatus(initial_state)
        self._history: list[tuple[SessionStatus, SessionStatus]] = []

    @property
    def state(self) -> SessionStatus:
        return self._state

    @property
    def history(self) -> list[tuple[SessionStatus, SessionStatus]]:
        """전이 이력 (복사본)"""
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return not SESSION_TRANSITIONS[self._state]

    @property
    def accepts_movements(self) -> bool:
        """이동 등록은 열린 세션에만 가능"""
        return self._state == SessionStatus.OPEN

    def can_transition(self, to_state: str | SessionStatus) -> bool:
        return SessionStatus(to_state) in SESSION_TRANSITIONS[self._state]

    def transition(self, to_state: str | SessionStatus) -> SessionStatus:
        """상태 전이

        Raises:
            StateMachineError: 종료된 세션이거나 허용되지 않은 목표 상태
        """
        target = SessionStatus(to_state)
        if not self.can_transition(target):
            raise StateMachineError(
                f"세션 상태를 {self._state.value}에서 {target.value}(으)로 바꿀 수 없습니다"
            )

        previous = self._state
        self._state = target
        self._history.append((previous, target))
        logger.debug(f"세션 상태 전이: {previous.value} → {target.value}")
        return target
