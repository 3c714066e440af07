"""
세션 상태 머신 테스트
"""

import pytest

from core.domain.state_machines import SessionStateMachine, StateMachineError
from core.types import SessionStatus


class TestSessionStateMachine:
    """SessionStateMachine 테스트"""

    def test_default_state_is_open(self) -> None:
        machine = SessionStateMachine()

        assert machine.state is SessionStatus.OPEN
        assert machine.accepts_movements
        assert not machine.is_terminal

    @pytest.mark.parametrize("target", [SessionStatus.CLOSED, SessionStatus.CANCELLED])
    def test_open_to_terminal(self, target: SessionStatus) -> None:
        machine = SessionStateMachine(SessionStatus.OPEN)

        assert machine.transition(target) is target
        assert machine.is_terminal
        assert not machine.accepts_movements
        assert machine.history == [(SessionStatus.OPEN, target)]

    def test_closed_is_terminal(self) -> None:
        machine = SessionStateMachine(SessionStatus.CLOSED)

        assert not machine.can_transition(SessionStatus.OPEN)
        with pytest.raises(StateMachineError):
            machine.transition(SessionStatus.CANCELLED)

    def test_string_states(self) -> None:
        machine = SessionStateMachine("OPEN")
        machine.transition("CLOSED")

        with pytest.raises(StateMachineError, match="CLOSED"):
            machine.transition("OPEN")

    def test_unknown_state(self) -> None:
        with pytest.raises(ValueError):
            SessionStateMachine("PAUSED")
