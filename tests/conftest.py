"""
pytest 공통 fixture 정의

도메인 객체 팩토리와 Mock 어댑터 제공.
"""

import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import pytest

from adapters.mock.change_feed import MockChangeFeed
from adapters.mock.data_store import InMemoryCashDataStore
from adapters.mock.notifier import MockNotifier
from adapters.mock.prompt import MockConfirmationPrompt
from core.domain.models import Movement, Session
from core.types import MovementType, SessionStatus


BASE_TIME = datetime(2026, 10, 16, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def base_time() -> datetime:
    """테스트 기준 시각 (2026-10-16 09:00 UTC)"""
    return BASE_TIME


# -------------------------------------------------------------------------
# 도메인 팩토리
# -------------------------------------------------------------------------


@pytest.fixture
def make_movement() -> Callable[..., Movement]:
    """Movement 팩토리

    make_movement("OUT", 50) → 09:00 + n분에 생성된 이동
    """
    counter = {"n": 0}

    def _make(
        movement_type: str | MovementType,
        amount: Any,
        created_at: datetime | None = None,
        **kwargs: Any,
    ) -> Movement:
        counter["n"] += 1
        return Movement(
            id=kwargs.pop("id", f"m-{counter['n']}"),
            session_id=kwargs.pop("session_id", "session-1"),
            type=MovementType(movement_type),
            amount=Decimal(str(amount)),
            created_at=created_at or BASE_TIME + timedelta(minutes=counter["n"]),
            created_by=kwargs.pop("created_by", "user-1"),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_session() -> Callable[..., Session]:
    """Session 팩토리"""

    def _make(
        opening_amount: Any = "1000",
        status: SessionStatus = SessionStatus.OPEN,
        **kwargs: Any,
    ) -> Session:
        return Session(
            id=kwargs.pop("id", "session-1"),
            status=status,
            opening_amount=Decimal(str(opening_amount)),
            opened_at=kwargs.pop("opened_at", BASE_TIME),
            **kwargs,
        )

    return _make


@pytest.fixture
def scenario_movements(make_movement: Callable[..., Movement]) -> list[Movement]:
    """IN 100, OUT 50, SALE 200, RETURN 30, ADJUSTMENT -10 (잔액 210)"""
    return [
        make_movement("IN", 100),
        make_movement("OUT", 50),
        make_movement("SALE", 200),
        make_movement("RETURN", 30),
        make_movement("ADJUSTMENT", -10),
    ]


# -------------------------------------------------------------------------
# Mock 어댑터
# -------------------------------------------------------------------------


@pytest.fixture
def change_feed() -> MockChangeFeed:
    return MockChangeFeed()


@pytest.fixture
def store() -> InMemoryCashDataStore:
    return InMemoryCashDataStore()


@pytest.fixture
def notifier() -> MockNotifier:
    return MockNotifier()


@pytest.fixture
def prompt() -> MockConfirmationPrompt:
    """기본 확인(True) 프롬프트"""
    return MockConfirmationPrompt()
