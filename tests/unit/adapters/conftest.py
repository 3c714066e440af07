"""
어댑터 테스트 픽스처

변경 피드가 연결된 인메모리 저장소와 요청 샘플 제공.
"""

from decimal import Decimal

import pytest

from adapters.mock.change_feed import MockChangeFeed
from adapters.mock.data_store import InMemoryCashDataStore
from adapters.models import MovementRequest, OpenSessionRequest
from core.types import MovementType


@pytest.fixture
def wired_store(change_feed: MockChangeFeed) -> InMemoryCashDataStore:
    """쓰기 시 change_feed로 이벤트를 발행하는 저장소"""
    return InMemoryCashDataStore(change_feed=change_feed)


@pytest.fixture
def open_request() -> OpenSessionRequest:
    return OpenSessionRequest(opening_amount=Decimal("1000"), notes="시재 개시")


@pytest.fixture
def sale_request() -> MovementRequest:
    """session-1 대상 판매 500"""
    return MovementRequest(
        session_id="session-1",
        type=MovementType.SALE,
        amount=Decimal("500"),
        reference_type="order",
        reference_id="order-9",
    )
