"""
현금 서랍 대시보드 테스트

인메모리 저장소 + Mock 변경 피드로 조회/변경/실시간 재조회 흐름 검증.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from adapters.http.errors import CashApiError
from adapters.mock.change_feed import MockChangeFeed
from adapters.mock.data_store import InMemoryCashDataStore
from adapters.mock.notifier import MockNotifier
from adapters.mock.prompt import MockConfirmationPrompt
from core.ledger.filters import FilterState, with_filters
from core.types import AlertKind, ChangeKind, MovementType
from drawer.dashboard import CashDrawer


DEBOUNCE = 0.02


@pytest.fixture
def wired_store(change_feed: MockChangeFeed) -> InMemoryCashDataStore:
    return InMemoryCashDataStore(change_feed=change_feed)


@pytest.fixture
def drawer(
    wired_store: InMemoryCashDataStore,
    prompt: MockConfirmationPrompt,
    notifier: MockNotifier,
    change_feed: MockChangeFeed,
) -> CashDrawer:
    return CashDrawer(
        wired_store,
        prompt,
        notifier,
        feed=change_feed,
        debounce_seconds=DEBOUNCE,
    )


class TestCashDrawerFetch:
    """조회 및 스냅샷"""

    @pytest.mark.asyncio
    async def test_start_without_session(self, drawer: CashDrawer, change_feed: MockChangeFeed) -> None:
        snapshot = await drawer.start()

        assert snapshot.session is None
        assert drawer.balance is None
        assert drawer.movements == ()
        assert drawer.last_sync_at is not None
        assert change_feed.subscriptions == {}

    @pytest.mark.asyncio
    async def test_start_with_session(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
        change_feed: MockChangeFeed,
    ) -> None:
        session = wired_store.seed_session(opening_amount=Decimal("1000"))
        wired_store.seed_movement(session.id, MovementType.SALE, Decimal("500"))
        wired_store.seed_movement(session.id, MovementType.OUT, Decimal("200"))

        await drawer.start()

        assert drawer.session.id == session.id
        assert drawer.summary.total_sale == Decimal("500")
        assert drawer.balance == Decimal("1300")
        assert change_feed.active_session_ids == [session.id]

    @pytest.mark.asyncio
    async def test_cached_reads_until_invalidated(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
    ) -> None:
        session = wired_store.seed_session()
        await drawer.start()
        await drawer.refresh(invalidate=False)

        assert len(wired_store.calls_for("list_movements")) == 1

        wired_store.seed_movement(session.id, MovementType.IN, Decimal("10"))
        await drawer.refresh()

        assert len(wired_store.calls_for("list_movements")) == 2
        assert drawer.balance == Decimal("10")

    @pytest.mark.asyncio
    async def test_fetch_failure_keeps_snapshot(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
    ) -> None:
        wired_store.seed_session(opening_amount=Decimal("100"))
        before = await drawer.start()

        wired_store.fail_next("get_current_session", CashApiError(500, "down"))
        with pytest.raises(CashApiError):
            await drawer.refresh()

        assert drawer.snapshot is before
        assert not drawer.loading.fetch_data

    @pytest.mark.asyncio
    async def test_fetch_flag_during_refresh(
        self,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
    ) -> None:
        store = InMemoryCashDataStore(latency=0.02)
        drawer = CashDrawer(store, prompt, notifier)

        task = asyncio.create_task(drawer.refresh())
        await asyncio.sleep(0.005)

        assert drawer.loading.fetch_data
        assert not drawer.loading.any_mutation

        await task
        assert not drawer.loading.fetch_data


class TestCashDrawerMutations:
    """변경 작업 후 스냅샷 갱신"""

    @pytest.mark.asyncio
    async def test_open_register_close(
        self,
        drawer: CashDrawer,
        change_feed: MockChangeFeed,
        notifier: MockNotifier,
    ) -> None:
        await drawer.start()

        opened = await drawer.open_session(Decimal("1000"))
        assert opened.succeeded
        assert drawer.session.id == opened.session.id
        assert drawer.balance == Decimal("1000")
        assert change_feed.active_session_ids == [opened.session.id]

        moved = await drawer.register_movement("SALE", "250")
        assert moved.succeeded
        assert drawer.balance == Decimal("1250")

        adjusted = await drawer.register_movement("ADJUSTMENT", 50, direction="decrease")
        assert adjusted.succeeded
        assert drawer.balance == Decimal("1200")

        closed = await drawer.close_session("1200")
        assert closed.succeeded
        assert closed.assessment.expected_balance == Decimal("1200")
        assert drawer.session is None
        assert drawer.balance is None
        assert change_feed.subscriptions == {}

        await drawer.stop()

    @pytest.mark.asyncio
    async def test_out_over_snapshot_balance_rejected(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
    ) -> None:
        """스냅샷 잔액 초과 출금은 쓰기 전에 거부"""
        wired_store.seed_session(opening_amount=Decimal("100"))
        await drawer.start()

        result = await drawer.register_movement("OUT", 150)

        assert not result.succeeded
        assert wired_store.write_count == 0


class TestCashDrawerRealtime:
    """외부 변경 알림 반영"""

    @pytest.mark.asyncio
    async def test_external_change_refetched(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
        change_feed: MockChangeFeed,
    ) -> None:
        session = wired_store.seed_session()
        await drawer.start()

        # 다른 단말에서 등록된 이동
        wired_store.seed_movement(session.id, MovementType.IN, Decimal("70"))
        wired_store.seed_movement(session.id, MovementType.IN, Decimal("30"))
        await change_feed.emit(session.id, ChangeKind.MOVEMENT_INSERTED)
        await change_feed.emit(session.id, ChangeKind.MOVEMENT_INSERTED)

        await asyncio.sleep(DEBOUNCE * 4)

        assert drawer.balance == Decimal("100")
        assert drawer.reconciler.refresh_count == 1

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
        change_feed: MockChangeFeed,
    ) -> None:
        wired_store.seed_session()
        await drawer.start()

        await drawer.stop()

        assert change_feed.subscriptions == {}

    @pytest.mark.asyncio
    async def test_refresh_finishing_after_stop_stays_unsubscribed(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
        change_feed: MockChangeFeed,
    ) -> None:
        """stop 도중 끝난 재조회가 구독을 되살리지 않음"""
        wired_store.seed_session()
        await drawer.start()
        wired_store.latency = 0.05

        task = asyncio.create_task(drawer.refresh())
        await asyncio.sleep(0.01)
        await drawer.stop()
        await task

        assert change_feed.subscriptions == {}
        assert drawer.reconciler.session_id is None

    @pytest.mark.asyncio
    async def test_stop_waits_for_debounced_refresh(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
        change_feed: MockChangeFeed,
    ) -> None:
        session = wired_store.seed_session()
        await drawer.start()
        wired_store.latency = 0.05

        await change_feed.emit(session.id)
        # 타이머 만료 후 재조회 진행 중
        await asyncio.sleep(DEBOUNCE * 2)
        await drawer.stop()

        assert drawer.reconciler.refresh_count == 1
        assert not drawer.loading.fetch_data
        assert change_feed.subscriptions == {}

    @pytest.mark.asyncio
    async def test_restart_resumes_realtime(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
        change_feed: MockChangeFeed,
    ) -> None:
        session = wired_store.seed_session()
        await drawer.start()
        await drawer.stop()
        await drawer.start()

        wired_store.seed_movement(session.id, MovementType.IN, Decimal("40"))
        await change_feed.emit(session.id)
        await asyncio.sleep(DEBOUNCE * 4)

        assert change_feed.active_session_ids == [session.id]
        assert drawer.reconciler.refresh_count == 1
        assert drawer.balance == Decimal("40")

        await drawer.stop()


class TestCashDrawerViews:
    """뷰 / 지표 / 경고"""

    @pytest.mark.asyncio
    async def test_view_filters_snapshot(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
    ) -> None:
        session = wired_store.seed_session()
        for amount in ("10", "20", "30"):
            wired_store.seed_movement(session.id, MovementType.SALE, Decimal(amount))
        wired_store.seed_movement(session.id, MovementType.OUT, Decimal("5"))
        await drawer.start()

        page = drawer.view(with_filters(FilterState(), type="SALE", amount_min="15"))

        assert page.total == 2
        assert {m.amount for m in page.items} == {Decimal("20"), Decimal("30")}
        assert drawer.view().total == 4

    @pytest.mark.asyncio
    async def test_insights(self, drawer: CashDrawer, wired_store: InMemoryCashDataStore) -> None:
        now = datetime.now(timezone.utc)
        session = wired_store.seed_session(opening_amount=Decimal("100"), opened_at=now - timedelta(hours=1))
        wired_store.seed_movement(session.id, MovementType.SALE, Decimal("40"), created_at=now)
        await drawer.start()

        insights = drawer.insights(now)

        assert insights.current_balance == Decimal("140")
        assert insights.today_inflows == Decimal("40")

    @pytest.mark.asyncio
    async def test_alerts_without_session(self, drawer: CashDrawer) -> None:
        await drawer.start()

        alerts = await drawer.alerts()

        assert [a.kind for a in alerts] == [AlertKind.NO_SESSION]

    @pytest.mark.asyncio
    async def test_alerts_large_movement(
        self,
        drawer: CashDrawer,
        wired_store: InMemoryCashDataStore,
    ) -> None:
        session = wired_store.seed_session(opening_amount=Decimal("100000"))
        wired_store.seed_movement(session.id, MovementType.OUT, Decimal("60000"))
        await drawer.start()

        alerts = await drawer.alerts()

        assert [a.kind for a in alerts] == [AlertKind.LARGE_MOVEMENT]
        assert alerts[0].amount == Decimal("60000")
