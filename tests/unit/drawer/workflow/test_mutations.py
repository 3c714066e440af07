"""
현금 변경 작업 워크플로우 테스트

선검사 → 확인 → 실행 → 무효화 → 보고 흐름 검증.
"""

import asyncio
from decimal import Decimal
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from adapters.http.errors import CashApiError
from adapters.mock.data_store import InMemoryCashDataStore
from adapters.mock.notifier import MockNotifier
from adapters.mock.prompt import MockConfirmationPrompt
from adapters.models import ConfirmationRequest
from core.domain.models import CashCount, Movement, Session
from core.ledger.snapshot import LedgerSnapshot
from core.storage.cache import SESSION_KEY, ReadThroughCache, movements_key
from core.types import MovementType, NotificationSeverity, OperationKind, RiskLevel
from drawer.workflow.messages import NO_OPEN_SESSION_MESSAGE, PERMISSION_DENIED_MESSAGE
from drawer.workflow.mutations import (
    STALE_AFTER_WRITE_MESSAGE,
    SUCCESS_MESSAGES,
    CashMutationWorkflow,
    MutationStatus,
)


class BlockingPrompt:
    """release() 전까지 응답을 보류하는 프롬프트"""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.requests: list[ConfirmationRequest] = []
        self._released = asyncio.Event()

    async def confirm(self, request: ConfirmationRequest) -> bool:
        self.requests.append(request)
        await self._released.wait()
        return self.answer

    def release(self) -> None:
        self._released.set()


class Harness:
    """워크플로우 + 교체 가능한 스냅샷"""

    def __init__(self, store, prompt, notifier, snapshot: LedgerSnapshot, refresh=None):
        self.store = store
        self.prompt = prompt
        self.notifier = notifier
        self.snapshot = snapshot
        self.cache = ReadThroughCache()
        self.workflow = CashMutationWorkflow(
            store=store,
            prompt=prompt,
            notifier=notifier,
            cache=self.cache,
            get_snapshot=lambda: self.snapshot,
            refresh=refresh,
        )


@pytest.fixture
def open_session(
    store: InMemoryCashDataStore,
    make_session: Callable[..., Session],
) -> Session:
    """저장소와 스냅샷에 같은 OPEN 세션 (개시 1000)"""
    session = make_session()
    store.state.sessions[session.id] = session
    return session


@pytest.fixture
def harness(
    store: InMemoryCashDataStore,
    prompt: MockConfirmationPrompt,
    notifier: MockNotifier,
    open_session: Session,
    scenario_movements: list[Movement],
) -> Harness:
    """잔액 1210 (1000 + 210) 상태의 워크플로우"""
    return Harness(store, prompt, notifier, LedgerSnapshot.build(open_session, scenario_movements))


class TestOpenSession:
    """세션 개시"""

    @pytest.mark.asyncio
    async def test_zero_amount_skips_confirmation(
        self,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
    ) -> None:
        h = Harness(store, prompt, notifier, LedgerSnapshot())

        result = await h.workflow.open_session(0)

        assert result.status == MutationStatus.SUCCEEDED
        assert result.session.opening_amount == Decimal("0")
        assert result.session.notes == "시재 개시"
        assert prompt.prompt_count == 0
        assert notifier.last_notification.message == SUCCESS_MESSAGES[OperationKind.OPEN_SESSION]
        assert notifier.last_notification.severity == NotificationSeverity.SUCCESS

    @pytest.mark.asyncio
    async def test_nonzero_amount_confirmed(
        self,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
    ) -> None:
        h = Harness(store, prompt, notifier, LedgerSnapshot())

        result = await h.workflow.open_session("500", notes="  아침 시재  ")

        assert result.succeeded
        assert "개시 금액: 500" in prompt.last_request.description
        assert prompt.last_request.confirm_text == "세션 열기"
        assert prompt.last_request.risk_level == RiskLevel.WARNING
        assert result.session.notes == "아침 시재"

    @pytest.mark.asyncio
    async def test_declined_makes_no_write(
        self,
        store: InMemoryCashDataStore,
        notifier: MockNotifier,
    ) -> None:
        h = Harness(store, MockConfirmationPrompt(default=False), notifier, LedgerSnapshot())

        result = await h.workflow.open_session(500)

        assert result.status == MutationStatus.CANCELLED
        assert store.write_count == 0
        assert notifier.message_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["-1", "abc", "NaN", "1000001"])
    async def test_invalid_amount(
        self,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
        amount: str,
    ) -> None:
        h = Harness(store, prompt, notifier, LedgerSnapshot())

        result = await h.workflow.open_session(amount)

        assert result.status == MutationStatus.FAILED
        assert store.write_count == 0
        assert prompt.prompt_count == 0
        assert notifier.get_errors()[0].message == result.message

    @pytest.mark.asyncio
    async def test_server_rejects_second_open(
        self, harness: Harness, notifier: MockNotifier
    ) -> None:
        result = await harness.workflow.open_session(0)

        assert result.status == MutationStatus.FAILED
        assert isinstance(result.error, CashApiError)
        assert "already open" in result.message
        assert not harness.workflow.loading.open_session

    @pytest.mark.asyncio
    async def test_long_notes_clipped(
        self,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
    ) -> None:
        h = Harness(store, prompt, notifier, LedgerSnapshot())

        result = await h.workflow.open_session(0, notes="가" * 300)

        assert len(result.session.notes) == 200


class TestCloseSession:
    """세션 마감 (예상 잔액 1210)"""

    @pytest.mark.asyncio
    async def test_exact_close(self, harness: Harness, prompt: MockConfirmationPrompt, notifier: MockNotifier) -> None:
        result = await harness.workflow.close_session("1210")

        assert result.succeeded
        assert result.assessment.expected_balance == Decimal("1210")
        assert result.assessment.discrepancy == Decimal("0")
        assert result.session.discrepancy_amount == Decimal("0")
        assert prompt.prompt_count == 0
        assert notifier.get_warnings() == []

    @pytest.mark.asyncio
    async def test_small_discrepancy_warns_without_prompt(
        self,
        harness: Harness,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
    ) -> None:
        result = await harness.workflow.close_session(Decimal("1190"))

        assert result.succeeded
        assert result.assessment.discrepancy == Decimal("20")
        assert prompt.prompt_count == 0
        assert len(notifier.get_warnings()) == 1
        request = store.calls_for("close_session")[0].args["request"]
        assert request.system_expected == Decimal("1210")
        assert request.closing_amount == Decimal("1190")
        assert result.session.discrepancy_amount == Decimal("-20")

    @pytest.mark.asyncio
    async def test_high_discrepancy_declined(
        self,
        store: InMemoryCashDataStore,
        notifier: MockNotifier,
        open_session: Session,
        scenario_movements: list[Movement],
    ) -> None:
        prompt = MockConfirmationPrompt(default=False)
        h = Harness(store, prompt, notifier, LedgerSnapshot.build(open_session, scenario_movements))

        result = await h.workflow.close_session(200000)

        assert result.status == MutationStatus.CANCELLED
        assert result.assessment.is_high
        assert prompt.last_request.confirm_text == "그래도 마감"
        assert "차액: 198,790" in prompt.last_request.description
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_high_discrepancy_confirmed(
        self, harness: Harness, store: InMemoryCashDataStore, prompt: MockConfirmationPrompt
    ) -> None:
        result = await harness.workflow.close_session(200000)

        assert result.succeeded
        assert prompt.prompt_count == 1
        assert store.write_count == 1

    @pytest.mark.asyncio
    async def test_counts_total_used(self, harness: Harness, store: InMemoryCashDataStore) -> None:
        counts = [
            CashCount(Decimal("1000"), 1),
            CashCount(Decimal("100"), 2),
            CashCount(Decimal("10"), 1),
        ]

        result = await harness.workflow.close_session(counts=counts)

        assert result.succeeded
        assert result.assessment.closing_amount == Decimal("1210")
        request = store.calls_for("close_session")[0].args["request"]
        assert request.counts == tuple(counts)

    @pytest.mark.asyncio
    async def test_counts_mismatch_fails(self, harness: Harness, store: InMemoryCashDataStore) -> None:
        result = await harness.workflow.close_session(
            "1000", counts=[CashCount(Decimal("500"), 1)]
        )

        assert result.status == MutationStatus.FAILED
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_no_session(
        self,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
    ) -> None:
        h = Harness(store, prompt, notifier, LedgerSnapshot())

        result = await h.workflow.close_session("100")

        assert result.status == MutationStatus.FAILED
        assert result.message == "열린 현금 세션이 없습니다"
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_server_no_open_session(
        self, harness: Harness, store: InMemoryCashDataStore
    ) -> None:
        """스냅샷은 열려 있지만 서버에서는 이미 마감된 경우"""
        store.fail_next("close_session", CashApiError(404, "No open session"))

        result = await harness.workflow.close_session("1210")

        assert result.status == MutationStatus.FAILED
        assert result.message == NO_OPEN_SESSION_MESSAGE
        assert result.assessment is not None

    @pytest.mark.asyncio
    async def test_failed_close_sends_no_discrepancy_warning(
        self,
        harness: Harness,
        store: InMemoryCashDataStore,
        notifier: MockNotifier,
    ) -> None:
        """쓰기 실패 시 차액 경고 없이 오류만 알림"""
        store.fail_next("close_session", CashApiError(500, "boom"))

        result = await harness.workflow.close_session(Decimal("1190"))

        assert result.status == MutationStatus.FAILED
        assert result.assessment.needs_warning
        assert notifier.get_warnings() == []
        assert len(notifier.get_errors()) == 1

    @pytest.mark.asyncio
    async def test_discrepancy_warning_follows_success(
        self, harness: Harness, notifier: MockNotifier
    ) -> None:
        await harness.workflow.close_session(Decimal("1190"))

        assert [n.severity for n in notifier.notifications] == [
            NotificationSeverity.SUCCESS,
            NotificationSeverity.WARNING,
        ]
        assert notifier.last_notification.message == "예상 잔액과 차액: 20"


class TestRegisterMovement:
    """이동 등록 (현재 잔액 1210)"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("movement_type", ["IN", "SALE", "RETURN"])
    async def test_no_confirmation_types(
        self,
        harness: Harness,
        prompt: MockConfirmationPrompt,
        store: InMemoryCashDataStore,
        movement_type: str,
    ) -> None:
        result = await harness.workflow.register_movement(movement_type, "100")

        assert result.succeeded
        assert result.movement.type == MovementType(movement_type)
        assert result.movement.amount == Decimal("100")
        assert prompt.prompt_count == 0

    @pytest.mark.asyncio
    async def test_out_requires_confirmation(
        self, harness: Harness, prompt: MockConfirmationPrompt
    ) -> None:
        result = await harness.workflow.register_movement("OUT", 50, reason=" 잔돈 교환 ")

        assert result.succeeded
        assert prompt.last_request.title == "현금 출금 확인"
        assert "사유: 잔돈 교환" in prompt.last_request.description
        assert result.movement.reason == "잔돈 교환"

    @pytest.mark.asyncio
    async def test_adjustment_decrease_is_negative(
        self, harness: Harness, prompt: MockConfirmationPrompt
    ) -> None:
        result = await harness.workflow.register_movement("ADJUSTMENT", 10, direction="decrease")

        assert result.succeeded
        assert result.movement.amount == Decimal("-10")
        assert prompt.last_request.title == "현금 조정 확인"
        assert "금액: -10" in prompt.last_request.description

    @pytest.mark.asyncio
    async def test_adjustment_without_direction(
        self, harness: Harness, store: InMemoryCashDataStore, prompt: MockConfirmationPrompt
    ) -> None:
        result = await harness.workflow.register_movement("ADJUSTMENT", 10)

        assert result.status == MutationStatus.FAILED
        assert result.message == "조정 방향(증가/감소)을 지정해야 합니다"
        assert prompt.prompt_count == 0
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_insufficient_balance(
        self,
        harness: Harness,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
    ) -> None:
        result = await harness.workflow.register_movement("OUT", 5000)

        assert result.status == MutationStatus.FAILED
        assert result.message == "현금함 잔액이 부족하여 출금할 수 없습니다"
        assert prompt.prompt_count == 0
        assert store.write_count == 0
        assert notifier.get_errors()[0].extra["category"] == "validation"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("movement_type", "amount"),
        [("IN", "0"), ("IN", "abc"), ("SALE", "-5"), ("TRANSFER", "5"), ("IN", "10000001")],
    )
    async def test_validation_failures(
        self,
        harness: Harness,
        store: InMemoryCashDataStore,
        movement_type: str,
        amount: str,
    ) -> None:
        result = await harness.workflow.register_movement(movement_type, amount)

        assert result.status == MutationStatus.FAILED
        assert store.write_count == 0

    @pytest.mark.asyncio
    async def test_idempotency_key_sent(self, harness: Harness, store: InMemoryCashDataStore) -> None:
        result = await harness.workflow.register_movement("SALE", 10)

        call = store.calls_for("create_movement")[0]
        assert call.idempotency_key == result.idempotency_key
        assert result.idempotency_key.startswith("cd-register_movement-")

    @pytest.mark.asyncio
    async def test_cache_invalidated(self, harness: Harness, open_session: Session) -> None:
        harness.cache.set(SESSION_KEY, open_session)
        harness.cache.set(movements_key(open_session.id), [])

        await harness.workflow.register_movement("IN", 10)

        assert SESSION_KEY not in harness.cache
        assert movements_key(open_session.id) not in harness.cache

    @pytest.mark.asyncio
    async def test_failure_keeps_cache(self, harness: Harness, store: InMemoryCashDataStore, open_session: Session) -> None:
        harness.cache.set(SESSION_KEY, open_session)
        store.fail_next("create_movement", CashApiError(500, "boom"))

        result = await harness.workflow.register_movement("IN", 10)

        assert result.status == MutationStatus.FAILED
        assert result.idempotency_key is not None
        assert SESSION_KEY in harness.cache
        assert not harness.workflow.loading.register_movement

    @pytest.mark.asyncio
    async def test_permission_denied_acknowledged(
        self,
        harness: Harness,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
    ) -> None:
        store.fail_next(
            "create_movement",
            CashApiError(403, "permission denied", "new row violates row-level security (rls)"),
        )

        result = await harness.workflow.register_movement("IN", 10)

        assert result.status == MutationStatus.FAILED
        assert result.message == PERMISSION_DENIED_MESSAGE
        assert prompt.last_request.risk_level == RiskLevel.INFO
        assert prompt.last_request.description == PERMISSION_DENIED_MESSAGE
        assert notifier.get_errors()[0].message == PERMISSION_DENIED_MESSAGE


class TestRefreshAfterWrite:
    """쓰기 후 재조회"""

    @pytest.mark.asyncio
    async def test_refresh_called(
        self,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
        open_session: Session,
    ) -> None:
        refresh = AsyncMock()
        h = Harness(store, prompt, notifier, LedgerSnapshot.build(open_session, []), refresh)

        result = await h.workflow.register_movement("IN", 10)

        assert result.message == SUCCESS_MESSAGES[OperationKind.REGISTER_MOVEMENT]
        refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_failure_still_succeeds(
        self,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
        open_session: Session,
    ) -> None:
        refresh = AsyncMock(side_effect=CashApiError(500, "down"))
        h = Harness(store, prompt, notifier, LedgerSnapshot.build(open_session, []), refresh)

        result = await h.workflow.register_movement("IN", 10)

        assert result.succeeded
        assert STALE_AFTER_WRITE_MESSAGE in result.message
        assert notifier.last_notification.severity == NotificationSeverity.SUCCESS

    @pytest.mark.asyncio
    async def test_notifier_error_does_not_fail_write(
        self,
        store: InMemoryCashDataStore,
        prompt: MockConfirmationPrompt,
        open_session: Session,
    ) -> None:
        notifier = MockNotifier(raise_error=RuntimeError("알림 채널 끊김"))
        h = Harness(store, prompt, notifier, LedgerSnapshot.build(open_session, []))

        result = await h.workflow.register_movement("SALE", 10)

        assert result.succeeded
        assert store.write_count == 1
        assert notifier.messages == []


class TestConcurrency:
    """작업 종류별 중복 실행 방지"""

    @pytest.mark.asyncio
    async def test_same_kind_skipped_while_running(
        self,
        prompt: MockConfirmationPrompt,
        notifier: MockNotifier,
        open_session: Session,
    ) -> None:
        store = InMemoryCashDataStore(latency=0.05)
        store.state.sessions[open_session.id] = open_session
        h = Harness(store, prompt, notifier, LedgerSnapshot.build(open_session, []))

        first = asyncio.create_task(h.workflow.register_movement("IN", 10))
        await asyncio.sleep(0.01)

        assert h.workflow.loading.register_movement
        assert not h.workflow.loading.open_session

        second = await h.workflow.register_movement("SALE", 5)

        assert second.status == MutationStatus.SKIPPED
        assert (await first).succeeded
        assert len(store.calls_for("create_movement")) == 1
        assert not h.workflow.loading.register_movement

    @pytest.mark.asyncio
    async def test_skipped_after_confirmation(
        self,
        notifier: MockNotifier,
        open_session: Session,
        scenario_movements: list[Movement],
    ) -> None:
        """확인 대기 중 같은 종류 작업이 먼저 실행을 시작한 경우"""
        store = InMemoryCashDataStore(latency=0.05)
        store.state.sessions[open_session.id] = open_session
        prompt = BlockingPrompt()
        h = Harness(store, prompt, notifier, LedgerSnapshot.build(open_session, scenario_movements))

        waiting = asyncio.create_task(h.workflow.register_movement("OUT", 50))
        await asyncio.sleep(0)
        running = asyncio.create_task(h.workflow.register_movement("IN", 10))
        await asyncio.sleep(0.01)

        prompt.release()

        assert (await waiting).status == MutationStatus.SKIPPED
        assert (await running).succeeded
        assert len(store.calls_for("create_movement")) == 1

    @pytest.mark.asyncio
    async def test_different_kinds_run_together(
        self,
        notifier: MockNotifier,
        open_session: Session,
        scenario_movements: list[Movement],
    ) -> None:
        store = InMemoryCashDataStore(latency=0.02)
        store.state.sessions[open_session.id] = open_session
        h = Harness(
            store,
            MockConfirmationPrompt(),
            notifier,
            LedgerSnapshot.build(open_session, scenario_movements),
        )

        movement, closed = await asyncio.gather(
            h.workflow.register_movement("IN", 10),
            h.workflow.close_session("1210"),
        )

        assert movement.status != MutationStatus.SKIPPED
        assert closed.status != MutationStatus.SKIPPED
        assert closed.succeeded
