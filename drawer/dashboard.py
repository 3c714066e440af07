"""
현금 서랍 대시보드

저장소, 캐시, 변경 작업 워크플로우, 실시간 재조회를 묶어
UI 계층에 현재 세션, 요약, 잔액, 로딩 플래그와 변경 진입점을 제공한다.
"""

import logging
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Any, Sequence

from adapters.interfaces import ICashDataStore, IChangeFeed, IConfirmationPrompt, INotifier
from core.constants import Defaults
from core.domain.models import CashCount, Movement, Session
from core.ledger.alerts import CashAlert, generate_alerts
from core.ledger.filters import FilterState, Page, apply_view
from core.ledger.insights import CashInsights, build_insights
from core.ledger.snapshot import LedgerSnapshot
from core.ledger.summary import MovementSummary
from core.storage.cache import SESSION_KEY, ReadThroughCache, movements_key
from core.types import AdjustmentDirection, CashLimits, MovementType, OperationKind
from core.utils.timezone import now_utc
from drawer.realtime.reconciler import RealtimeReconciler
from drawer.workflow.loading import LoadingStates, finished, started
from drawer.workflow.mutations import CashMutationWorkflow, MutationResult

logger = logging.getLogger(__name__)


class CashDrawer:
    """현금 서랍 대시보드 파사드

    스냅샷은 한 번의 조회 결과로 통째로 교체된다. 요약은 항상 같은
    스냅샷의 이동 목록에서 계산되며 두 조회 결과를 섞지 않는다.

    Args:
        store: 원격 현금 저장소
        prompt: 확인 프롬프트
        notifier: 사용자 알림
        feed: 변경 피드 (None이면 실시간 재조회 비활성)
        limits: 금액 한도
        debounce_seconds: 실시간 디바운스 (초)
        tz: "오늘" 판정 타임존
        cache: read-through 캐시 (테스트 주입용)

    사용 예시:
    ```python
    drawer = CashDrawer(store, prompt, notifier, feed=feed)
    await drawer.start()
    result = await drawer.register_movement("IN", 100)
    print(drawer.balance)
    await drawer.stop()
    ```
    """

    def __init__(
        self,
        store: ICashDataStore,
        prompt: IConfirmationPrompt,
        notifier: INotifier,
        feed: IChangeFeed | None = None,
        limits: CashLimits | None = None,
        debounce_seconds: float = Defaults.DEBOUNCE_SEC,
        tz: tzinfo = timezone.utc,
        cache: ReadThroughCache | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.limits = limits or CashLimits()
        self.tz = tz
        self.cache = cache or ReadThroughCache()

        self._snapshot = LedgerSnapshot()
        self._fetching = 0
        self._fetch_seq = 0
        self._applied_seq = 0
        # start 이후 stop 전까지만 실시간 구독 유지
        self._running = False

        self.workflow = CashMutationWorkflow(
            store=store,
            prompt=prompt,
            notifier=notifier,
            cache=self.cache,
            get_snapshot=lambda: self._snapshot,
            refresh=self.refresh,
            limits=self.limits,
        )

        self.reconciler: RealtimeReconciler | None = None
        if feed is not None:
            self.reconciler = RealtimeReconciler(feed, self.refresh, debounce_seconds)

    # -------------------------------------------------------------------------
    # 상태
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> LedgerSnapshot:
        """마지막 원장 스냅샷"""
        return self._snapshot

    @property
    def session(self) -> Session | None:
        return self._snapshot.session

    @property
    def movements(self) -> tuple[Movement, ...]:
        return self._snapshot.movements

    @property
    def summary(self) -> MovementSummary:
        return self._snapshot.summary

    @property
    def balance(self) -> Decimal | None:
        """현재 잔액 (세션 없으면 None)"""
        return self._snapshot.balance

    @property
    def last_sync_at(self) -> datetime | None:
        return self._snapshot.fetched_at

    @property
    def loading(self) -> LoadingStates:
        """작업별 로딩 플래그 (재조회 포함)"""
        state = self.workflow.loading
        if self._fetching > 0:
            return started(state, OperationKind.FETCH_DATA)
        return finished(state, OperationKind.FETCH_DATA)

    # -------------------------------------------------------------------------
    # 생명주기
    # -------------------------------------------------------------------------

    async def start(self) -> LedgerSnapshot:
        """최초 조회 및 실시간 구독 시작"""
        logger.info("현금 서랍 시작")
        self._running = True
        return await self.refresh(invalidate=False)

    async def stop(self) -> None:
        """실시간 구독 해제

        진행 중이던 재조회가 나중에 끝나도 다시 구독하지 않는다.
        """
        self._running = False
        if self.reconciler is not None:
            await self.reconciler.stop()
        logger.info("현금 서랍 종료")

    async def refresh(self, invalidate: bool = True) -> LedgerSnapshot:
        """세션 → 해당 세션 이동 전체를 다시 조회하여 스냅샷 교체

        Args:
            invalidate: 조회 전에 캐시 무효화 여부

        Returns:
            교체된 스냅샷 (더 나중에 시작한 조회가 먼저 반영됐으면 그 스냅샷)

        Raises:
            CashApiError / httpx.HTTPError: 조회 실패 (스냅샷 유지)
        """
        if invalidate:
            self.cache.invalidate(SESSION_KEY)
            if self._snapshot.session_id is not None:
                self.cache.invalidate(movements_key(self._snapshot.session_id))

        self._fetch_seq += 1
        seq = self._fetch_seq
        self._fetching += 1
        try:
            session = await self.cache.get(SESSION_KEY, self.store.get_current_session)
            movements: Sequence[Movement] = ()
            if session is not None:
                if invalidate:
                    self.cache.invalidate(movements_key(session.id))
                movements = await self.cache.get(
                    movements_key(session.id),
                    lambda: self.store.list_movements(session.id),
                )
        except Exception as e:
            logger.error(
                "현금 데이터 조회 실패",
                extra={"operation": OperationKind.FETCH_DATA.value, "error": str(e)},
            )
            raise
        finally:
            self._fetching -= 1

        if seq < self._applied_seq:
            return self._snapshot

        previous_id = self._snapshot.session_id
        self._snapshot = LedgerSnapshot.build(session, movements, now_utc())
        self._applied_seq = seq

        logger.debug(
            "현금 스냅샷 갱신",
            extra={
                "session_id": self._snapshot.session_id,
                "movement_count": len(self._snapshot.movements),
            },
        )

        if self._running and self.reconciler is not None and (
            previous_id != self._snapshot.session_id or self.reconciler.session_id is None
        ):
            await self.reconciler.watch(self._snapshot.session_id)

        return self._snapshot

    # -------------------------------------------------------------------------
    # 변경 작업
    # -------------------------------------------------------------------------

    async def open_session(self, amount: Any, notes: str | None = None) -> MutationResult:
        """세션 개시"""
        return await self.workflow.open_session(amount, notes)

    async def close_session(
        self,
        closing_amount: Any = None,
        counts: Sequence[CashCount] | None = None,
        notes: str | None = None,
    ) -> MutationResult:
        """세션 마감"""
        return await self.workflow.close_session(closing_amount, counts, notes)

    async def register_movement(
        self,
        movement_type: str | MovementType,
        amount: Any,
        direction: str | AdjustmentDirection | None = None,
        reason: str | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> MutationResult:
        """이동 등록"""
        return await self.workflow.register_movement(
            movement_type,
            amount,
            direction=direction,
            reason=reason,
            reference_type=reference_type,
            reference_id=reference_id,
        )

    # -------------------------------------------------------------------------
    # 조회 뷰
    # -------------------------------------------------------------------------

    def view(
        self,
        filter_state: FilterState | None = None,
        current_user_id: str | None = None,
    ) -> Page:
        """현재 스냅샷의 필터/정렬/페이지 뷰"""
        return apply_view(
            self._snapshot.movements,
            filter_state or FilterState(),
            current_user_id,
            self.tz,
        )

    def insights(self, now: datetime | None = None) -> CashInsights:
        """현재 스냅샷 기준 대시보드 지표"""
        snapshot = self._snapshot
        return build_insights(
            snapshot.movements,
            snapshot.session,
            snapshot.summary,
            now=now,
            tz=self.tz,
        )

    async def alerts(self, now: datetime | None = None) -> list[CashAlert]:
        """최근 세션 기준 경고 목록

        고액 이동 판정은 현재 스냅샷의 세션 이동만 사용한다.
        """
        sessions = await self.store.list_sessions(limit=Defaults.SESSIONS_FETCH_LIMIT)
        snapshot = self._snapshot
        movements_by_session: dict[str, Sequence[Movement]] = {}
        if snapshot.session_id is not None:
            movements_by_session[snapshot.session_id] = snapshot.movements
        return generate_alerts(sessions, movements_by_session, now, self.limits)
