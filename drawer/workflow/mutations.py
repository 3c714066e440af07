"""
현금 변경 작업 워크플로우

세션 개시, 세션 마감, 이동 등록 3가지 작업이 같은 흐름을 따른다.

1. 선검사: 검증/전제조건을 네트워크 전에 동기 수행 (실패 시 즉시 보고)
2. 위험 확인: 금전 영향이 있는 작업은 정확한 금액을 보여주고 확인
3. 실행: 확인된 작업당 쓰기 요청 정확히 1회 (작업 종류별 로딩 플래그 유지)
4. 무효화: 성공 시 해당 세션의 캐시를 버리고 다시 조회
5. 보고: 실패는 사용자 메시지로 변환하여 알림

워크플로우는 재시도하지 않는다. 모든 진입점은 예외를 밖으로 던지지 않고
MutationResult를 반환한다.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Sequence

from adapters.interfaces import ICashDataStore, IConfirmationPrompt, INotifier
from adapters.models import (
    CloseSessionRequest,
    ConfirmationRequest,
    MovementRequest,
    OpenSessionRequest,
)
from core.constants import Defaults
from core.domain.errors import CashDrawerError
from core.domain.models import CashCount, Movement, Session
from core.domain.movements import (
    coerce_direction,
    coerce_movement_type,
    normalize_movement_amount,
    validate_movement_amount,
)
from core.domain.sessions import (
    CloseAssessment,
    assess_close,
    check_movement_preconditions,
    ensure_session_open,
    resolve_closing_amount,
    validate_opening_amount,
)
from core.domain.state_machines import StateMachineError
from core.ledger.snapshot import LedgerSnapshot
from core.storage.cache import SESSION_KEY, CacheKey, ReadThroughCache, movements_key
from core.types import (
    AdjustmentDirection,
    CashLimits,
    MovementType,
    NotificationSeverity,
    OperationKind,
    RiskLevel,
)
from core.utils.amounts import ZERO, format_amount
from core.utils.idempotency import make_idempotency_key
from drawer.workflow.loading import LoadingStates, finished, started
from drawer.workflow.messages import ErrorCategory, categorize_error, describe_error

logger = logging.getLogger(__name__)


SUCCESS_MESSAGES = {
    OperationKind.OPEN_SESSION: "현금 세션이 열렸습니다",
    OperationKind.CLOSE_SESSION: "현금 세션이 마감되었습니다",
    OperationKind.REGISTER_MOVEMENT: "현금 이동이 등록되었습니다",
}

STALE_AFTER_WRITE_MESSAGE = "저장은 완료되었지만 최신 현금 데이터를 불러오지 못했습니다"

# 확인이 필요한 이동 유형
CONFIRM_MOVEMENT_TYPES = frozenset({MovementType.OUT, MovementType.ADJUSTMENT})


class MutationStatus(str, Enum):
    """작업 결과 상태"""

    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"  # 사용자가 확인 거부
    SKIPPED = "SKIPPED"  # 같은 종류 작업이 이미 진행 중


@dataclass(frozen=True)
class MutationResult:
    """작업 결과

    Attributes:
        operation: 작업 종류
        status: 결과 상태
        message: 사용자에게 보여준 메시지
        session: 개시/마감된 세션
        movement: 등록된 이동
        assessment: 마감 차액 판정
        idempotency_key: 쓰기에 사용한 키
        error: 실패 원인
    """

    operation: OperationKind
    status: MutationStatus
    message: str | None = None
    session: Session | None = None
    movement: Movement | None = None
    assessment: CloseAssessment | None = None
    idempotency_key: str | None = None
    error: BaseException | None = field(default=None, compare=False)

    @property
    def succeeded(self) -> bool:
        """성공 여부"""
        return self.status == MutationStatus.SUCCEEDED


# 쓰기 함수: idempotency key → (결과 필드, 무효화할 캐시 키)
WriteFn = Callable[[str], Awaitable[tuple[dict[str, Any], list[CacheKey]]]]


class CashMutationWorkflow:
    """현금 변경 작업 워크플로우

    Args:
        store: 원격 현금 저장소
        prompt: 위험 작업 확인 프롬프트
        notifier: 사용자 알림
        cache: read-through 캐시 (성공 시 무효화)
        get_snapshot: 마지막으로 조회한 원장 스냅샷 제공 함수
        refresh: 무효화 후 재조회 함수 (선택)
        limits: 금액 한도
    """

    def __init__(
        self,
        store: ICashDataStore,
        prompt: IConfirmationPrompt,
        notifier: INotifier,
        cache: ReadThroughCache,
        get_snapshot: Callable[[], LedgerSnapshot],
        refresh: Callable[[], Awaitable[Any]] | None = None,
        limits: CashLimits | None = None,
    ):
        self.store = store
        self.prompt = prompt
        self.notifier = notifier
        self.cache = cache
        self.get_snapshot = get_snapshot
        self.refresh = refresh
        self.limits = limits or CashLimits()

        self._loading = LoadingStates()

    @property
    def loading(self) -> LoadingStates:
        """현재 로딩 플래그 스냅샷"""
        return self._loading

    # -------------------------------------------------------------------------
    # 세션 개시
    # -------------------------------------------------------------------------

    async def open_session(self, amount: Any, notes: str | None = None) -> MutationResult:
        """세션 개시

        0이 아닌 개시 금액은 확인을 받는다.

        Args:
            amount: 개시 금액
            notes: 메모 (없으면 기본 메모, 최대 200자)

        Returns:
            MutationResult
        """
        kind = OperationKind.OPEN_SESSION
        if self._loading.is_loading(kind):
            return self._skipped(kind)

        try:
            opening_amount = validate_opening_amount(amount, self.limits)
            note_text = _clip_notes(notes, Defaults.OPEN_SESSION_NOTES)

            if opening_amount != ZERO:
                description = f"개시 금액: {format_amount(opening_amount)}"
                if notes:
                    description += f"\n메모: {note_text}"
                confirmed = await self.prompt.confirm(ConfirmationRequest(
                    title="현금 세션 개시 확인",
                    description=f"{description}\n계속하시겠습니까?",
                    confirm_text="세션 열기",
                    cancel_text="취소",
                    risk_level=RiskLevel.WARNING,
                ))
                if not confirmed:
                    return self._cancelled(kind)

        except Exception as e:
            return await self._failed(kind, e)

        async def write(key: str) -> tuple[dict[str, Any], list[CacheKey]]:
            session = await self.store.open_session(
                OpenSessionRequest(opening_amount=opening_amount, notes=note_text),
                idempotency_key=key,
            )
            return {"session": session}, [SESSION_KEY, movements_key(session.id)]

        return await self._execute(kind, write)

    # -------------------------------------------------------------------------
    # 세션 마감
    # -------------------------------------------------------------------------

    async def close_session(
        self,
        closing_amount: Any = None,
        counts: Sequence[CashCount] | None = None,
        notes: str | None = None,
    ) -> MutationResult:
        """세션 마감

        차액이 "큰 차액" 기준을 넘으면 확인을 받고, 그 이하의 차액은
        비차단 경고만 보낸다. 확인 후에는 차액과 함께 항상 마감한다.

        Args:
            closing_amount: 신고 마감 금액 (counts가 있으면 생략 가능)
            counts: 권종별 실사
            notes: 메모 (없으면 기본 메모)

        Returns:
            MutationResult (assessment 포함)
        """
        kind = OperationKind.CLOSE_SESSION
        if self._loading.is_loading(kind):
            return self._skipped(kind)

        assessment: CloseAssessment | None = None
        try:
            amount = resolve_closing_amount(closing_amount, list(counts) if counts else None)
            snapshot = self.get_snapshot()
            session = ensure_session_open(snapshot.session)
            assessment = assess_close(session, snapshot.summary, amount, self.limits)
            note_text = _clip_notes(notes, Defaults.CLOSE_SESSION_NOTES)

            if assessment.requires_confirmation:
                confirmed = await self.prompt.confirm(ConfirmationRequest(
                    title="차액이 큰 마감",
                    description=(
                        f"마감 금액: {format_amount(assessment.closing_amount)}\n"
                        f"예상 잔액: {format_amount(assessment.expected_balance)}\n"
                        f"차액: {format_amount(assessment.discrepancy)}\n\n"
                        "차액이 큽니다. 확인하면 이 차액으로 마감이 기록됩니다."
                    ),
                    confirm_text="그래도 마감",
                    cancel_text="취소",
                    risk_level=RiskLevel.WARNING,
                ))
                if not confirmed:
                    return self._cancelled(kind, assessment=assessment)

        except Exception as e:
            return await self._failed(kind, e, assessment=assessment)

        async def write(key: str) -> tuple[dict[str, Any], list[CacheKey]]:
            closed = await self.store.close_session(
                CloseSessionRequest(
                    session_id=session.id,
                    closing_amount=assessment.closing_amount,
                    system_expected=assessment.expected_balance,
                    notes=note_text,
                    counts=tuple(counts or ()),
                ),
                idempotency_key=key,
            )
            return (
                {"session": closed, "assessment": assessment},
                [SESSION_KEY, movements_key(session.id)],
            )

        result = await self._execute(kind, write, assessment=assessment)

        # 기록된 마감에만 차액 경고
        if result.succeeded and assessment.needs_warning:
            logger.warning(
                "마감 차액 발생",
                extra={
                    "session_id": session.id,
                    "expected": str(assessment.expected_balance),
                    "closing": str(assessment.closing_amount),
                    "discrepancy": str(assessment.discrepancy),
                },
            )
            await self._notify(
                f"예상 잔액과 차액: {format_amount(assessment.discrepancy)}",
                NotificationSeverity.WARNING,
                {"operation": kind.value, "discrepancy": str(assessment.discrepancy)},
            )
        return result

    # -------------------------------------------------------------------------
    # 이동 등록
    # -------------------------------------------------------------------------

    async def register_movement(
        self,
        movement_type: str | MovementType,
        amount: Any,
        direction: str | AdjustmentDirection | None = None,
        reason: str | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> MutationResult:
        """이동 등록

        OUT, ADJUSTMENT는 확인을 받고 IN, SALE, RETURN은 바로 실행한다.

        Args:
            movement_type: 이동 유형
            amount: 사용자 입력 금액 (양수 크기)
            direction: 조정 방향 (ADJUSTMENT 필수)
            reason: 사유
            reference_type: 원천 엔티티 종류
            reference_id: 원천 엔티티 ID

        Returns:
            MutationResult
        """
        kind = OperationKind.REGISTER_MOVEMENT
        if self._loading.is_loading(kind):
            return self._skipped(kind)

        try:
            mtype = coerce_movement_type(movement_type)
            value = validate_movement_amount(amount, mtype, self.limits.max_movement_amount)
            snapshot = self.get_snapshot()
            check_movement_preconditions(
                snapshot.session, snapshot.summary, mtype, value, direction
            )
            session = ensure_session_open(snapshot.session)
            resolved_direction = coerce_direction(direction)
            normalized = normalize_movement_amount(value, mtype, resolved_direction)
            reason_text = reason.strip() if reason and reason.strip() else None

            if mtype in CONFIRM_MOVEMENT_TYPES:
                title = "현금 조정 확인" if mtype == MovementType.ADJUSTMENT else "현금 출금 확인"
                description = f"유형: {mtype.value}\n금액: {format_amount(normalized)}"
                if reason_text:
                    description += f"\n사유: {reason_text}"
                confirmed = await self.prompt.confirm(ConfirmationRequest(
                    title=title,
                    description=f"{description}\n진행하시겠습니까?",
                    confirm_text="등록",
                    cancel_text="취소",
                    risk_level=RiskLevel.WARNING,
                ))
                if not confirmed:
                    return self._cancelled(kind)

        except Exception as e:
            return await self._failed(kind, e)

        async def write(key: str) -> tuple[dict[str, Any], list[CacheKey]]:
            movement = await self.store.create_movement(
                MovementRequest(
                    session_id=session.id,
                    type=mtype,
                    amount=normalized,
                    reason=reason_text,
                    reference_type=reference_type,
                    reference_id=reference_id,
                ),
                idempotency_key=key,
            )
            return {"movement": movement}, [movements_key(session.id), SESSION_KEY]

        return await self._execute(kind, write)

    # -------------------------------------------------------------------------
    # 공통 흐름
    # -------------------------------------------------------------------------

    async def _execute(
        self,
        kind: OperationKind,
        write: WriteFn,
        **result_fields: Any,
    ) -> MutationResult:
        """실행 → 무효화 → 보고 (로딩 플래그 유지)"""
        # 확인 대기 중 같은 종류 작업이 먼저 시작된 경우
        if self._loading.is_loading(kind):
            return self._skipped(kind)

        self._loading = started(self._loading, kind)
        key = make_idempotency_key(kind.value)
        try:
            try:
                fields, stale_keys = await write(key)
            except Exception as e:
                return await self._failed(kind, e, idempotency_key=key, **result_fields)

            fields = {**result_fields, **fields}
            logger.info(
                f"{kind.value} 완료",
                extra={"operation": kind.value, "idempotency_key": key},
            )

            for stale in stale_keys:
                self.cache.invalidate(stale)

            message = SUCCESS_MESSAGES[kind]
            if self.refresh is not None:
                try:
                    await self.refresh()
                except Exception as e:
                    logger.warning(
                        "쓰기 후 재조회 실패",
                        extra={"operation": kind.value, "error": str(e)},
                    )
                    message = f"{message} ({STALE_AFTER_WRITE_MESSAGE})"

            await self._notify(message, NotificationSeverity.SUCCESS, {"operation": kind.value})
            return MutationResult(
                operation=kind,
                status=MutationStatus.SUCCEEDED,
                message=message,
                idempotency_key=key,
                **fields,
            )
        finally:
            self._loading = finished(self._loading, kind)

    async def _failed(
        self,
        kind: OperationKind,
        error: Exception,
        **result_fields: Any,
    ) -> MutationResult:
        """실패 보고 (예외를 밖으로 던지지 않음)"""
        message = describe_error(error, kind)
        category = categorize_error(error)

        if isinstance(error, (CashDrawerError, StateMachineError)):
            logger.warning(
                f"{kind.value} 선검사 실패",
                extra={"operation": kind.value, "error_type": type(error).__name__},
            )
        else:
            logger.error(
                f"{kind.value} 실패",
                extra={"operation": kind.value, "error": str(error)},
                exc_info=True,
            )

        if category == ErrorCategory.PERMISSION_DENIED:
            await self._acknowledge_permission_denied(message)

        await self._notify(
            message,
            NotificationSeverity.ERROR,
            {"operation": kind.value, "category": category.value},
        )
        return MutationResult(
            operation=kind,
            status=MutationStatus.FAILED,
            message=message,
            error=error,
            **result_fields,
        )

    async def _acknowledge_permission_denied(self, message: str) -> None:
        """권한 거부는 안내 프롬프트로 한 번 더 알린다"""
        try:
            await self.prompt.confirm(ConfirmationRequest(
                title="권한 거부",
                description=message,
                confirm_text="확인",
                cancel_text="닫기",
                risk_level=RiskLevel.INFO,
            ))
        except Exception as e:
            logger.error("권한 안내 프롬프트 실패", extra={"error": str(e)})

    def _cancelled(self, kind: OperationKind, **result_fields: Any) -> MutationResult:
        logger.info(f"{kind.value} 취소됨", extra={"operation": kind.value})
        return MutationResult(operation=kind, status=MutationStatus.CANCELLED, **result_fields)

    def _skipped(self, kind: OperationKind) -> MutationResult:
        logger.warning(f"{kind.value} 작업이 이미 진행 중입니다", extra={"operation": kind.value})
        return MutationResult(operation=kind, status=MutationStatus.SKIPPED)

    async def _notify(
        self,
        message: str,
        severity: NotificationSeverity,
        extra: dict[str, Any] | None = None,
    ) -> None:
        try:
            sent = await self.notifier.send(message, severity, extra)
        except Exception as e:
            logger.error("사용자 알림 실패", extra={"error": str(e)})
            return
        if not sent:
            logger.warning("사용자 알림 전송 실패", extra={"severity": severity.value})


def _clip_notes(notes: str | None, default: str) -> str:
    text = (notes or "").strip() or default
    return text[:Defaults.NOTES_MAX_LENGTH]
