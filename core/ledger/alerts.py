"""
현금 경고 생성

세션 목록을 훑어 대시보드 경고(세션 없음, 장시간 개시, 마감 차액,
고액 이동)를 만든다. 경고 ID는 입력이 같으면 항상 같다.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Mapping, Sequence

from core.domain.models import Movement, Session
from core.types import AlertKind, AlertSeverity, CashLimits, MovementType, SessionStatus
from core.utils.amounts import format_amount

# 최근 마감 판정 구간
RECENT_CLOSE_WINDOW = timedelta(hours=24)

# 마감 차액 심각도 경계 (초과 기준)
DISCREPANCY_SEVERITY_STEPS: tuple[tuple[Decimal, AlertSeverity], ...] = (
    (Decimal("10000"), AlertSeverity.CRITICAL),
    (Decimal("1000"), AlertSeverity.HIGH),
    (Decimal("100"), AlertSeverity.MEDIUM),
)

LARGE_MOVEMENT_TYPES = frozenset({MovementType.OUT, MovementType.ADJUSTMENT})


@dataclass(frozen=True)
class CashAlert:
    """대시보드 경고"""

    id: str
    kind: AlertKind
    severity: AlertSeverity
    title: str
    description: str
    created_at: datetime
    session_id: str | None = None
    amount: Decimal | None = None
    acknowledged: bool = False


def discrepancy_severity(discrepancy: Decimal) -> AlertSeverity:
    """마감 차액 심각도"""
    magnitude = abs(discrepancy)
    for boundary, severity in DISCREPANCY_SEVERITY_STEPS:
        if magnitude > boundary:
            return severity
    return AlertSeverity.LOW


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def generate_alerts(
    sessions: Sequence[Session],
    movements_by_session: Mapping[str, Sequence[Movement]] | None = None,
    now: datetime | None = None,
    limits: CashLimits | None = None,
) -> list[CashAlert]:
    """경고 목록 생성

    Args:
        sessions: 조회된 세션 목록
        movements_by_session: 세션 ID별 이동 (고액 이동 판정용, 선택)
        now: 기준 시각
        limits: 금액 한도 (고액 기준, 장시간 기준)

    Returns:
        CashAlert 목록
    """
    now = now or datetime.now(timezone.utc)
    limits = limits or CashLimits()
    movements_by_session = movements_by_session or {}
    alerts: list[CashAlert] = []

    open_sessions = [s for s in sessions if s.status == SessionStatus.OPEN]

    if not open_sessions:
        alerts.append(CashAlert(
            id="no-open-session",
            kind=AlertKind.NO_SESSION,
            severity=AlertSeverity.HIGH,
            title="열린 현금 세션 없음",
            description="이동을 등록하려면 현금 세션을 먼저 열어야 합니다.",
            created_at=now,
        ))
    elif len(open_sessions) > 1:
        alerts.append(CashAlert(
            id="multiple-open-sessions",
            kind=AlertKind.NO_SESSION,
            severity=AlertSeverity.CRITICAL,
            title="여러 세션이 동시에 열림",
            description=f"현금 세션 {len(open_sessions)}개가 동시에 열려 있습니다.",
            created_at=now,
        ))

    timeout = timedelta(hours=limits.session_timeout_hours)
    for session in open_sessions:
        open_for = now - _aware(session.opened_at)
        if open_for > timeout:
            hours = round(open_for.total_seconds() / 3600)
            alerts.append(CashAlert(
                id=f"session-timeout-{session.id}",
                kind=AlertKind.SESSION_TIMEOUT,
                severity=AlertSeverity.MEDIUM,
                title="장시간 열린 세션",
                description=f"세션이 {hours}시간째 열려 있습니다.",
                created_at=now,
                session_id=session.id,
            ))

    for session in sessions:
        if session.status != SessionStatus.CLOSED or not session.discrepancy_amount:
            continue
        if session.closed_at is None or now - _aware(session.closed_at) > RECENT_CLOSE_WINDOW:
            continue

        alerts.append(CashAlert(
            id=f"discrepancy-{session.id}",
            kind=AlertKind.DISCREPANCY,
            severity=discrepancy_severity(session.discrepancy_amount),
            title="마감 세션 차액",
            description=(
                f"세션이 {format_amount(session.discrepancy_amount)} 차액으로 마감되었습니다."
            ),
            created_at=now,
            session_id=session.id,
            amount=session.discrepancy_amount,
        ))

    for session in open_sessions:
        for movement in movements_by_session.get(session.id, ()):
            if movement.type not in LARGE_MOVEMENT_TYPES:
                continue
            if movement.magnitude <= limits.large_movement_threshold:
                continue

            alerts.append(CashAlert(
                id=f"large-movement-{movement.id}",
                kind=AlertKind.LARGE_MOVEMENT,
                severity=AlertSeverity.MEDIUM,
                title="고액 이동",
                description=(
                    f"{movement.type.value} 이동 {format_amount(movement.amount)}이(가) 등록되었습니다."
                ),
                created_at=now,
                session_id=session.id,
                amount=movement.amount,
            ))

    return alerts


def acknowledge(alerts: Sequence[CashAlert], alert_id: str | None = None) -> list[CashAlert]:
    """경고 확인 처리 (alert_id가 None이면 전체)"""
    return [
        replace(alert, acknowledged=True)
        if alert_id is None or alert.id == alert_id
        else alert
        for alert in alerts
    ]


def dismiss(alerts: Sequence[CashAlert], alert_id: str) -> list[CashAlert]:
    """경고 제거"""
    return [alert for alert in alerts if alert.id != alert_id]
