"""
대시보드 지표 / 경고 테스트
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from core.ledger.alerts import acknowledge, discrepancy_severity, dismiss, generate_alerts
from core.ledger.insights import (
    build_insights,
    calculate_peak_hours,
    calculate_risk_score,
    movements_on_day,
)
from core.ledger.summary import calculate_movement_summary
from core.types import AlertKind, AlertSeverity, CashLimits, SessionStatus
from core.utils.timezone import KST

NOW = datetime(2026, 10, 16, 15, 0, tzinfo=timezone.utc)


class TestInsights:
    """build_insights 테스트"""

    def test_no_session(self) -> None:
        insights = build_insights([], None, calculate_movement_summary([]), now=NOW)

        assert insights.current_balance is None
        assert insights.peak_hours == []
        assert insights.cash_turnover == Decimal("0")
        assert insights.risk_score == 0

    def test_today_flows(self, make_session, make_movement) -> None:
        yesterday = NOW - timedelta(days=1)
        movements = [
            make_movement("IN", 100, created_at=NOW.replace(hour=9)),
            make_movement("SALE", 300, created_at=NOW.replace(hour=10)),
            make_movement("OUT", 50, created_at=NOW.replace(hour=10, minute=30)),
            make_movement("RETURN", 50, created_at=NOW.replace(hour=11)),
            make_movement("ADJUSTMENT", -20, created_at=NOW.replace(hour=11)),
            make_movement("SALE", 999, created_at=yesterday),
        ]
        summary = calculate_movement_summary(movements)
        insights = build_insights(movements, make_session(1000), summary, now=NOW)

        assert len(insights.today_movements) == 5
        assert insights.today_inflows == Decimal("400")
        assert insights.today_outflows == Decimal("100")
        assert insights.net_flow == Decimal("300")
        assert insights.cash_turnover == Decimal("0.25")
        assert insights.transaction_velocity == Decimal(5) / 24
        assert insights.peak_hours == [10, 11]
        assert insights.current_balance == Decimal("1000") + summary.balance

    def test_today_uses_display_timezone(self, make_movement) -> None:
        # 2026-10-16 20:00 UTC = 2026-10-17 05:00 KST
        movement = make_movement("IN", 1, created_at=datetime(2026, 10, 16, 20, 0, tzinfo=timezone.utc))
        now = datetime(2026, 10, 17, 1, 0, tzinfo=timezone.utc)

        assert movements_on_day([movement], now) == []
        assert movements_on_day([movement], now, KST) == [movement]
        assert calculate_peak_hours([movement], KST) == [5]


class TestRiskScore:
    """calculate_risk_score 테스트"""

    def test_negative_balance(self) -> None:
        assert calculate_risk_score(Decimal("-1"), []) == 30

    def test_high_volume(self, make_movement) -> None:
        movements = [make_movement("SALE", 10) for _ in range(51)]
        assert calculate_risk_score(Decimal("0"), movements) == 20

    def test_large_transactions(self, make_movement) -> None:
        movements = [make_movement("SALE", 10) for _ in range(9)] + [make_movement("OUT", 1000)]
        # 평균 109 → 기준 327, 1000만 해당
        assert calculate_risk_score(Decimal("100"), movements) == 5

    def test_capped(self, make_movement) -> None:
        movements = [make_movement("SALE", 1) for _ in range(60)]
        movements += [make_movement("SALE", 100000) for _ in range(15)]
        assert calculate_risk_score(Decimal("-5"), movements) == 100


class TestAlerts:
    """generate_alerts 테스트"""

    def test_no_open_session(self) -> None:
        alerts = generate_alerts([], now=NOW)

        assert [a.id for a in alerts] == ["no-open-session"]
        assert alerts[0].severity == AlertSeverity.HIGH

    def test_multiple_open_sessions(self, make_session) -> None:
        sessions = [make_session(id="a", opened_at=NOW), make_session(id="b", opened_at=NOW)]
        alerts = generate_alerts(sessions, now=NOW)

        assert alerts[0].id == "multiple-open-sessions"
        assert alerts[0].severity == AlertSeverity.CRITICAL

    def test_session_timeout(self, make_session) -> None:
        session = make_session(opened_at=NOW - timedelta(hours=13))
        alerts = generate_alerts([session], now=NOW, limits=CashLimits(session_timeout_hours=12))

        assert [a.kind for a in alerts] == [AlertKind.SESSION_TIMEOUT]

    def test_recent_discrepancy(self, make_session) -> None:
        recent = make_session(
            id="recent",
            status=SessionStatus.CLOSED,
            closed_at=NOW - timedelta(hours=2),
            discrepancy_amount=Decimal("-1500"),
        )
        old = make_session(
            id="old",
            status=SessionStatus.CLOSED,
            closed_at=NOW - timedelta(hours=30),
            discrepancy_amount=Decimal("50000"),
        )
        exact = make_session(
            id="exact",
            status=SessionStatus.CLOSED,
            closed_at=NOW,
            discrepancy_amount=Decimal("0"),
        )
        current = make_session(id="current", opened_at=NOW)

        alerts = generate_alerts([current, recent, old, exact], now=NOW)

        assert [a.id for a in alerts] == ["discrepancy-recent"]
        assert alerts[0].severity == AlertSeverity.HIGH

    def test_discrepancy_severity_steps(self) -> None:
        assert discrepancy_severity(Decimal("1")) == AlertSeverity.LOW
        assert discrepancy_severity(Decimal("100.01")) == AlertSeverity.MEDIUM
        assert discrepancy_severity(Decimal("-1000.01")) == AlertSeverity.HIGH
        assert discrepancy_severity(Decimal("10001")) == AlertSeverity.CRITICAL

    def test_large_movements_in_open_session(self, make_session, make_movement) -> None:
        session = make_session(opened_at=NOW)
        movements = [
            make_movement("OUT", 60000, id="big-out"),
            make_movement("ADJUSTMENT", -70000, id="big-adj"),
            make_movement("SALE", 900000, id="big-sale"),
            make_movement("OUT", 50000, id="at-threshold"),
        ]
        alerts = generate_alerts([session], {session.id: movements}, now=NOW)

        assert [a.id for a in alerts] == ["large-movement-big-out", "large-movement-big-adj"]

    def test_acknowledge_and_dismiss(self) -> None:
        alerts = generate_alerts([], now=NOW)

        acked = acknowledge(alerts, "no-open-session")
        assert acked[0].acknowledged
        assert not alerts[0].acknowledged

        assert acknowledge(alerts)[0].acknowledged
        assert dismiss(acked, "no-open-session") == []
