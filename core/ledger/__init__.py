"""
현금 원장 계산

세션의 이동 스냅샷을 요약, 필터, 지표, 경고로 변환하는 순수 함수 모음.

사용 예시:
```python
from core.ledger import calculate_movement_summary, session_balance

summary = calculate_movement_summary(movements)
balance = session_balance(session, summary)  # 세션 없으면 None

page = apply_view(movements, with_filters(FilterState(), type="OUT"))
```
"""

from core.ledger.alerts import CashAlert, acknowledge, dismiss, generate_alerts
from core.ledger.filters import (
    FilterState,
    Page,
    apply_view,
    cleared,
    count_active_filters,
    filter_movements,
    paginate,
    parse_date_bound,
    sort_movements,
    with_filters,
    with_page,
    with_page_size,
)
from core.ledger.insights import CashInsights, build_insights
from core.ledger.snapshot import LedgerSnapshot
from core.ledger.summary import MovementSummary, calculate_movement_summary, session_balance

__all__ = [
    # 요약
    "MovementSummary",
    "calculate_movement_summary",
    "session_balance",
    "LedgerSnapshot",
    # 필터
    "FilterState",
    "Page",
    "apply_view",
    "cleared",
    "count_active_filters",
    "filter_movements",
    "paginate",
    "parse_date_bound",
    "sort_movements",
    "with_filters",
    "with_page",
    "with_page_size",
    # 지표 / 경고
    "CashInsights",
    "build_insights",
    "CashAlert",
    "generate_alerts",
    "acknowledge",
    "dismiss",
]
