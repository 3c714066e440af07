"""
원장 스냅샷

한 번의 조회로 얻은 세션 + 이동 목록 + 요약 묶음.
요약은 항상 같은 스냅샷의 이동 목록에서만 계산한다.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from core.domain.models import Movement, Session
from core.ledger.summary import MovementSummary, calculate_movement_summary, session_balance


@dataclass(frozen=True)
class LedgerSnapshot:
    """불변 원장 스냅샷

    Attributes:
        session: 현재 세션 (없으면 None)
        movements: 해당 세션의 이동 목록 전체
        summary: movements 요약
        fetched_at: 조회 완료 시각 (한 번도 조회 전이면 None)
    """

    session: Session | None = None
    movements: tuple[Movement, ...] = field(default_factory=tuple)
    summary: MovementSummary = field(default_factory=MovementSummary)
    fetched_at: datetime | None = None

    @classmethod
    def build(
        cls,
        session: Session | None,
        movements: Sequence[Movement],
        fetched_at: datetime | None = None,
    ) -> "LedgerSnapshot":
        """세션과 이동 목록으로 스냅샷 생성 (요약 계산 포함)"""
        items = tuple(movements)
        return cls(
            session=session,
            movements=items,
            summary=calculate_movement_summary(items),
            fetched_at=fetched_at,
        )

    @property
    def balance(self) -> Decimal | None:
        """현재 잔액 (세션 없으면 None)"""
        return session_balance(self.session, self.summary)

    @property
    def session_id(self) -> str | None:
        """세션 ID"""
        return self.session.id if self.session else None
