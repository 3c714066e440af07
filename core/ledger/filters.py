"""
이동 필터 & 페이지네이션

원장 데이터와 사용자 필터 상태로부터 필터링된 목록과 페이지를 계산하는
순수 함수 모음. FilterState는 불변이며 전이 함수(with_*)가 새 상태를 반환한다.
필터 값이 바뀌면 페이지는 항상 1로 돌아간다.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timezone, tzinfo
from decimal import Decimal
from typing import Any, Sequence

from core.constants import Defaults
from core.domain.models import Movement
from core.types import MovementType, SortDirection, SortKey
from core.utils.amounts import to_finite_decimal

# "all" = 필터 없음
ALL = "all"

# 날짜만 주어진 to 경계는 그날 23:59:59.999까지 포함
END_OF_DAY = time(23, 59, 59, 999000)

DateBound = date | datetime


@dataclass(frozen=True)
class FilterState:
    """이동 목록 필터 상태 (부수효과 없는 값 객체)

    Attributes:
        type: MovementType 또는 "all"
        search: 사유(reason) 부분 문자열 검색 (대소문자 무시)
        date_from: 시작 경계 (포함)
        date_to: 종료 경계 (포함, 날짜만이면 그날 끝까지)
        amount_min: 저장 금액 하한 (포함, 부호 그대로 비교)
        amount_max: 저장 금액 상한 (포함, 부호 그대로 비교)
        created_by_me: 현재 사용자가 만든 이동만
        reference_type: 원천 엔티티 종류 또는 "all"
        user_id: 생성자 ID 또는 "all"
        sort_key: 정렬 기준
        sort_dir: 정렬 방향
        page: 1부터 시작하는 페이지
        page_size: 페이지 크기
    """

    type: MovementType | str = ALL
    search: str = ""
    date_from: DateBound | None = None
    date_to: DateBound | None = None
    amount_min: Decimal | None = None
    amount_max: Decimal | None = None
    created_by_me: bool = False
    reference_type: str = ALL
    user_id: str = ALL
    sort_key: SortKey = SortKey.DATE
    sort_dir: SortDirection = SortDirection.DESC
    page: int = 1
    page_size: int = Defaults.PAGE_SIZE


@dataclass(frozen=True)
class Page:
    """페이지 결과"""

    items: list[Movement] = field(default_factory=list)
    page: int = 1
    page_size: int = Defaults.PAGE_SIZE
    total: int = 0

    @property
    def pages(self) -> int:
        """전체 페이지 수"""
        if self.total == 0:
            return 0
        return math.ceil(self.total / self.page_size)

    @property
    def has_next(self) -> bool:
        """다음 페이지 존재 여부"""
        return self.page < self.pages


# -------------------------------------------------------------------------
# 상태 전이
# -------------------------------------------------------------------------

_FILTER_FIELDS = frozenset({
    "type", "search", "date_from", "date_to", "amount_min", "amount_max",
    "created_by_me", "reference_type", "user_id", "sort_key", "sort_dir",
})


def with_filters(state: FilterState, **changes: Any) -> FilterState:
    """필터 값 변경 (페이지는 1로 초기화)

    Raises:
        ValueError: 알 수 없는 필터 필드
    """
    unknown = set(changes) - _FILTER_FIELDS
    if unknown:
        raise ValueError(f"알 수 없는 필터 필드: {sorted(unknown)}")

    if "type" in changes:
        changes["type"] = _coerce_type_filter(changes["type"])
    for key in ("amount_min", "amount_max"):
        if key in changes and changes[key] is not None:
            changes[key] = to_finite_decimal(changes[key])
    if "sort_key" in changes:
        changes["sort_key"] = SortKey(changes["sort_key"])
    if "sort_dir" in changes:
        changes["sort_dir"] = SortDirection(changes["sort_dir"])

    return replace(state, page=1, **changes)


def with_page(state: FilterState, page: int) -> FilterState:
    """페이지 이동 (1 미만은 1로)"""
    return replace(state, page=max(1, int(page)))


def with_page_size(state: FilterState, page_size: int) -> FilterState:
    """페이지 크기 변경 (페이지는 1로 초기화)

    Raises:
        ValueError: 1 미만 크기
    """
    if page_size < 1:
        raise ValueError("page_size는 1 이상이어야 합니다")
    return replace(state, page_size=page_size, page=1)


def cleared(state: FilterState) -> FilterState:
    """모든 필터 초기화 (정렬과 페이지 크기는 유지)"""
    return FilterState(
        sort_key=state.sort_key,
        sort_dir=state.sort_dir,
        page_size=state.page_size,
    )


def count_active_filters(state: FilterState) -> int:
    """활성 필터 수 (정렬/페이지 제외)"""
    active = [
        state.type != ALL,
        bool(state.search.strip()),
        state.date_from is not None,
        state.date_to is not None,
        state.amount_min is not None,
        state.amount_max is not None,
        state.created_by_me,
        state.reference_type != ALL,
        state.user_id != ALL,
    ]
    return sum(1 for flag in active if flag)


def _coerce_type_filter(value: Any) -> MovementType | str:
    if value is None or (isinstance(value, str) and value.lower() == ALL):
        return ALL
    if isinstance(value, MovementType):
        return value
    return MovementType(str(value).upper())


# -------------------------------------------------------------------------
# 날짜 경계
# -------------------------------------------------------------------------


def parse_date_bound(text: str) -> DateBound:
    """문자열 경계 파싱

    "YYYY-MM-DD"는 날짜만 있는 경계(date), 그 외는 ISO datetime.

    Raises:
        ValueError: 형식 오류
    """
    text = text.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def _lower_bound(bound: DateBound, tz: tzinfo) -> datetime:
    if isinstance(bound, datetime):
        return bound if bound.tzinfo else bound.replace(tzinfo=tz)
    return datetime.combine(bound, time.min, tzinfo=tz)


def _upper_bound(bound: DateBound, tz: tzinfo) -> datetime:
    if isinstance(bound, datetime):
        return bound if bound.tzinfo else bound.replace(tzinfo=tz)
    return datetime.combine(bound, END_OF_DAY, tzinfo=tz)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


# -------------------------------------------------------------------------
# 필터 / 정렬 / 페이지
# -------------------------------------------------------------------------


def filter_movements(
    movements: Sequence[Movement],
    state: FilterState,
    current_user_id: str | None = None,
    tz: tzinfo = timezone.utc,
) -> list[Movement]:
    """필터 적용 (입력 순서 유지)

    Args:
        movements: 원장 이동 목록
        state: 필터 상태
        current_user_id: created_by_me 판정용 현재 사용자 ID
        tz: 날짜만 있는 경계를 해석할 타임존

    Returns:
        필터링된 이동 목록

    Note:
        amount_min/amount_max는 저장 금액을 부호 그대로 비교한다.
        IN/OUT/SALE/RETURN은 크기로, ADJUSTMENT는 부호 포함으로 저장되므로
        음수 하한은 조정 이동에만 걸린다.
    """
    search = state.search.strip().lower()
    lower = _lower_bound(state.date_from, tz) if state.date_from is not None else None
    upper = _upper_bound(state.date_to, tz) if state.date_to is not None else None

    result: list[Movement] = []
    for movement in movements:
        if state.type != ALL and movement.type != state.type:
            continue

        if search and search not in (movement.reason or "").lower():
            continue

        created_at = _aware(movement.created_at)
        if lower is not None and created_at < lower:
            continue
        if upper is not None and created_at > upper:
            continue

        if state.amount_min is not None and movement.amount < state.amount_min:
            continue
        if state.amount_max is not None and movement.amount > state.amount_max:
            continue

        if state.reference_type != ALL and movement.reference_type != state.reference_type:
            continue
        if state.user_id != ALL and movement.created_by != state.user_id:
            continue
        if state.created_by_me and (
            current_user_id is None or movement.created_by != current_user_id
        ):
            continue

        result.append(movement)

    return result


def sort_movements(
    movements: Sequence[Movement],
    sort_key: SortKey = SortKey.DATE,
    sort_dir: SortDirection = SortDirection.DESC,
) -> list[Movement]:
    """안정 정렬"""
    reverse = sort_dir == SortDirection.DESC

    if sort_key == SortKey.AMOUNT:
        return sorted(movements, key=lambda m: m.amount, reverse=reverse)
    if sort_key == SortKey.TYPE:
        return sorted(movements, key=lambda m: m.type.value, reverse=reverse)
    return sorted(movements, key=lambda m: _aware(m.created_at), reverse=reverse)


def paginate(
    movements: Sequence[Movement],
    page: int,
    page_size: int = Defaults.PAGE_SIZE,
) -> Page:
    """페이지 슬라이스: movements[(page-1)*size : page*size]

    Raises:
        ValueError: page 또는 page_size가 1 미만
    """
    if page < 1 or page_size < 1:
        raise ValueError("page와 page_size는 1 이상이어야 합니다")

    start = (page - 1) * page_size
    return Page(
        items=list(movements[start:start + page_size]),
        page=page,
        page_size=page_size,
        total=len(movements),
    )


def apply_view(
    movements: Sequence[Movement],
    state: FilterState,
    current_user_id: str | None = None,
    tz: tzinfo = timezone.utc,
) -> Page:
    """필터 → 정렬 → 페이지 적용"""
    filtered = filter_movements(movements, state, current_user_id, tz)
    ordered = sort_movements(filtered, state.sort_key, state.sort_dir)
    return paginate(ordered, state.page, state.page_size)
