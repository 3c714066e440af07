"""
작업별 로딩 플래그

불변 스냅샷 + 순수 전이 함수(reducer) 구조.
플래그는 작업 종류별로 독립이며 전역 잠금이 아니다.
"""

from dataclasses import dataclass, replace

from core.types import OperationKind


@dataclass(frozen=True)
class LoadingStates:
    """로딩 플래그 스냅샷

    Attributes:
        open_session: 세션 개시 진행 중
        close_session: 세션 마감 진행 중
        register_movement: 이동 등록 진행 중
        fetch_data: 세션/이동 재조회 진행 중
    """

    open_session: bool = False
    close_session: bool = False
    register_movement: bool = False
    fetch_data: bool = False

    def is_loading(self, kind: OperationKind) -> bool:
        """해당 작업 진행 여부"""
        return getattr(self, OperationKind(kind).value)

    @property
    def any_mutation(self) -> bool:
        """변경 작업 중 하나라도 진행 중인지"""
        return self.open_session or self.close_session or self.register_movement


@dataclass(frozen=True)
class LoadingAction:
    """로딩 플래그 전이 액션"""

    kind: OperationKind
    active: bool


def reduce_loading(state: LoadingStates, action: LoadingAction) -> LoadingStates:
    """액션을 적용한 새 스냅샷 (다른 플래그는 그대로)"""
    field_name = OperationKind(action.kind).value
    if getattr(state, field_name) == action.active:
        return state
    return replace(state, **{field_name: action.active})


def started(state: LoadingStates, kind: OperationKind) -> LoadingStates:
    """작업 시작"""
    return reduce_loading(state, LoadingAction(kind, True))


def finished(state: LoadingStates, kind: OperationKind) -> LoadingStates:
    """작업 종료 (성공/실패 무관)"""
    return reduce_loading(state, LoadingAction(kind, False))
