"""
현금 변경 작업 워크플로우

선검사 → 위험 확인 → 실행 → 무효화 → 보고
"""

from drawer.workflow.loading import LoadingAction, LoadingStates, finished, reduce_loading, started
from drawer.workflow.messages import ErrorCategory, categorize_error, describe_error
from drawer.workflow.mutations import CashMutationWorkflow, MutationResult, MutationStatus

__all__ = [
    "CashMutationWorkflow",
    "MutationResult",
    "MutationStatus",
    "LoadingStates",
    "LoadingAction",
    "reduce_loading",
    "started",
    "finished",
    "ErrorCategory",
    "categorize_error",
    "describe_error",
]
