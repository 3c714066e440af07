"""
실시간 재조회 모듈

변경 피드 알림 → 디바운스 → 캐시 무효화 후 재조회
"""

from drawer.realtime.debouncer import Debouncer
from drawer.realtime.reconciler import RealtimeReconciler

__all__ = [
    "Debouncer",
    "RealtimeReconciler",
]
