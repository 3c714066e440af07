"""
어댑터 레이어

외부 서비스(원격 현금 저장소, 변경 피드, 확인 프롬프트, 알림)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    ChangeCallback,
    ICashDataStore,
    IChangeFeed,
    IConfirmationPrompt,
    INotifier,
)
from adapters.models import (
    ChangeEvent,
    CloseSessionRequest,
    ConfirmationRequest,
    MovementRequest,
    OpenSessionRequest,
)

__all__ = [
    # Interfaces
    "ChangeCallback",
    "ICashDataStore",
    "IChangeFeed",
    "IConfirmationPrompt",
    "INotifier",
    # Models
    "ChangeEvent",
    "CloseSessionRequest",
    "ConfirmationRequest",
    "MovementRequest",
    "OpenSessionRequest",
]
