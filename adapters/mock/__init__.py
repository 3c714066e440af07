"""
Mock 어댑터

테스트용 Mock 구현체 제공.
Protocol 준수하여 실제 구현체와 교체 가능.
"""

from adapters.mock.change_feed import MockChangeFeed
from adapters.mock.data_store import InMemoryCashDataStore, MockStoreState
from adapters.mock.notifier import MockNotifier
from adapters.mock.prompt import MockConfirmationPrompt

__all__ = [
    "InMemoryCashDataStore",
    "MockStoreState",
    "MockChangeFeed",
    "MockNotifier",
    "MockConfirmationPrompt",
]
