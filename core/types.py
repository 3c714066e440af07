"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from core.constants import Limits


class MovementType(str, Enum):
    """현금 이동 유형 (닫힌 집합)

    부호 규칙:
    - IN, SALE: 양수 크기 저장, 잔액에 +amount
    - OUT, RETURN: 양수 크기 저장, 잔액에 -amount
    - ADJUSTMENT: 부호 포함 저장, 잔액에 +amount
    """

    IN = "IN"
    OUT = "OUT"
    SALE = "SALE"
    RETURN = "RETURN"
    ADJUSTMENT = "ADJUSTMENT"


class AdjustmentDirection(str, Enum):
    """조정 방향 (ADJUSTMENT 전용)"""

    INCREASE = "increase"
    DECREASE = "decrease"


class SessionStatus(str, Enum):
    """현금 세션 상태"""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class OperationKind(str, Enum):
    """로딩 플래그 단위 작업 종류 (변경 작업 3종 + 데이터 조회)"""

    OPEN_SESSION = "open_session"
    CLOSE_SESSION = "close_session"
    REGISTER_MOVEMENT = "register_movement"
    FETCH_DATA = "fetch_data"


class NotificationSeverity(str, Enum):
    """사용자 알림 심각도"""

    SUCCESS = "SUCCESS"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class RiskLevel(str, Enum):
    """확인 프롬프트 위험도"""

    DEFAULT = "default"
    INFO = "info"
    WARNING = "warning"


class ChangeKind(str, Enum):
    """변경 알림 종류"""

    MOVEMENT_INSERTED = "movement_inserted"
    SESSION_UPDATED = "session_updated"


class SortKey(str, Enum):
    """이동 목록 정렬 기준"""

    DATE = "date"
    AMOUNT = "amount"
    TYPE = "type"


class SortDirection(str, Enum):
    """정렬 방향"""

    ASC = "asc"
    DESC = "desc"


class AlertKind(str, Enum):
    """대시보드 경고 종류"""

    DISCREPANCY = "discrepancy"
    NO_SESSION = "no_session"
    LARGE_MOVEMENT = "large_movement"
    SESSION_TIMEOUT = "session_timeout"


class AlertSeverity(str, Enum):
    """대시보드 경고 심각도"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ConnectionState(str, Enum):
    """변경 피드 연결 상태"""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    RECONNECTING = "RECONNECTING"


# 유입(+) / 유출(-) 유형 묶음
INFLOW_TYPES: frozenset[MovementType] = frozenset({MovementType.IN, MovementType.SALE})
OUTFLOW_TYPES: frozenset[MovementType] = frozenset({MovementType.OUT, MovementType.RETURN})


@dataclass(frozen=True)
class CashLimits:
    """금액 한도 (불변)

    settings.yaml의 limits 섹션 또는 Limits 상수 기본값으로 생성
    """

    max_movement_amount: Decimal = Limits.MAX_MOVEMENT_AMOUNT
    max_opening_amount: Decimal = Limits.MAX_OPENING_AMOUNT
    high_discrepancy_floor: Decimal = Limits.HIGH_DISCREPANCY_FLOOR
    high_discrepancy_ratio: Decimal = Limits.HIGH_DISCREPANCY_RATIO
    large_movement_threshold: Decimal = Limits.LARGE_MOVEMENT_THRESHOLD
    session_timeout_hours: int = Limits.SESSION_TIMEOUT_HOURS

    def high_discrepancy_threshold(self, expected_balance: Decimal) -> Decimal:
        """차액 큼 판정 기준값: max(floor, 예상잔액 * ratio)"""
        return max(
            self.high_discrepancy_floor,
            expected_balance * self.high_discrepancy_ratio,
        )
