"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
금액 상수는 반드시 Decimal 사용
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → cashdrawer/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Limits:
    """금액 한도 기본값 (settings.yaml의 limits 섹션으로 재정의 가능)"""

    MAX_MOVEMENT_AMOUNT: Decimal = Decimal("10000000")
    MAX_OPENING_AMOUNT: Decimal = Decimal("1000000")

    # 마감 차액이 max(FLOOR, 예상잔액 * RATIO) 초과 시 "차액 큼"
    HIGH_DISCREPANCY_FLOOR: Decimal = Decimal("100000")
    HIGH_DISCREPANCY_RATIO: Decimal = Decimal("0.5")

    LARGE_MOVEMENT_THRESHOLD: Decimal = Decimal("50000")
    SESSION_TIMEOUT_HOURS: int = 12


class Defaults:
    """기본값 상수"""

    API_TIMEOUT_SEC: float = 10.0
    API_MAX_RETRIES: int = 3

    # 서버 페이지 최대 크기 (GET /cash/movements limit 상한)
    MOVEMENTS_FETCH_LIMIT: int = 200
    SESSIONS_FETCH_LIMIT: int = 50

    PAGE_SIZE: int = 20
    DEBOUNCE_SEC: float = 0.3

    OPEN_SESSION_NOTES: str = "시재 개시"
    CLOSE_SESSION_NOTES: str = "시재 마감"
    NOTES_MAX_LENGTH: int = 200

    LOG_LEVEL: str = "INFO"


class ApiPaths:
    """원격 현금 저장소 REST 경로"""

    CURRENT_SESSION: str = "/cash/session/current"
    OPEN_SESSION: str = "/cash/session/open"
    CLOSE_SESSION: str = "/cash/session/close"
    SESSIONS: str = "/cash/sessions"
    MOVEMENTS: str = "/cash/movements"


class Headers:
    """요청 헤더 이름"""

    ORGANIZATION: str = "X-Organization-Id"
    IDEMPOTENCY_KEY: str = "Idempotency-Key"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"
