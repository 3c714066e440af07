"""
설정 로더

settings.yaml 로드 및 API/한도/실시간 설정 생성
"""

from dataclasses import dataclass, field
from datetime import tzinfo
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Limits, Paths
from core.types import CashLimits
from core.utils.amounts import to_finite_decimal
from core.utils.timezone import tz_from_offset


@dataclass(frozen=True)
class ApiConfig:
    """원격 현금 저장소 연결 설정

    ws_url이 없으면 실시간 변경 피드를 사용하지 않는다.
    """

    base_url: str
    token: str
    organization_id: str
    ws_url: str | None = None
    timeout: float = Defaults.API_TIMEOUT_SEC
    max_retries: int = Defaults.API_MAX_RETRIES


@dataclass(frozen=True)
class RealtimeConfig:
    """실시간 변경 반영 설정"""

    enabled: bool = True
    debounce_seconds: float = Defaults.DEBOUNCE_SEC


@dataclass(frozen=True)
class DrawerSettings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    api: ApiConfig
    limits: CashLimits = field(default_factory=CashLimits)
    realtime: RealtimeConfig = field(default_factory=RealtimeConfig)
    timezone_offset_hours: float = 0

    @property
    def display_tz(self) -> tzinfo:
        """오늘 판정 및 표시 타임존"""
        return tz_from_offset(self.timezone_offset_hours)

    @property
    def realtime_enabled(self) -> bool:
        """변경 피드 사용 여부 (ws_url 필요)"""
        return self.realtime.enabled and bool(self.api.ws_url)


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def _require(section: dict[str, Any], key: str, section_name: str) -> Any:
    value = section.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise SettingsLoadError(
            f"settings.yaml의 {section_name} 섹션에 '{key}'가 없습니다"
        )
    return value


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return section


def _positive_decimal(section: dict[str, Any], key: str, default: Decimal) -> Decimal:
    if key not in section:
        return default
    value = to_finite_decimal(section[key])
    if value is None or value <= 0:
        raise ValueError(f"limits.{key} 값이 유효하지 않습니다: {section[key]!r}")
    return value


def parse_api_config(section: dict[str, Any]) -> ApiConfig:
    """api 섹션 파싱

    Raises:
        SettingsLoadError: 필수 키 누락
        ValueError: timeout/max_retries 값 오류
    """
    timeout = float(section.get("timeout", Defaults.API_TIMEOUT_SEC))
    max_retries = int(section.get("max_retries", Defaults.API_MAX_RETRIES))
    if timeout <= 0:
        raise ValueError(f"api.timeout은 0보다 커야 합니다: {timeout}")
    if max_retries < 0:
        raise ValueError(f"api.max_retries는 0 이상이어야 합니다: {max_retries}")

    return ApiConfig(
        base_url=str(_require(section, "base_url", "api")).rstrip("/"),
        token=str(_require(section, "token", "api")),
        organization_id=str(_require(section, "organization_id", "api")),
        ws_url=section.get("ws_url") or None,
        timeout=timeout,
        max_retries=max_retries,
    )


def parse_limits(section: dict[str, Any]) -> CashLimits:
    """limits 섹션 파싱 (없는 키는 기본값)

    Raises:
        ValueError: 0 이하 또는 숫자가 아닌 한도
    """
    timeout_hours = int(section.get("session_timeout_hours", Limits.SESSION_TIMEOUT_HOURS))
    if timeout_hours <= 0:
        raise ValueError(f"limits.session_timeout_hours 값이 유효하지 않습니다: {timeout_hours}")

    return CashLimits(
        max_movement_amount=_positive_decimal(
            section, "max_movement_amount", Limits.MAX_MOVEMENT_AMOUNT
        ),
        max_opening_amount=_positive_decimal(
            section, "max_opening_amount", Limits.MAX_OPENING_AMOUNT
        ),
        high_discrepancy_floor=_positive_decimal(
            section, "high_discrepancy_floor", Limits.HIGH_DISCREPANCY_FLOOR
        ),
        high_discrepancy_ratio=_positive_decimal(
            section, "high_discrepancy_ratio", Limits.HIGH_DISCREPANCY_RATIO
        ),
        large_movement_threshold=_positive_decimal(
            section, "large_movement_threshold", Limits.LARGE_MOVEMENT_THRESHOLD
        ),
        session_timeout_hours=timeout_hours,
    )


def parse_realtime(section: dict[str, Any]) -> RealtimeConfig:
    """realtime 섹션 파싱"""
    debounce = float(section.get("debounce_seconds", Defaults.DEBOUNCE_SEC))
    if debounce < 0:
        raise ValueError(f"realtime.debounce_seconds는 0 이상이어야 합니다: {debounce}")

    return RealtimeConfig(
        enabled=bool(section.get("enabled", True)),
        debounce_seconds=debounce,
    )


def load_settings(path: Path | None = None) -> DrawerSettings:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        DrawerSettings 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 한도/숫자 값인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    if "api" not in data:
        raise SettingsLoadError("settings.yaml에 'api' 섹션이 없습니다")

    display = _section(data, "display")

    return DrawerSettings(
        api=parse_api_config(_section(data, "api")),
        limits=parse_limits(_section(data, "limits")),
        realtime=parse_realtime(_section(data, "realtime")),
        timezone_offset_hours=float(display.get("timezone", 0)),
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _settings: DrawerSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            type(self)._settings = load_settings(settings_path)

    @property
    def drawer(self) -> DrawerSettings:
        """전체 설정"""
        if self._settings is None:
            raise SettingsLoadError("설정이 로드되지 않았습니다 (reset 이후 Settings() 재생성 필요)")
        return self._settings

    @property
    def api(self) -> ApiConfig:
        """API 연결 설정"""
        return self.drawer.api

    @property
    def limits(self) -> CashLimits:
        """금액 한도"""
        return self.drawer.limits

    @property
    def realtime(self) -> RealtimeConfig:
        """실시간 설정"""
        return self.drawer.realtime

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
