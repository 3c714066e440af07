"""
타임존 유틸리티

내부 저장/비교: UTC | 외부 표시: 설정된 표시 타임존
원격 저장소가 내려주는 ISO-8601 문자열 파싱도 여기서 처리한다.
"""

from datetime import datetime, timedelta, timezone, tzinfo

# 기본 표시 타임존 (UTC+9)
KST = timezone(timedelta(hours=9), "KST")


def tz_from_offset(hours: float) -> tzinfo:
    """UTC 오프셋(시간)으로 고정 타임존 생성

    Example:
        >>> tz_from_offset(9).utcoffset(None)
        datetime.timedelta(seconds=32400)
    """
    if hours == 0:
        return timezone.utc
    return timezone(timedelta(hours=hours))


def ensure_utc(dt: datetime) -> datetime:
    """naive datetime은 UTC로 간주하고, aware는 UTC로 변환"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz: tzinfo = KST) -> datetime:
    """표시 타임존으로 변환 (naive는 UTC로 간주)"""
    return ensure_utc(dt).astimezone(tz)


def format_local(dt: datetime, tz: tzinfo = KST, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """표시 타임존 문자열로 포맷

    Example:
        >>> utc_dt = datetime(2026, 2, 20, 16, 0, 0, tzinfo=timezone.utc)
        >>> format_local(utc_dt)
        '2026-02-21 01:00:00'
    """
    return to_local(dt, tz).strftime(fmt)


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)"""
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: str) -> datetime:
    """ISO-8601 문자열을 UTC datetime으로 파싱

    "Z" 접미사와 오프셋 표기 모두 허용. 오프셋이 없으면 UTC로 간주.

    Raises:
        ValueError: 형식 오류
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))
