# app/utils/dates.py

"""
날짜/시간 보조 함수.
sqlite는 timezone 정보 없이 값을 돌려주므로 계산 전에 UTC로 맞춥니다.
"""

from datetime import date, datetime, UTC
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """naive datetime은 UTC로 간주합니다."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def hours_between(start: datetime, end: datetime) -> float:
    """두 시각 사이의 시간(소수 2자리)"""
    return round((ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600, 2)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """해당 날짜의 [00:00, 다음날 00:00) 구간 (UTC)"""
    start = datetime(day.year, day.month, day.day, tzinfo=UTC)
    end = datetime.fromordinal(day.toordinal() + 1).replace(tzinfo=UTC)
    return start, end
