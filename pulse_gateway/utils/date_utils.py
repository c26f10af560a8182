"""Date manipulation utilities"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(start: datetime, end: datetime) -> int:
    """Whole days elapsed from start to end, never negative"""
    return max(0, (ensure_utc(end) - ensure_utc(start)).days)


def to_iso(value: datetime) -> str:
    """ISO-8601 string with a Z suffix for UTC"""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")
