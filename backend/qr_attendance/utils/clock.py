"""Single source of "now" for the service."""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_local(value: datetime, tz_name: str) -> datetime:
    """Naive UTC to naive wall-clock time in ``tz_name``."""
    return value.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)

def to_utc(value: datetime, tz_name: str) -> datetime:
    """Naive wall-clock time in ``tz_name`` to naive UTC."""
    return value.replace(tzinfo=ZoneInfo(tz_name)).astimezone(timezone.utc).replace(tzinfo=None)
