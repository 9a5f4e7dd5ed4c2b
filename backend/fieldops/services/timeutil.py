import math
from datetime import datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(s))


def iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


def round_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, half rounded up on milliseconds."""
    ms = (as_utc(end) - as_utc(start)).total_seconds() * 1000
    return int(math.floor(ms / 60000 + 0.5))


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes elapsed, truncated (used for live sessions)."""
    ms = (as_utc(end) - as_utc(start)).total_seconds() * 1000
    return int(math.floor(ms / 60000))
