"""
Timezone-aware datetime helpers.
- Store and compute instants in UTC.
- Policy and shift times are wall-clock times in settings.ATTENDANCE_TZ; work dates are dates in settings.ATTENDANCE_TZ.
- API responses expose instants in settings.ATTENDANCE_TZ and times as HH:MM.
"""
from datetime import date, datetime, time, timezone
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings

UTC = timezone.utc


@lru_cache(maxsize=8)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_tz() -> ZoneInfo:
    """Zone that policy times and work dates are expressed in"""
    return _zone(settings.ATTENDANCE_TZ)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for check_in, check_out, created_at, etc."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to settings.ATTENDANCE_TZ. Naive datetimes are treated as UTC before converting."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(local_tz())


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 in settings.ATTENDANCE_TZ with its offset. Use for API response instants."""
    if dt is None:
        return None
    return to_local(dt).isoformat()


def work_date_for(instant: Optional[datetime] = None) -> date:
    """Work date (date in settings.ATTENDANCE_TZ) for the given instant (default now)"""
    return to_local(instant or now_utc()).date()


def at_local(day: date, t: time, tz=None) -> datetime:
    """Anchor a wall-clock time to a calendar date in the given zone (default settings.ATTENDANCE_TZ)"""
    return datetime.combine(day, t, tzinfo=tz or local_tz())


def hhmm(t: Optional[time]) -> Optional[str]:
    """Format a time of day as HH:MM"""
    if t is None:
        return None
    return t.strftime("%H:%M")


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, clamped at zero"""
    seconds = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    return max(0, int(seconds // 60))


def minutes_to_hm(minutes: int) -> str:
    """Human duration such as '8h 0m'"""
    return f"{minutes // 60}h {minutes % 60}m"
