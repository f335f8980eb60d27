"""
History aggregator: streak counters derived from a user's ordered day history.

Counters are always recomputed from the full history (never incremented in
place), so backfilled or corrected days are reflected on the next read.
"""
import threading
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.models.attendance import AttendanceStatus
from app.services.attendance_service import full_history
from app.utils.datetime_utils import ensure_utc

STREAK_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.HALF_DAY})


@dataclass(frozen=True)
class StreakSummary:
    current_streak: int = 0
    longest_streak: int = 0
    early_bird_count: int = 0
    on_time_count: int = 0
    late_count: int = 0
    half_day_count: int = 0
    absent_count: int = 0
    leave_count: int = 0
    total_working_days: int = 0


def _ordered(records: Sequence[Any]) -> Tuple[Any, ...]:
    # Work on a private ordered copy; the caller's list may change afterwards
    return tuple(sorted(records, key=lambda r: r.work_date))


def is_early_bird(record: Any) -> bool:
    """Present and checked in no later than the scheduled start of its session"""
    if record.status != AttendanceStatus.PRESENT or record.check_in is None or record.scheduled_start is None:
        return False
    return ensure_utc(record.check_in) <= ensure_utc(record.scheduled_start)


def current_streak(records: Sequence[Any]) -> int:
    """
    Consecutive qualifying days counted backward from the latest day.

    Leave days and days not yet classified are skipped; the first absent day
    ends the walk.
    """
    streak = 0
    for record in reversed(_ordered(records)):
        if record.status in STREAK_STATUSES:
            streak += 1
        elif record.status == AttendanceStatus.ABSENT:
            break
    return streak


def longest_streak(records: Sequence[Any]) -> int:
    """Longest run of qualifying days anywhere in the history (leave is neutral)"""
    best = run = 0
    for record in _ordered(records):
        if record.status in STREAK_STATUSES:
            run += 1
            best = max(best, run)
        elif record.status == AttendanceStatus.ABSENT:
            run = 0
    return best


def compute_streak(records: Sequence[Any]) -> StreakSummary:
    """Full streak summary from a user's history"""
    history = _ordered(records)
    early = on_time = late = half_day = absent = leave = total = 0
    for record in history:
        status = record.status
        if status is None:
            continue
        total += 1
        if status == AttendanceStatus.PRESENT:
            if is_early_bird(record):
                early += 1
            else:
                on_time += 1
        elif status == AttendanceStatus.LATE:
            late += 1
        elif status == AttendanceStatus.HALF_DAY:
            half_day += 1
        elif status == AttendanceStatus.ABSENT:
            absent += 1
        elif status == AttendanceStatus.LEAVE:
            leave += 1

    return StreakSummary(
        current_streak=current_streak(history),
        longest_streak=longest_streak(history),
        early_bird_count=early,
        on_time_count=on_time,
        late_count=late,
        half_day_count=half_day,
        absent_count=absent,
        leave_count=leave,
        total_working_days=total,
    )


def history_version(records: Sequence[Any]) -> Hashable:
    """Changes whenever a record is added, removed or updated"""
    if not records:
        return (0, None, None)
    updates = [ensure_utc(r.updated_at) for r in records if r.updated_at is not None]
    return (len(records), max(r.id for r in records), max(updates) if updates else None)


class StreakCache:
    """Streak summaries keyed by (user_id, history_version)"""

    def __init__(self, max_users: int = 1024) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[int, Tuple[Hashable, StreakSummary]] = {}
        self._max_users = max_users

    def get(self, user_id: int, version: Hashable) -> Optional[StreakSummary]:
        with self._lock:
            entry = self._entries.get(user_id)
        if entry is not None and entry[0] == version:
            return entry[1]
        return None

    def put(self, user_id: int, version: Hashable, summary: StreakSummary) -> None:
        with self._lock:
            if user_id not in self._entries and len(self._entries) >= self._max_users:
                self._entries.pop(next(iter(self._entries)))
            self._entries[user_id] = (version, summary)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


streak_cache = StreakCache()


def summarize(user_id: int, records: Sequence[Any]) -> StreakSummary:
    """compute_streak with caching by history version"""
    version = history_version(records)
    summary = streak_cache.get(user_id, version)
    if summary is None:
        summary = compute_streak(records)
        streak_cache.put(user_id, version, summary)
    return summary


def get_streak_summary(db: Session, user_id: int) -> StreakSummary:
    """Streak summary read model for a user"""
    return summarize(user_id, full_history(db, user_id))
