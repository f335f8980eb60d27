"""
Day classifier: per-day state machine and status derivation.

Pure functions only; persistence and locking live in attendance_service.
"""
import enum
from datetime import datetime
from typing import Any, Optional

from app.models.attendance import AttendanceStatus
from app.services.time_window_service import DayWindows
from app.utils.datetime_utils import ensure_utc, minutes_between


class DayState(str, enum.Enum):
    UNSTARTED = "unstarted"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    ON_LEAVE = "on_leave"


def day_state(record: Optional[Any]) -> DayState:
    """
    State of a (user, date) from its record.

    A record auto-classified as absent without a check-in is treated as
    checked out: the day is closed and no further transition is allowed.
    """
    if record is None:
        return DayState.UNSTARTED
    if record.status == AttendanceStatus.LEAVE:
        return DayState.ON_LEAVE
    if record.check_in is None:
        return DayState.CHECKED_OUT if record.status is not None else DayState.UNSTARTED
    if record.check_out is None:
        return DayState.CHECKED_IN
    return DayState.CHECKED_OUT


def work_duration(check_in: Optional[datetime], check_out: Optional[datetime]) -> int:
    """Whole minutes between check-in and check-out, clamped at zero"""
    if check_in is None or check_out is None:
        return 0
    return minutes_between(check_in, check_out)


def derive_status(
    windows: DayWindows,
    policy: Any,
    check_in: Optional[datetime] = None,
    check_out: Optional[datetime] = None,
    on_leave: bool = False,
    now: Optional[datetime] = None,
) -> Optional[AttendanceStatus]:
    """
    Classify one day.

    Rules, in order:
      - leave marked -> leave
      - no check-in: absent once ``now`` is past the morning absent cutoff,
        otherwise undetermined (None)
      - check-in after the morning absent cutoff but before the break (the
        morning was missed and the afternoon has not begun) -> absent
      - check-in after the afternoon absent cutoff -> absent
      - checked in but not out -> undetermined (None)
      - duration below half day -> absent
      - duration below full day -> half_day
      - full day: present when the check-in is within its session's late
        cutoff, late otherwise

    Duration thresholds are evaluated before lateness, so a long but late day
    is ``late`` and a short punctual day is ``half_day``.
    """
    if on_leave:
        return AttendanceStatus.LEAVE

    if check_in is None:
        if now is not None and ensure_utc(now) > windows.absent_cutoff_am:
            return AttendanceStatus.ABSENT
        return None

    check_in = ensure_utc(check_in)
    if windows.absent_cutoff_am < check_in < windows.break_start:
        return AttendanceStatus.ABSENT
    if check_in > windows.absent_cutoff_pm:
        return AttendanceStatus.ABSENT

    if check_out is None:
        return None

    minutes = work_duration(check_in, check_out)
    if minutes < policy.half_day_hours * 60:
        return AttendanceStatus.ABSENT
    if minutes < policy.full_day_hours * 60:
        return AttendanceStatus.HALF_DAY
    if check_in <= windows.late_cutoff_for(check_in):
        return AttendanceStatus.PRESENT
    return AttendanceStatus.LATE
