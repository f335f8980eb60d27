"""
Time window calculator: maps a policy (plus optional shift) and a calendar date
to the day's operative instants.

Afternoon thresholds mirror the morning ones: the same late/absent offsets are
applied from break_end instead of work_start. They are derived values and are
never configured independently.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional

from app.services.policy_validator import validate_policy, validate_shift_times
from app.utils.datetime_utils import at_local, ensure_utc, hhmm, minutes_to_hm

MORNING = "morning"
AFTERNOON = "afternoon"


@dataclass(frozen=True)
class DayWindows:
    """Operative instants of one work date (timezone-aware)"""
    work_date: date
    work_start: datetime
    late_cutoff_am: datetime
    absent_cutoff_am: datetime
    break_start: datetime
    break_end: datetime
    late_cutoff_pm: datetime
    absent_cutoff_pm: datetime
    work_end: datetime
    auto_checkout_at: datetime

    def session_for(self, check_in: datetime) -> str:
        """
        Which half of the day a check-in belongs to.

        Morning when the check-in is no later than the morning absent cutoff and
        before the break starts; anything later is judged against the afternoon
        window.
        """
        check_in = ensure_utc(check_in)
        if check_in <= self.absent_cutoff_am and check_in < self.break_start:
            return MORNING
        return AFTERNOON

    def scheduled_start_for(self, check_in: datetime) -> datetime:
        return self.work_start if self.session_for(check_in) == MORNING else self.break_end

    def late_cutoff_for(self, check_in: datetime) -> datetime:
        return self.late_cutoff_am if self.session_for(check_in) == MORNING else self.late_cutoff_pm


def effective_hours(policy: Any, shift: Optional[Any] = None) -> tuple:
    """(work_start, work_end) times: the shift's when one is bound, else the policy's"""
    if shift is not None:
        return shift.start_time, shift.end_time
    return policy.work_start, policy.work_end


def compute_windows(policy: Any, shift: Optional[Any], work_date: date, tz=None) -> DayWindows:
    """
    Compute the operative instants for a work date.

    Args:
        policy: Attendance policy (ORM row or any object with the policy attributes)
        shift: Optional shift overriding work start/end
        work_date: Calendar date the windows are anchored to
        tz: Zone the policy times are expressed in (default settings.ATTENDANCE_TZ)

    Returns:
        DayWindows with UTC instants

    Raises:
        InvalidPolicy: if the policy violates its invariants
        InvalidShift: if the shift does not contain the policy's break
    """
    validate_policy(policy)
    if shift is not None:
        validate_shift_times(shift.start_time, shift.end_time, policy)

    start_t, end_t = effective_hours(policy, shift)
    late = timedelta(minutes=policy.late_minutes_threshold)
    absent = timedelta(hours=policy.absent_hours_threshold)

    def anchor(t: time) -> datetime:
        return ensure_utc(at_local(work_date, t, tz))

    work_start = anchor(start_t)
    break_end = anchor(policy.break_end)
    work_end = anchor(end_t)

    return DayWindows(
        work_date=work_date,
        work_start=work_start,
        late_cutoff_am=work_start + late,
        absent_cutoff_am=work_start + absent,
        break_start=anchor(policy.break_start),
        break_end=break_end,
        late_cutoff_pm=break_end + late,
        absent_cutoff_pm=break_end + absent,
        work_end=work_end,
        auto_checkout_at=work_end,
    )


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def _clock(minutes: int) -> str:
    # Cutoffs past midnight wrap like a wall clock
    minutes %= 24 * 60
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def policy_metrics(policy: Any, shift: Optional[Any] = None) -> Dict[str, Any]:
    """
    Derived values shown next to the policy editor: durations and the
    morning/afternoon cutoffs as wall-clock HH:MM.
    """
    validate_policy(policy)
    if shift is not None:
        validate_shift_times(shift.start_time, shift.end_time, policy)
    start_t, end_t = effective_hours(policy, shift)

    work_start = _minutes(start_t)
    work_end = _minutes(end_t)
    break_start = _minutes(policy.break_start)
    break_end = _minutes(policy.break_end)
    break_minutes = break_end - break_start
    net_minutes = (work_end - work_start) - break_minutes

    return {
        "work_start": hhmm(start_t),
        "work_end": hhmm(end_t),
        "total_work_duration": minutes_to_hm(net_minutes),
        "total_work_minutes": net_minutes,
        "break_duration": minutes_to_hm(break_minutes),
        "break_minutes": break_minutes,
        "morning_late_time": _clock(work_start + policy.late_minutes_threshold),
        "morning_absent_time": _clock(work_start + policy.absent_hours_threshold * 60),
        "afternoon_late_time": _clock(break_end + policy.late_minutes_threshold),
        "afternoon_absent_time": _clock(break_end + policy.absent_hours_threshold * 60),
        "auto_checkout": hhmm(end_t),
    }
