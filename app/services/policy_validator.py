"""
Policy validation service - checks attendance policy invariants before a policy
is stored or used for window calculation
"""
from datetime import time
from typing import Any, List, Optional

from app.core.exceptions import InvalidPolicy, InvalidShift


def policy_violations(policy: Any) -> List[str]:
    """
    Collect every invariant the policy breaks.

    Accepts anything exposing the policy attributes (ORM row, pydantic schema,
    plain object), so the same rules guard the update path and the window
    calculator.

    Returns:
        List of human-readable violations (empty when valid)
    """
    violations: List[str] = []

    work_start: Optional[time] = getattr(policy, "work_start", None)
    work_end: Optional[time] = getattr(policy, "work_end", None)
    break_start: Optional[time] = getattr(policy, "break_start", None)
    break_end: Optional[time] = getattr(policy, "break_end", None)
    for name, value in (
        ("work_start", work_start),
        ("work_end", work_end),
        ("break_start", break_start),
        ("break_end", break_end),
    ):
        if value is None:
            violations.append(f"{name} is required")
    if violations:
        return violations

    if not break_start < break_end:
        violations.append("break_start must be before break_end")
    if not work_start < break_start:
        violations.append("work_start must be before break_start")
    if not break_end < work_end:
        violations.append("break_end must be before work_end")

    late = getattr(policy, "late_minutes_threshold", None)
    absent = getattr(policy, "absent_hours_threshold", None)
    half_day = getattr(policy, "half_day_hours", None)
    full_day = getattr(policy, "full_day_hours", None)

    if late is None or late < 0:
        violations.append("late_minutes_threshold must be 0 or greater")
    if absent is None or absent < 1:
        violations.append("absent_hours_threshold must be at least 1")
    if late is not None and absent is not None and not absent * 60 > late:
        violations.append("absent_hours_threshold must be later than late_minutes_threshold")

    if half_day is None or half_day < 1:
        violations.append("half_day_hours must be at least 1")
    if full_day is None or full_day > 24:
        violations.append("full_day_hours must be at most 24")
    if half_day is not None and full_day is not None and not half_day < full_day:
        violations.append("half_day_hours must be less than full_day_hours")

    return violations


def validate_policy(policy: Any) -> None:
    """
    Raise InvalidPolicy listing every violated invariant.

    Raises:
        InvalidPolicy: if any invariant is broken
    """
    violations = policy_violations(policy)
    if violations:
        raise InvalidPolicy(violations)


def shift_violations(policy: Optional[Any], start_time: time, end_time: time) -> List[str]:
    """
    Rules a shift must satisfy to replace the policy's work start and end.

    The break always comes from the policy, so the shift has to contain it:
    ``start_time < break_start`` and ``break_end < end_time``. Overnight shifts
    are not supported.
    """
    violations: List[str] = []
    if not start_time < end_time:
        violations.append("start_time must be before end_time")
    if policy is not None:
        if not start_time < policy.break_start:
            violations.append(f"start_time must be before the break start ({policy.break_start.strftime('%H:%M')})")
        if not policy.break_end < end_time:
            violations.append(f"end_time must be after the break end ({policy.break_end.strftime('%H:%M')})")
    return violations


def validate_shift_times(start_time: time, end_time: time, policy: Optional[Any] = None) -> None:
    """
    Raise InvalidShift listing every broken shift rule.

    Without a policy only the start/end order is checked.
    """
    violations = shift_violations(policy, start_time, end_time)
    if violations:
        raise InvalidShift("Shift is invalid: " + "; ".join(violations), violations=violations)
