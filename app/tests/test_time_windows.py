"""
Tests for the time window calculator and policy validation
"""
from datetime import date, time, timedelta
from types import SimpleNamespace

import pytest

from app.core.exceptions import InvalidPolicy, InvalidShift
from app.services.policy_service import DEFAULT_POLICY
from app.services.policy_validator import policy_violations, validate_shift_times
from app.services.time_window_service import AFTERNOON, MORNING, compute_windows, policy_metrics

DAY = date(2026, 3, 10)


def make_policy(**overrides):
    values = dict(DEFAULT_POLICY)
    values.update(overrides)
    return SimpleNamespace(**values)


def test_morning_windows_follow_thresholds(at):
    windows = compute_windows(make_policy(), None, DAY)

    assert windows.work_start == at(DAY, 9, 0)
    assert windows.late_cutoff_am == at(DAY, 9, 30)
    assert windows.absent_cutoff_am == at(DAY, 11, 0)
    assert windows.work_end == at(DAY, 18, 0)
    assert windows.auto_checkout_at == windows.work_end


def test_afternoon_windows_mirror_morning_from_break_end(at):
    windows = compute_windows(make_policy(), None, DAY)

    assert windows.break_end == at(DAY, 14, 0)
    assert windows.late_cutoff_pm - windows.break_end == windows.late_cutoff_am - windows.work_start
    assert windows.absent_cutoff_pm - windows.break_end == windows.absent_cutoff_am - windows.work_start
    assert windows.late_cutoff_pm == at(DAY, 14, 30)
    assert windows.absent_cutoff_pm == at(DAY, 16, 0)


def test_changing_late_threshold_moves_both_late_cutoffs_identically():
    before = compute_windows(make_policy(late_minutes_threshold=30), None, DAY)
    after = compute_windows(make_policy(late_minutes_threshold=45), None, DAY)

    assert after.late_cutoff_am - before.late_cutoff_am == timedelta(minutes=15)
    assert after.late_cutoff_pm - before.late_cutoff_pm == timedelta(minutes=15)
    assert after.absent_cutoff_am == before.absent_cutoff_am


@pytest.mark.parametrize("late,absent", [(0, 1), (30, 2), (59, 1), (119, 2), (60, 3)])
def test_late_cutoff_always_before_absent_cutoff(late, absent):
    windows = compute_windows(make_policy(late_minutes_threshold=late, absent_hours_threshold=absent), None, DAY)

    assert windows.late_cutoff_am < windows.absent_cutoff_am
    assert windows.late_cutoff_pm < windows.absent_cutoff_pm


def test_shift_overrides_policy_hours(at):
    shift = SimpleNamespace(start_time=time(10, 0), end_time=time(19, 0))
    windows = compute_windows(make_policy(), shift, DAY)

    assert windows.work_start == at(DAY, 10, 0)
    assert windows.late_cutoff_am == at(DAY, 10, 30)
    assert windows.work_end == at(DAY, 19, 0)
    # Break and afternoon cutoffs stay on the policy's break
    assert windows.late_cutoff_pm == at(DAY, 14, 30)


def test_windows_are_anchored_in_configured_timezone():
    windows = compute_windows(make_policy(), None, DAY)

    # 09:00 Asia/Kolkata is 03:30 UTC
    assert windows.work_start.utcoffset() == timedelta(0)
    assert (windows.work_start.hour, windows.work_start.minute) == (3, 30)


def test_session_for_check_in(at):
    windows = compute_windows(make_policy(), None, DAY)

    assert windows.session_for(at(DAY, 8, 50)) == MORNING
    assert windows.session_for(at(DAY, 11, 0)) == MORNING
    assert windows.session_for(at(DAY, 11, 1)) == AFTERNOON
    assert windows.session_for(at(DAY, 14, 10)) == AFTERNOON
    assert windows.scheduled_start_for(at(DAY, 14, 10)) == windows.break_end


def test_compute_windows_rejects_invalid_policy():
    with pytest.raises(InvalidPolicy):
        compute_windows(make_policy(break_start=time(14, 0), break_end=time(13, 0)), None, DAY)


def test_policy_violations_lists_every_broken_rule():
    violations = policy_violations(make_policy(
        break_start=time(14, 0),
        break_end=time(13, 0),
        late_minutes_threshold=180,
        absent_hours_threshold=2,
        half_day_hours=8,
        full_day_hours=8,
    ))

    assert "break_start must be before break_end" in violations
    assert "absent_hours_threshold must be later than late_minutes_threshold" in violations
    assert "half_day_hours must be less than full_day_hours" in violations


def test_default_policy_is_valid():
    assert policy_violations(make_policy()) == []


def test_invalid_policy_error_carries_violations():
    with pytest.raises(InvalidPolicy) as exc_info:
        compute_windows(make_policy(absent_hours_threshold=0), None, DAY)

    assert exc_info.value.code == "INVALID_POLICY"
    assert exc_info.value.status_code == 422
    assert "absent_hours_threshold must be at least 1" in exc_info.value.violations


def test_shift_must_start_before_it_ends():
    validate_shift_times(time(9, 0), time(17, 0))
    with pytest.raises(InvalidShift):
        validate_shift_times(time(22, 0), time(6, 0))


def test_policy_metrics_for_default_policy():
    metrics = policy_metrics(make_policy())

    assert metrics["work_start"] == "09:00"
    assert metrics["work_end"] == "18:00"
    assert metrics["total_work_duration"] == "8h 0m"
    assert metrics["total_work_minutes"] == 480
    assert metrics["break_duration"] == "1h 0m"
    assert metrics["morning_late_time"] == "09:30"
    assert metrics["morning_absent_time"] == "11:00"
    assert metrics["afternoon_late_time"] == "14:30"
    assert metrics["afternoon_absent_time"] == "16:00"
    assert metrics["auto_checkout"] == "18:00"


def test_shift_must_contain_policy_break():
    policy = make_policy()

    validate_shift_times(time(7, 0), time(16, 0), policy)
    with pytest.raises(InvalidShift) as exc_info:
        validate_shift_times(time(13, 30), time(22, 0), policy)

    assert exc_info.value.context["violations"] == ["start_time must be before the break start (13:00)"]
    with pytest.raises(InvalidShift):
        validate_shift_times(time(8, 0), time(13, 30), policy)


def test_compute_windows_rejects_shift_outside_break():
    shift = SimpleNamespace(start_time=time(13, 30), end_time=time(22, 0))

    with pytest.raises(InvalidShift):
        compute_windows(make_policy(), shift, DAY)
    with pytest.raises(InvalidShift):
        policy_metrics(make_policy(), shift)
