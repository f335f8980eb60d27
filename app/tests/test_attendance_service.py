"""
Tests for check-in/check-out, leave marking and end-of-day classification
(service level, with explicit server times)
"""
from datetime import date, timedelta

import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    AlreadyOnLeave,
    DeviceBindingRequired,
    GPSRequired,
    InvalidDateRange,
    InvalidPolicy,
    LeaveAfterCheckIn,
    NotCheckedIn,
    ReasonTooShort,
    SelfCheckInDisabled,
)
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.audit_log import AuditLog
from app.services.audit_service import AuditAction, audit_trail
from app.services import attendance_service as svc
from app.services.policy_service import DEFAULT_POLICY, create_shift, get_active_policy, update_policy
from app.utils.datetime_utils import ensure_utc

DAY = date(2026, 3, 10)
USER = 101


def _update(db: Session, **overrides):
    return update_policy(db, {**DEFAULT_POLICY, **overrides}, actor_id=1)


def test_check_in_pins_policy_and_window_snapshot(db, at):
    record = svc.check_in(db, USER, at(DAY, 9, 10))

    assert record.work_date == DAY
    assert record.status is None
    assert record.policy_id == get_active_policy(db).id
    assert ensure_utc(record.check_in) == at(DAY, 9, 10)
    assert ensure_utc(record.scheduled_start) == at(DAY, 9, 0)
    assert ensure_utc(record.late_cutoff) == at(DAY, 9, 30)


def test_afternoon_check_in_pins_afternoon_window(db, at):
    record = svc.check_in(db, USER, at(DAY, 13, 50))

    assert ensure_utc(record.scheduled_start) == at(DAY, 14, 0)
    assert ensure_utc(record.late_cutoff) == at(DAY, 14, 30)


def test_second_check_in_rejected_and_original_kept(db, at):
    svc.check_in(db, USER, at(DAY, 9, 10))

    with pytest.raises(AlreadyCheckedIn):
        svc.check_in(db, USER, at(DAY, 9, 40))

    record = svc.get_record(db, USER, DAY)
    assert ensure_utc(record.check_in) == at(DAY, 9, 10)
    assert db.query(AttendanceRecord).count() == 1


@pytest.mark.parametrize(
    "check_in,check_out,minutes,expected",
    [
        ((9, 25), (17, 30), 485, AttendanceStatus.PRESENT),
        ((9, 45), (18, 0), 495, AttendanceStatus.LATE),
        ((9, 0), (12, 30), 210, AttendanceStatus.ABSENT),
        ((11, 30), (19, 45), 495, AttendanceStatus.ABSENT),
    ],
)
def test_check_out_classifies_day(db, at, check_in, check_out, minutes, expected):
    svc.check_in(db, USER, at(DAY, *check_in))
    record = svc.check_out(db, USER, at(DAY, *check_out))

    assert record.work_duration == minutes
    assert record.status == expected
    assert record.auto_closed is False


def test_check_out_without_check_in(db, at):
    with pytest.raises(NotCheckedIn):
        svc.check_out(db, USER, at(DAY, 18, 0))


def test_check_out_twice(db, at):
    svc.check_in(db, USER, at(DAY, 9, 0))
    svc.check_out(db, USER, at(DAY, 18, 0))

    with pytest.raises(AlreadyCheckedOut):
        svc.check_out(db, USER, at(DAY, 18, 30))


def test_check_out_classified_under_pinned_policy(db, at):
    svc.check_in(db, USER, at(DAY, 9, 45))
    first_version = get_active_policy(db).id

    _update(db, late_minutes_threshold=60)
    record = svc.check_out(db, USER, at(DAY, 18, 0))

    # 09:45 is late under the version in force at check-in
    assert record.policy_id == first_version
    assert record.status == AttendanceStatus.LATE


def test_self_check_in_disabled(db, at):
    _update(db, allow_self_check_in=False)

    with pytest.raises(SelfCheckInDisabled):
        svc.check_in(db, USER, at(DAY, 9, 0))

    record = svc.check_in(db, USER, at(DAY, 9, 0), actor_id=1, privileged=True)
    assert record.user_id == USER


def test_gps_and_device_requirements(db, at):
    _update(db, require_gps=True, require_device_binding=True)

    with pytest.raises(GPSRequired):
        svc.check_in(db, USER, at(DAY, 9, 0), device_id="dev-1")
    with pytest.raises(DeviceBindingRequired):
        svc.check_in(db, USER, at(DAY, 9, 0), gps_location={"lat": 12.97, "lng": 77.59})

    record = svc.check_in(db, USER, at(DAY, 9, 0), gps_location={"lat": 12.97, "lng": 77.59}, device_id="dev-1")
    assert record.gps_location == {"lat": 12.97, "lng": 77.59}
    assert record.device_id == "dev-1"


def test_team_shift_moves_windows(db, at):
    from datetime import time

    create_shift(db, "Late shift", time(10, 0), time(19, 0), team_id=7, actor_id=1)
    record = svc.check_in(db, USER, at(DAY, 10, 20), team_id=7)

    assert ensure_utc(record.scheduled_start) == at(DAY, 10, 0)
    record = svc.check_out(db, USER, at(DAY, 19, 0))
    assert record.status == AttendanceStatus.PRESENT


def test_policy_update_must_keep_break_inside_active_shifts(db):
    from datetime import time

    create_shift(db, "Early shift", time(7, 0), time(16, 0), team_id=7, actor_id=1)
    version = get_active_policy(db).id

    with pytest.raises(InvalidPolicy) as exc_info:
        _update(db, break_start=time(16, 30), break_end=time(17, 0), work_end=time(19, 0))

    assert exc_info.value.violations == ["shift 'Early shift': end_time must be after the break end (17:00)"]
    assert get_active_policy(db).id == version


def test_mark_leave(db, at):
    record = svc.mark_leave(db, USER, "  Family function  ", at(DAY, 8, 0))

    assert record.status == AttendanceStatus.LEAVE
    assert record.leave_reason == "Family function"
    assert record.check_in is None

    with pytest.raises(AlreadyOnLeave):
        svc.mark_leave(db, USER, "Another valid reason", at(DAY, 9, 0))
    with pytest.raises(AlreadyCheckedIn):
        svc.check_in(db, USER, at(DAY, 9, 0))
    with pytest.raises(NotCheckedIn):
        svc.check_out(db, USER, at(DAY, 18, 0))


def test_mark_leave_reason_length(db, at):
    with pytest.raises(ReasonTooShort):
        svc.mark_leave(db, USER, "  123456789  ", at(DAY, 8, 0))

    record = svc.mark_leave(db, USER, "  1234567890  ", at(DAY, 8, 0))
    assert record.leave_reason == "1234567890"


def test_mark_leave_after_check_in(db, at):
    svc.check_in(db, USER, at(DAY, 9, 0))

    with pytest.raises(LeaveAfterCheckIn):
        svc.mark_leave(db, USER, "Feeling unwell today", at(DAY, 10, 0))


def test_duplicate_insert_reported_as_already_checked_in(db, at):
    """The unique constraint is the last guard when the row appears between read and insert"""
    svc.check_in(db, USER, at(DAY, 9, 0))
    duplicate = AttendanceRecord(user_id=USER, work_date=DAY, check_in=at(DAY, 9, 1), work_duration=0, updated_at=at(DAY, 9, 1))

    with pytest.raises(AlreadyCheckedIn):
        svc._insert(db, duplicate, AlreadyCheckedIn)
    assert db.query(AttendanceRecord).count() == 1


def test_close_day_marks_absent_only_after_cutoff(db, at):
    assert svc.close_day(db, USER, DAY, at(DAY, 10, 0)) is None
    assert svc.get_record(db, USER, DAY) is None

    record = svc.close_day(db, USER, DAY, at(DAY, 23, 0))
    assert record.status == AttendanceStatus.ABSENT
    assert record.auto_closed is True
    assert record.check_in is None

    # Closed days stay closed
    with pytest.raises(AlreadyCheckedIn):
        svc.check_in(db, USER, at(DAY, 23, 5))


def test_close_day_auto_checks_out_open_day(db, at):
    svc.check_in(db, USER, at(DAY, 9, 0))

    still_open = svc.close_day(db, USER, DAY, at(DAY, 17, 0))
    assert still_open.check_out is None

    record = svc.close_day(db, USER, DAY, at(DAY, 23, 0))
    assert ensure_utc(record.check_out) == at(DAY, 18, 0)
    assert record.work_duration == 540
    assert record.status == AttendanceStatus.PRESENT
    assert record.auto_closed is True


def test_close_day_is_idempotent(db, at):
    svc.check_in(db, USER, at(DAY, 9, 0))
    first = svc.close_day(db, USER, DAY, at(DAY, 23, 0))
    second = svc.close_day(db, USER, DAY, at(DAY + timedelta(days=1), 1, 0))

    assert first.id == second.id
    assert ensure_utc(second.check_out) == at(DAY, 18, 0)
    assert db.query(AuditLog).filter(AuditLog.action == AuditAction.AUTO_CHECK_OUT).count() == 1


def test_close_day_for_users_tally(db, at):
    svc.check_in(db, 1, at(DAY, 9, 0))
    svc.check_out(db, 1, at(DAY, 18, 0))
    svc.mark_leave(db, 2, "Doctor appointment", at(DAY, 8, 0))

    tally = svc.close_day_for_users(db, [1, 2, 3], DAY, at(DAY, 23, 0))

    assert tally == {"present": 1, "leave": 1, "absent": 1}


def test_actions_are_audited(db, at):
    record = svc.check_in(db, USER, at(DAY, 9, 0), actor_id=USER)
    svc.check_out(db, USER, at(DAY, 18, 0), actor_id=USER)

    trail = audit_trail(db, "attendance_records", record.id)
    assert [a.action for a in trail] == [AuditAction.CHECK_IN, AuditAction.CHECK_OUT]
    assert all(a.actor_id == USER for a in trail)


def test_history_range(db, at):
    for offset in range(3):
        day = DAY + timedelta(days=offset)
        svc.check_in(db, USER, at(day, 9, 0))
        svc.check_out(db, USER, at(day, 18, 0))

    records = svc.list_history(db, USER, DAY, DAY + timedelta(days=1))
    assert [r.work_date for r in records] == [DAY, DAY + timedelta(days=1)]

    with pytest.raises(InvalidDateRange):
        svc.list_history(db, USER, DAY, DAY - timedelta(days=1))
    with pytest.raises(InvalidDateRange):
        svc.list_history(db, USER, DAY - timedelta(days=400), DAY)


def test_team_today_summary(db, at):
    svc.check_in(db, 1, at(DAY, 9, 0))
    svc.check_out(db, 1, at(DAY, 18, 0))
    svc.check_in(db, 2, at(DAY, 9, 50))
    svc.check_out(db, 2, at(DAY, 18, 0))
    svc.check_in(db, 3, at(DAY, 9, 0))
    svc.mark_leave(db, 4, "Sister's wedding", at(DAY, 8, 0))

    summary = svc.team_today_summary(db, [1, 2, 3, 4, 5], at(DAY, 12, 0))

    assert summary["work_date"] == DAY
    assert summary["total"] == 5
    assert summary["present"] == 2
    assert summary["late"] == 1
    assert summary["checked_in"] == 1
    assert summary["on_leave"] == 1
    assert summary["absent"] == 1
    assert [m["user_id"] for m in summary["members"]] == [1, 2, 3, 4, 5]
