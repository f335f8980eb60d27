"""
Attendance service - check-in/check-out, leave marking and end-of-day
classification. All timestamps stored in UTC; work_date is the date in settings.ATTENDANCE_TZ.

Every transition of a (user_id, work_date) runs under a per-key lock and the
table's unique constraint, so two racing check-ins yield exactly one success.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    DeviceBindingRequired,
    GPSRequired,
    InvalidDateRange,
    LeaveAfterCheckIn,
    NotCheckedIn,
    SelfCheckInDisabled,
)
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.services.audit_service import AuditAction, log_audit
from app.services.classification_service import DayState, day_state, derive_status, work_duration
from app.services.leave_validator import validate_leave_request
from app.services.policy_service import get_active_policy, resolve_shift
from app.services.time_window_service import DayWindows, compute_windows
from app.utils.datetime_utils import ensure_utc, now_utc, work_date_for
from app.utils.json_serializer import sanitize_for_json
from app.utils.locks import day_locks

_log = logging.getLogger(__name__)


def get_record(db: Session, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.user_id == user_id,
            AttendanceRecord.work_date == work_date,
        )
        .first()
    )


def windows_for_record(record: AttendanceRecord) -> DayWindows:
    """Windows of a record's day under the policy version and shift it was pinned to"""
    return compute_windows(record.policy, record.shift, record.work_date)


def _insert(db: Session, record: AttendanceRecord, conflict) -> None:
    db.add(record)
    try:
        db.flush()
    except IntegrityError:
        # Another worker created the same (user_id, work_date) first
        db.rollback()
        raise conflict()


def check_in(
    db: Session,
    user_id: int,
    now: Optional[datetime] = None,
    *,
    actor_id: Optional[int] = None,
    privileged: bool = False,
    team_id: Optional[int] = None,
    gps_location: Optional[Dict[str, Any]] = None,
    device_id: Optional[str] = None,
) -> AttendanceRecord:
    """
    Check in: ``unstarted -> checked_in``. Uses server time, never client time.

    Args:
        db: Database session
        user_id: User checking in
        now: Check-in instant (default server now)
        actor_id: User performing the action (default user_id)
        privileged: Caller may check in while self check-in is disabled
        team_id: Team used to resolve the shift
        gps_location: Location payload, required when the policy requires GPS
        device_id: Device identifier, required when the policy requires device binding

    Raises:
        AlreadyCheckedIn: the day already has a check-in, leave, or closed record
        SelfCheckInDisabled / GPSRequired / DeviceBindingRequired: policy flags
    """
    now = ensure_utc(now or now_utc())
    work_date = work_date_for(now)
    actor_id = actor_id if actor_id is not None else user_id

    with day_locks.hold((user_id, work_date)):
        existing = get_record(db, user_id, work_date)
        if day_state(existing) != DayState.UNSTARTED:
            raise AlreadyCheckedIn()

        policy = get_active_policy(db)
        if not policy.allow_self_check_in and not privileged:
            raise SelfCheckInDisabled()
        if policy.require_gps and not gps_location:
            raise GPSRequired()
        if policy.require_device_binding and not device_id:
            raise DeviceBindingRequired()

        shift = resolve_shift(db, team_id)
        windows = compute_windows(policy, shift, work_date)

        record = AttendanceRecord(
            user_id=user_id,
            work_date=work_date,
            check_in=now,
            check_out=None,
            status=None,
            work_duration=0,
            policy_id=policy.id,
            shift_id=shift.id if shift else None,
            scheduled_start=windows.scheduled_start_for(now),
            late_cutoff=windows.late_cutoff_for(now),
            gps_location=sanitize_for_json(gps_location) if gps_location else None,
            device_id=device_id,
            auto_closed=False,
            updated_at=now_utc(),
        )
        _insert(db, record, AlreadyCheckedIn)

        log_audit(
            db=db,
            actor_id=actor_id,
            action=AuditAction.CHECK_IN,
            entity_type="attendance_records",
            entity_id=record.id,
            meta={
                "user_id": user_id,
                "work_date": work_date,
                "check_in": now,
                "policy_id": policy.id,
                "shift_id": record.shift_id,
                "session": windows.session_for(now),
            },
            commit=False,
        )
        db.commit()
        db.refresh(record)

    _log.info("check_in: user=%s work_date=%s policy=%s", user_id, work_date, policy.id)
    return record


def _close(record: AttendanceRecord, check_out: datetime, auto: bool) -> None:
    windows = windows_for_record(record)
    check_in_at = ensure_utc(record.check_in)
    record.check_out = check_out
    record.work_duration = work_duration(check_in_at, check_out)
    record.status = derive_status(windows, record.policy, check_in_at, check_out)
    record.auto_closed = auto
    record.updated_at = now_utc()


def check_out(
    db: Session,
    user_id: int,
    now: Optional[datetime] = None,
    *,
    actor_id: Optional[int] = None,
) -> AttendanceRecord:
    """
    Check out: ``checked_in -> checked_out``; computes work_duration and status
    under the policy version pinned at check-in.

    Raises:
        NotCheckedIn: no check-in today (or the day is marked leave)
        AlreadyCheckedOut: the day is already closed
    """
    now = ensure_utc(now or now_utc())
    work_date = work_date_for(now)
    actor_id = actor_id if actor_id is not None else user_id

    with day_locks.hold((user_id, work_date)):
        record = get_record(db, user_id, work_date)
        state = day_state(record)
        if state in (DayState.UNSTARTED, DayState.ON_LEAVE):
            raise NotCheckedIn()
        if state == DayState.CHECKED_OUT:
            raise AlreadyCheckedOut()

        _close(record, now, auto=False)
        log_audit(
            db=db,
            actor_id=actor_id,
            action=AuditAction.CHECK_OUT,
            entity_type="attendance_records",
            entity_id=record.id,
            meta={
                "user_id": user_id,
                "work_date": work_date,
                "check_out": now,
                "work_duration": record.work_duration,
                "status": record.status,
            },
            commit=False,
        )
        db.commit()
        db.refresh(record)

    _log.info("check_out: user=%s work_date=%s status=%s minutes=%s", user_id, work_date, record.status, record.work_duration)
    return record


def mark_leave(
    db: Session,
    user_id: int,
    reason: Optional[str],
    now: Optional[datetime] = None,
    *,
    actor_id: Optional[int] = None,
) -> AttendanceRecord:
    """
    Mark today as leave: ``unstarted -> on_leave``.

    Raises:
        ReasonTooShort: trimmed reason below LEAVE_REASON_MIN_LENGTH
        LeaveAfterCheckIn / AlreadyOnLeave: the day already has a record
    """
    now = ensure_utc(now or now_utc())
    work_date = work_date_for(now)
    actor_id = actor_id if actor_id is not None else user_id

    with day_locks.hold((user_id, work_date)):
        existing = get_record(db, user_id, work_date)
        trimmed = validate_leave_request(reason, existing)

        policy = get_active_policy(db)
        record = AttendanceRecord(
            user_id=user_id,
            work_date=work_date,
            status=AttendanceStatus.LEAVE,
            work_duration=0,
            leave_reason=trimmed,
            policy_id=policy.id,
            auto_closed=False,
            updated_at=now_utc(),
        )
        _insert(db, record, LeaveAfterCheckIn)

        log_audit(
            db=db,
            actor_id=actor_id,
            action=AuditAction.MARK_LEAVE,
            entity_type="attendance_records",
            entity_id=record.id,
            meta={"user_id": user_id, "work_date": work_date, "reason_length": len(trimmed)},
            commit=False,
        )
        db.commit()
        db.refresh(record)

    _log.info("mark_leave: user=%s work_date=%s", user_id, work_date)
    return record


def close_day(
    db: Session,
    user_id: int,
    work_date: date,
    now: Optional[datetime] = None,
    *,
    team_id: Optional[int] = None,
    actor_id: Optional[int] = None,
) -> Optional[AttendanceRecord]:
    """
    End-of-day classification, triggered by the scheduler.

    - unstarted: an ``absent`` record is created once ``now`` is past the
      morning absent cutoff; before that nothing happens (returns None)
    - checked in without check-out: auto check-out at the policy's
      auto-checkout instant (or the check-in, if later) once that instant has
      passed, then classified
    - leave or already closed: returned unchanged
    """
    now = ensure_utc(now or now_utc())
    actor_id = actor_id if actor_id is not None else user_id

    with day_locks.hold((user_id, work_date)):
        record = get_record(db, user_id, work_date)
        state = day_state(record)

        if state == DayState.UNSTARTED:
            policy = get_active_policy(db)
            shift = resolve_shift(db, team_id)
            windows = compute_windows(policy, shift, work_date)
            status = derive_status(windows, policy, now=now)
            if status is None:
                return None
            record = AttendanceRecord(
                user_id=user_id,
                work_date=work_date,
                status=status,
                work_duration=0,
                policy_id=policy.id,
                shift_id=shift.id if shift else None,
                scheduled_start=windows.work_start,
                late_cutoff=windows.late_cutoff_am,
                auto_closed=True,
                updated_at=now_utc(),
            )
            _insert(db, record, AlreadyCheckedIn)
            action = AuditAction.AUTO_ABSENT

        elif state == DayState.CHECKED_IN:
            windows = windows_for_record(record)
            if now < windows.auto_checkout_at:
                return record
            check_out_at = max(windows.auto_checkout_at, ensure_utc(record.check_in))
            _close(record, check_out_at, auto=True)
            action = AuditAction.AUTO_CHECK_OUT

        else:
            return record

        log_audit(
            db=db,
            actor_id=actor_id,
            action=action,
            entity_type="attendance_records",
            entity_id=record.id,
            meta={"user_id": user_id, "work_date": work_date, "status": record.status},
            commit=False,
        )
        db.commit()
        db.refresh(record)

    _log.info("close_day: user=%s work_date=%s action=%s status=%s", user_id, work_date, action, record.status)
    return record


def close_day_for_users(
    db: Session,
    user_ids: Iterable[int],
    work_date: date,
    now: Optional[datetime] = None,
    *,
    actor_id: Optional[int] = None,
) -> Dict[str, int]:
    """
    Run close_day for each user and return a tally by resulting status
    ("pending" counts days that could not be closed yet)
    """
    tally: Dict[str, int] = {}
    for user_id in user_ids:
        record = close_day(db, user_id, work_date, now, actor_id=actor_id)
        key = "pending" if record is None or record.status is None else record.status.value
        tally[key] = tally.get(key, 0) + 1
    return tally


def get_today_record(db: Session, user_id: int, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
    """Today's record (by settings.ATTENDANCE_TZ work date); None means no action taken today"""
    return get_record(db, user_id, work_date_for(now))


def list_history(
    db: Session,
    user_id: int,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[AttendanceRecord]:
    """
    Records of a user ordered by work_date ascending.

    Without bounds the last 30 days (ending today) are returned.

    Raises:
        InvalidDateRange: from_date after to_date, or range longer than HISTORY_MAX_DAYS
    """
    to_date = to_date or work_date_for()
    from_date = from_date or (to_date - timedelta(days=29))
    if from_date > to_date:
        raise InvalidDateRange()
    if (to_date - from_date).days + 1 > settings.HISTORY_MAX_DAYS:
        raise InvalidDateRange(f"Date range cannot exceed {settings.HISTORY_MAX_DAYS} days")

    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.user_id == user_id,
            AttendanceRecord.work_date >= from_date,
            AttendanceRecord.work_date <= to_date,
        )
        .order_by(AttendanceRecord.work_date)
        .all()
    )


def full_history(db: Session, user_id: int) -> List[AttendanceRecord]:
    """Every record of a user, ascending; the input of the streak and badge engine"""
    return (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.user_id == user_id)
        .order_by(AttendanceRecord.work_date)
        .all()
    )


def team_today_summary(db: Session, user_ids: Iterable[int], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Today's attendance for a set of users (team membership is resolved by the caller).

    Users without a record today count as absent / not checked in.
    """
    user_ids = sorted(set(user_ids))
    work_date = work_date_for(now)
    records = {}
    if user_ids:
        rows = (
            db.query(AttendanceRecord)
            .filter(
                AttendanceRecord.user_id.in_(user_ids),
                AttendanceRecord.work_date == work_date,
            )
            .all()
        )
        records = {r.user_id: r for r in rows}

    members = []
    counts = {"present": 0, "late": 0, "half_day": 0, "on_leave": 0, "checked_in": 0, "absent": 0}
    for user_id in user_ids:
        record = records.get(user_id)
        state = day_state(record)
        status = record.status if record is not None else None
        members.append({"user_id": user_id, "state": state, "status": status, "record": record})

        if status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
            counts["present"] += 1
            if status == AttendanceStatus.LATE:
                counts["late"] += 1
        elif status == AttendanceStatus.HALF_DAY:
            counts["half_day"] += 1
        elif status == AttendanceStatus.LEAVE:
            counts["on_leave"] += 1
        elif state == DayState.CHECKED_IN:
            counts["checked_in"] += 1
        else:
            counts["absent"] += 1

    return {"work_date": work_date, "total": len(user_ids), **counts, "members": members}
