"""
Policy store - the single active attendance policy and shift association
"""
import logging
from datetime import time
from types import SimpleNamespace
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidPolicy, NotFound
from app.models.policy import AttendancePolicy
from app.models.shift import Shift
from app.services.audit_service import AuditAction, log_audit
from app.services.policy_validator import shift_violations, validate_policy, validate_shift_times
from app.utils.datetime_utils import now_utc
from app.utils.locks import policy_write_lock

_log = logging.getLogger(__name__)

POLICY_FIELDS = (
    "work_start",
    "work_end",
    "break_start",
    "break_end",
    "late_minutes_threshold",
    "absent_hours_threshold",
    "half_day_hours",
    "full_day_hours",
    "late_mark_threshold",
    "auto_absent_hours",
    "allow_self_check_in",
    "require_gps",
    "require_device_binding",
)

DEFAULT_POLICY: Dict[str, Any] = {
    "work_start": time(9, 0),
    "work_end": time(18, 0),
    "break_start": time(13, 0),
    "break_end": time(14, 0),
    "late_minutes_threshold": 30,
    "absent_hours_threshold": 2,
    "half_day_hours": 4,
    "full_day_hours": 8,
    "late_mark_threshold": 3,
    "auto_absent_hours": 2,
    "allow_self_check_in": True,
    "require_gps": False,
    "require_device_binding": False,
}


def _latest(db: Session) -> Optional[AttendancePolicy]:
    return db.query(AttendancePolicy).order_by(AttendancePolicy.id.desc()).first()


def _insert_version(db: Session, values: Mapping[str, Any], actor_id: Optional[int]) -> AttendancePolicy:
    now = now_utc()
    policy = AttendancePolicy(
        **{field: values[field] for field in POLICY_FIELDS},
        effective_from=now,
        updated_at=now,
        updated_by=actor_id,
    )
    db.add(policy)
    db.commit()
    db.refresh(policy)
    return policy


def get_active_policy(db: Session) -> AttendancePolicy:
    """
    Get the active attendance policy, creating the default one on first use

    Returns:
        Latest AttendancePolicy version
    """
    policy = _latest(db)
    if policy is not None:
        return policy

    with policy_write_lock:
        policy = _latest(db)
        if policy is None:
            policy = _insert_version(db, DEFAULT_POLICY, actor_id=None)
            _log.info("Created default attendance policy (version %s)", policy.id)
    return policy


def get_policy_version(db: Session, policy_id: int) -> AttendancePolicy:
    """Get a specific policy version (records pin the version they were classified under)"""
    policy = db.query(AttendancePolicy).filter(AttendancePolicy.id == policy_id).first()
    if policy is None:
        raise NotFound(f"Attendance policy version {policy_id} not found")
    return policy


def update_policy(db: Session, data: Mapping[str, Any], actor_id: int) -> AttendancePolicy:
    """
    Replace the active policy.

    The update is a full replacement: every field comes from ``data`` (missing
    optional fields fall back to the defaults, never to the previous version).
    It is validated before anything is written, then stored as a new version
    under the single writer lock so readers see either the old or the new
    policy.

    Args:
        db: Database session
        data: Policy fields
        actor_id: ID of the administrator making the change

    Returns:
        The new active AttendancePolicy

    Raises:
        InvalidPolicy: if the new policy violates its invariants, or its break
            no longer fits inside an active shift
    """
    values = {field: data.get(field, DEFAULT_POLICY[field]) for field in POLICY_FIELDS}
    candidate = SimpleNamespace(**values)
    validate_policy(candidate)
    clashes = [
        f"shift {shift.name!r}: {violation}"
        for shift in list_shifts(db)
        for violation in shift_violations(candidate, shift.start_time, shift.end_time)
    ]
    if clashes:
        raise InvalidPolicy(clashes)

    with policy_write_lock:
        previous = _latest(db)
        policy = _insert_version(db, values, actor_id)

    log_audit(
        db=db,
        actor_id=actor_id,
        action=AuditAction.POLICY_UPDATE,
        entity_type="attendance_policies",
        entity_id=policy.id,
        meta={"previous_version": previous.id if previous else None, **values},
    )
    _log.info("Attendance policy updated to version %s by user %s", policy.id, actor_id)
    return policy


def resolve_shift(db: Session, team_id: Optional[int] = None) -> Optional[Shift]:
    """
    Shift bound to a user: the team's active shift, else the active
    company-wide shift, else None (policy hours apply)
    """
    query = db.query(Shift).filter(Shift.active.is_(True))
    if team_id is not None:
        shift = query.filter(Shift.team_id == team_id).order_by(Shift.id.desc()).first()
        if shift is not None:
            return shift
    return query.filter(Shift.team_id.is_(None)).order_by(Shift.id.desc()).first()


def list_shifts(db: Session, include_inactive: bool = False) -> List[Shift]:
    query = db.query(Shift)
    if not include_inactive:
        query = query.filter(Shift.active.is_(True))
    return query.order_by(Shift.id).all()


def create_shift(
    db: Session,
    name: str,
    start_time: time,
    end_time: time,
    team_id: Optional[int],
    actor_id: int,
) -> Shift:
    """
    Create a shift. An existing active shift for the same team (or the
    company-wide default when team_id is None) is deactivated so at most one
    applies.

    Raises:
        InvalidShift: if start_time is not before end_time, or the shift does
            not contain the active policy's break
    """
    validate_shift_times(start_time, end_time, get_active_policy(db))

    same_scope = db.query(Shift).filter(Shift.active.is_(True))
    same_scope = same_scope.filter(Shift.team_id == team_id) if team_id is not None else same_scope.filter(Shift.team_id.is_(None))
    existing = same_scope.all()
    replaced = [s.id for s in existing]
    for previous in existing:
        previous.active = False

    shift = Shift(name=name, start_time=start_time, end_time=end_time, team_id=team_id, active=True)
    db.add(shift)
    db.commit()
    db.refresh(shift)

    log_audit(
        db=db,
        actor_id=actor_id,
        action=AuditAction.SHIFT_CREATE,
        entity_type="shifts",
        entity_id=shift.id,
        meta={"name": name, "start_time": start_time, "end_time": end_time, "team_id": team_id, "replaced": replaced},
    )
    return shift


def deactivate_shift(db: Session, shift_id: int, actor_id: int) -> Shift:
    """Deactivate a shift; users fall back to the next applicable shift or the policy hours"""
    shift = db.query(Shift).filter(Shift.id == shift_id).first()
    if shift is None:
        raise NotFound(f"Shift {shift_id} not found")
    if shift.active:
        shift.active = False
        db.commit()
        db.refresh(shift)
        log_audit(
            db=db,
            actor_id=actor_id,
            action=AuditAction.SHIFT_DEACTIVATE,
            entity_type="shifts",
            entity_id=shift.id,
        )
    return shift


def get_policy_bundle(db: Session, team_id: Optional[int] = None) -> Dict[str, Any]:
    """Policy + shift read model shown on the attendance dashboards"""
    return {
        "policy": get_active_policy(db),
        "shift": resolve_shift(db, team_id),
    }
