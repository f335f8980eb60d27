"""
Audit trail for attendance, policy and shift changes
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog
from app.utils.datetime_utils import now_utc
from app.utils.json_serializer import sanitize_for_json

_log = logging.getLogger(__name__)


class AuditAction:
    CHECK_IN = "ATTENDANCE_CHECK_IN"
    CHECK_OUT = "ATTENDANCE_CHECK_OUT"
    MARK_LEAVE = "ATTENDANCE_MARK_LEAVE"
    AUTO_ABSENT = "ATTENDANCE_AUTO_ABSENT"
    AUTO_CHECK_OUT = "ATTENDANCE_AUTO_CHECK_OUT"
    BADGES_AWARDED = "ATTENDANCE_BADGES_AWARDED"
    POLICY_UPDATE = "ATTENDANCE_POLICY_UPDATE"
    SHIFT_CREATE = "SHIFT_CREATE"
    SHIFT_DEACTIVATE = "SHIFT_DEACTIVATE"


def log_audit(
    db: Session,
    actor_id: int,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> AuditLog:
    """
    Record one state change.

    Args:
        actor_id: user performing the action (the target user for self-service calls)
        action: one of the AuditAction names
        entity_type: table of the affected row, e.g. "attendance_records"
        meta: extra context; dates, enums and decimals are made JSON-safe
        commit: False joins the caller's transaction, so the change and its
            audit entry land together
    """
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=sanitize_for_json(meta) if meta is not None else None,
        # SQLite has no reliable server default for tz-aware columns
        created_at=now_utc(),
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)
    _log.debug("audit: actor=%s action=%s %s#%s", actor_id, action, entity_type, entity_id)
    return entry


def audit_trail(
    db: Session,
    entity_type: str,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
) -> List[AuditLog]:
    """Entries for a table (optionally one row or one action), oldest first"""
    query = db.query(AuditLog).filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)
    if action is not None:
        query = query.filter(AuditLog.action == action)
    return query.order_by(AuditLog.id.asc()).all()
