"""
Database models
"""
from app.models.audit_log import AuditLog
from app.models.policy import AttendancePolicy
from app.models.shift import Shift
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.badge import AttendanceBadge, BadgeType

__all__ = [
    "AuditLog",
    "AttendancePolicy",
    "Shift",
    "AttendanceRecord",
    "AttendanceStatus",
    "AttendanceBadge",
    "BadgeType",
]
