"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, nullable=False, index=True)  # User id from the identity service
    action = Column(String, nullable=False)  # e.g. "ATTENDANCE_CHECK_IN", "ATTENDANCE_POLICY_UPDATE"
    entity_type = Column(String, nullable=False)  # e.g. "attendance_records", "attendance_policies"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
