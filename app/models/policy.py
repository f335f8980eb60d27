"""
Attendance policy model.

Each administrative update appends a new version row; the row with the
highest id is the active policy. Attendance records pin the version they were
classified under.
"""
from sqlalchemy import Column, Integer, DateTime, Boolean, Time
from sqlalchemy.sql import func
from app.db.base import Base


class AttendancePolicy(Base):
    __tablename__ = "attendance_policies"

    id = Column(Integer, primary_key=True, index=True)

    # Working hours (wall-clock times in settings.ATTENDANCE_TZ)
    work_start = Column(Time, nullable=False)
    work_end = Column(Time, nullable=False)
    break_start = Column(Time, nullable=False)
    break_end = Column(Time, nullable=False)

    # Morning thresholds; afternoon thresholds mirror these from break_end
    late_minutes_threshold = Column(Integer, nullable=False, default=30)
    absent_hours_threshold = Column(Integer, nullable=False, default=2)

    # Worked-duration thresholds
    half_day_hours = Column(Integer, nullable=False, default=4)
    full_day_hours = Column(Integer, nullable=False, default=8)

    # Legacy fields kept for clients that still display them; not used by classification
    late_mark_threshold = Column(Integer, nullable=False, default=3)
    auto_absent_hours = Column(Integer, nullable=False, default=2)

    # Feature flags
    allow_self_check_in = Column(Boolean, nullable=False, default=True)
    require_gps = Column(Boolean, nullable=False, default=False)
    require_device_binding = Column(Boolean, nullable=False, default=False)

    effective_from = Column(DateTime(timezone=True), nullable=False)
    updated_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
