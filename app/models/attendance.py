"""
Attendance record model: one row per user per work date
"""
import enum
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, String, Text, Boolean, JSON, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    LATE = "late"
    HALF_DAY = "half_day"
    ABSENT = "absent"
    LEAVE = "leave"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    work_date = Column(Date, nullable=False, index=True)  # Date in settings.ATTENDANCE_TZ
    check_in = Column(DateTime(timezone=True), nullable=True)  # Server UTC timestamp
    check_out = Column(DateTime(timezone=True), nullable=True)  # Server UTC timestamp
    status = Column(
        SQLEnum(AttendanceStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=True,
    )
    work_duration = Column(Integer, nullable=False, default=0)  # Whole minutes
    leave_reason = Column(Text, nullable=True)

    # Policy version, shift and window snapshot the day was classified under
    policy_id = Column(Integer, ForeignKey("attendance_policies.id"), nullable=True, index=True)
    shift_id = Column(Integer, ForeignKey("shifts.id"), nullable=True)
    scheduled_start = Column(DateTime(timezone=True), nullable=True)
    late_cutoff = Column(DateTime(timezone=True), nullable=True)

    gps_location = Column(JSON, nullable=True)
    device_id = Column(String, nullable=True)
    auto_closed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "work_date", name="uq_attendance_records_user_work_date"),
    )

    policy = relationship("AttendancePolicy")
    shift = relationship("Shift")
