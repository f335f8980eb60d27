"""
Attendance badge model. A badge is a fact keyed by (user, type, qualifying period).
"""
import enum
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint, Enum as SQLEnum
from app.db.base import Base


class BadgeType(str, enum.Enum):
    EARLY_BIRD = "early_bird"
    STREAK = "streak"
    PERFECT_MONTH = "perfect_month"


class AttendanceBadge(Base):
    __tablename__ = "attendance_badges"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    badge_type = Column(
        SQLEnum(BadgeType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=False,
    )
    qualifying_period = Column(String, nullable=False)  # e.g. "streak:7", "early_bird:10", "2026-03"
    badge_name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    awarded_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "badge_type", "qualifying_period", name="uq_attendance_badges_user_type_period"),
    )
