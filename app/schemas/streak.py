"""
Streak summary and badge schemas
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_serializer

from app.models.badge import BadgeType
from app.utils.datetime_utils import iso_local


class StreakOut(BaseModel):
    current_streak: int
    longest_streak: int
    early_bird_count: int
    on_time_count: int
    late_count: int
    half_day_count: int
    absent_count: int
    leave_count: int
    total_working_days: int

    model_config = ConfigDict(from_attributes=True)


class BadgeOut(BaseModel):
    id: int
    badge_type: BadgeType
    badge_name: str
    description: str
    qualifying_period: str
    awarded_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("awarded_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return iso_local(dt)
