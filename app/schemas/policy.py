"""
Attendance policy and shift schemas
"""
from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.utils.datetime_utils import hhmm, iso_local


class PolicyIn(BaseModel):
    """
    Full replacement of the attendance policy (PUT). Times are HH:MM in the
    configured timezone. Cross-field rules are checked by the policy validator.
    """
    work_start: time
    work_end: time
    break_start: time
    break_end: time
    late_minutes_threshold: int = Field(..., description="Minutes after the session start before a check-in is late")
    absent_hours_threshold: int = Field(..., description="Hours after the session start before a check-in is absent")
    half_day_hours: int
    full_day_hours: int
    # Legacy fields, stored and returned but not used by classification
    late_mark_threshold: int = 3
    auto_absent_hours: int = 2
    allow_self_check_in: bool = True
    require_gps: bool = False
    require_device_binding: bool = False


class PolicyOut(BaseModel):
    """Active attendance policy version. Times as HH:MM, instants in the configured timezone."""
    id: int
    work_start: time
    work_end: time
    break_start: time
    break_end: time
    late_minutes_threshold: int
    absent_hours_threshold: int
    half_day_hours: int
    full_day_hours: int
    late_mark_threshold: int
    auto_absent_hours: int
    allow_self_check_in: bool
    require_gps: bool
    require_device_binding: bool
    effective_from: datetime
    updated_by: Optional[int] = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("work_start", "work_end", "break_start", "break_end")
    def _ser_time(self, t: time) -> str:
        return hhmm(t)

    @field_serializer("effective_from", "updated_at")
    def _ser_datetime(self, dt: datetime) -> str:
        return iso_local(dt)


class PolicyMetricsOut(BaseModel):
    """Derived values of a policy (optionally under a shift)"""
    work_start: str
    work_end: str
    total_work_duration: str
    total_work_minutes: int
    break_duration: str
    break_minutes: int
    morning_late_time: str
    morning_absent_time: str
    afternoon_late_time: str
    afternoon_absent_time: str
    auto_checkout: str


class ShiftIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_time: time
    end_time: time
    team_id: Optional[int] = Field(None, description="Team the shift applies to; omit for the company default shift")


class ShiftOut(BaseModel):
    id: int
    name: str
    start_time: time
    end_time: time
    team_id: Optional[int] = None
    active: bool

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("start_time", "end_time")
    def _ser_time(self, t: time) -> str:
        return hhmm(t)


class PolicyBundleOut(BaseModel):
    """Policy, the shift bound to the caller and the derived cutoffs"""
    policy: PolicyOut
    shift: Optional[ShiftOut] = None
    metrics: PolicyMetricsOut
