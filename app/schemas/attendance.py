"""
Attendance schemas: check-in/check-out/leave requests and day records.
All instants are returned in the configured timezone (stored UTC).
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.models.attendance import AttendanceStatus
from app.services.classification_service import DayState
from app.utils.datetime_utils import iso_local


class CheckInRequest(BaseModel):
    """Check-in payload. The check-in time is always the server time."""
    gps_location: Optional[Dict[str, Any]] = Field(None, description="Location payload, e.g. {lat, lng, accuracy}")
    device_id: Optional[str] = None
    user_id: Optional[int] = Field(None, description="Check in on behalf of another user (privileged roles only)")


class MarkLeaveRequest(BaseModel):
    reason: str = Field(..., description="Reason for the leave; at least LEAVE_REASON_MIN_LENGTH characters after trimming")


class AttendanceRecordOut(BaseModel):
    id: int
    user_id: int
    work_date: date
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    work_duration: int
    leave_reason: Optional[str] = None
    policy_id: Optional[int] = None
    shift_id: Optional[int] = None
    scheduled_start: Optional[datetime] = None
    late_cutoff: Optional[datetime] = None
    gps_location: Optional[Dict[str, Any]] = None
    device_id: Optional[str] = None
    auto_closed: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("check_in", "check_out", "scheduled_start", "late_cutoff", "updated_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class TeamMemberOut(BaseModel):
    user_id: int
    state: DayState
    status: Optional[AttendanceStatus] = None
    record: Optional[AttendanceRecordOut] = None

    model_config = ConfigDict(from_attributes=True)


class TeamTodayOut(BaseModel):
    """Today's attendance across a team; present includes late"""
    work_date: date
    total: int
    present: int
    late: int
    half_day: int
    on_leave: int
    checked_in: int
    absent: int
    members: List[TeamMemberOut]


class CloseDayRequest(BaseModel):
    user_ids: List[int] = Field(..., min_length=1)
    work_date: Optional[date] = Field(None, description="Defaults to today's work date")


class CloseDayResponse(BaseModel):
    work_date: date
    processed: int
    tally: Dict[str, int]
