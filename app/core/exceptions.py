"""
Typed attendance errors.

Every failure carries a stable ``code`` so the presentation layer can render a
specific message, and an HTTP ``status_code`` used by the exception handler.
"""
from typing import Any, List, Optional

from fastapi import status


class AttendanceError(Exception):
    """Base class for all attendance domain errors."""

    code: str = "ATTENDANCE_ERROR"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Attendance action failed"

    def __init__(self, detail: Optional[str] = None, **context: Any):
        self.detail = detail or self.default_detail
        self.context = context
        super().__init__(self.detail)


# --- Validation: rejected synchronously, never partially applied ---


class ValidationError(AttendanceError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid input"


class InvalidPolicy(ValidationError):
    code = "INVALID_POLICY"
    default_detail = "Attendance policy is invalid"

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__("Attendance policy is invalid: " + "; ".join(self.violations), violations=self.violations)


class InvalidShift(ValidationError):
    code = "INVALID_SHIFT"
    default_detail = "Shift start time must be before end time"


class ReasonTooShort(ValidationError):
    code = "REASON_TOO_SHORT"

    def __init__(self, min_length: int):
        self.min_length = min_length
        super().__init__(f"Leave reason must be at least {min_length} characters", min_length=min_length)


class InvalidDateRange(ValidationError):
    code = "INVALID_DATE_RANGE"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "from_date must be less than or equal to to_date"


# --- State conflicts: surfaced to caller, no retry ---


class StateConflict(AttendanceError):
    code = "STATE_CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class AlreadyCheckedIn(StateConflict):
    code = "ALREADY_CHECKED_IN"
    default_detail = "Already checked in today"


class AlreadyCheckedOut(StateConflict):
    code = "ALREADY_CHECKED_OUT"
    default_detail = "Already checked out today"


class NotCheckedIn(StateConflict):
    code = "NOT_CHECKED_IN"
    default_detail = "No check-in found for today"


class LeaveAfterCheckIn(StateConflict):
    code = "LEAVE_AFTER_CHECK_IN"
    default_detail = "Cannot mark leave after checking in"


class AlreadyOnLeave(StateConflict):
    code = "ALREADY_ON_LEAVE"
    default_detail = "Today is already marked as leave"


# --- Policy violations: block the action entirely ---


class PolicyViolation(AttendanceError):
    code = "POLICY_VIOLATION"
    status_code = status.HTTP_403_FORBIDDEN


class SelfCheckInDisabled(PolicyViolation):
    code = "SELF_CHECK_IN_DISABLED"
    default_detail = "Self check-in is disabled by the attendance policy"


class GPSRequired(PolicyViolation):
    code = "GPS_REQUIRED"
    default_detail = "GPS location is required to check in"


class DeviceBindingRequired(PolicyViolation):
    code = "DEVICE_BINDING_REQUIRED"
    default_detail = "A bound device is required to check in"


class NotFound(AttendanceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"
