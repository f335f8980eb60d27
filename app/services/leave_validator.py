"""
Leave request validator: gate in front of the leave transition
"""
from typing import Any, Optional

from app.core.config import settings
from app.core.exceptions import AlreadyOnLeave, LeaveAfterCheckIn, ReasonTooShort
from app.services.classification_service import DayState, day_state


def validate_leave_request(reason: Optional[str], existing_record: Optional[Any] = None, min_length: Optional[int] = None) -> str:
    """
    Validate a leave mark for one day.

    Args:
        reason: Free-text reason; surrounding whitespace is ignored
        existing_record: The day's record, if any
        min_length: Minimum trimmed length (default settings.LEAVE_REASON_MIN_LENGTH)

    Returns:
        The trimmed reason

    Raises:
        ReasonTooShort: trimmed reason shorter than min_length
        AlreadyOnLeave: the day is already marked as leave
        LeaveAfterCheckIn: the day already has attendance
    """
    if min_length is None:
        min_length = settings.LEAVE_REASON_MIN_LENGTH

    trimmed = (reason or "").strip()
    if len(trimmed) < min_length:
        raise ReasonTooShort(min_length)

    state = day_state(existing_record)
    if state == DayState.ON_LEAVE:
        raise AlreadyOnLeave()
    if state != DayState.UNSTARTED:
        raise LeaveAfterCheckIn()
    return trimmed
