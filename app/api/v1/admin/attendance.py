"""
Admin attendance endpoints: end-of-day classification.
Called by the scheduler (scripts/close_attendance_day.py) or by HR/ADMIN.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import CurrentUser, get_db, require_privileged
from app.schemas.attendance import CloseDayRequest, CloseDayResponse
from app.services.attendance_service import close_day_for_users
from app.utils.datetime_utils import work_date_for

router = APIRouter()
_log = logging.getLogger(__name__)


@router.post("/close-day", response_model=CloseDayResponse)
async def close_day(
    body: CloseDayRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_privileged),
):
    """
    Close a work date for the given users: days without a check-in past the
    morning absent cutoff become absent, open days are auto checked out once
    the work end has passed. Re-running is harmless.
    """
    work_date = body.work_date or work_date_for()
    user_ids = sorted(set(body.user_ids))
    tally = close_day_for_users(db, user_ids, work_date, actor_id=current_user.id)
    _log.info("close_day: work_date=%s users=%s tally=%s by=%s", work_date, len(user_ids), tally, current_user.id)
    return CloseDayResponse(work_date=work_date, processed=len(user_ids), tally=tally)
