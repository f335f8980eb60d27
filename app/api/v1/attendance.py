"""
Attendance endpoints: check-in/check-out, leave marking and the dashboard read
models (today, history, streak, badges, policy bundle, team today).
Every caller acts on their own day; privileged roles may check in on behalf of
another user and managers may read other users' history.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.deps import CurrentUser, get_current_user, get_db, require_manager
from app.schemas.attendance import (
    AttendanceRecordOut,
    CheckInRequest,
    MarkLeaveRequest,
    TeamTodayOut,
)
from app.schemas.policy import PolicyBundleOut
from app.schemas.streak import BadgeOut, StreakOut
from app.services import attendance_service as svc
from app.services.badge_service import sync_badges
from app.services.policy_service import get_policy_bundle
from app.services.streak_service import get_streak_summary
from app.services.time_window_service import policy_metrics
from app.utils.csv_export import stream_csv

router = APIRouter()
_log = logging.getLogger(__name__)

HISTORY_CSV_HEADERS = [
    "work_date",
    "status",
    "check_in",
    "check_out",
    "work_duration",
    "leave_reason",
    "auto_closed",
]


def _history_owner(current_user: CurrentUser, user_id: Optional[int]) -> int:
    """Own history by default; another user's history needs a manager role"""
    if user_id is None or user_id == current_user.id:
        return current_user.id
    if not current_user.is_manager:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Team lead role required to view another user's attendance."
        )
    return user_id


@router.get("/today", response_model=Optional[AttendanceRecordOut])
async def today(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Today's record of the caller, or null when nothing has happened yet today"""
    return svc.get_today_record(db, current_user.id)


@router.post("/check-in", response_model=AttendanceRecordOut, status_code=201)
async def check_in(
    body: Optional[CheckInRequest] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Check in for today (server time).
    Already checked in => 409 ALREADY_CHECKED_IN.
    """
    payload = body or CheckInRequest()
    user_id = current_user.id
    team_id = current_user.team_id
    if payload.user_id is not None and payload.user_id != current_user.id:
        if not current_user.is_privileged:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Only attendance administrators can check in on behalf of others."
            )
        user_id = payload.user_id
        # The target's team is not known here; the company shift applies
        team_id = None

    _log.debug("check_in: user=%s actor=%s gps=%s device=%s", user_id, current_user.id, bool(payload.gps_location), payload.device_id)
    return svc.check_in(
        db,
        user_id,
        actor_id=current_user.id,
        privileged=current_user.is_privileged,
        team_id=team_id,
        gps_location=payload.gps_location,
        device_id=payload.device_id,
    )


@router.post("/check-out", response_model=AttendanceRecordOut)
async def check_out(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Check out for today; the day is classified immediately"""
    return svc.check_out(db, current_user.id, actor_id=current_user.id)


@router.post("/mark-leave", response_model=AttendanceRecordOut, status_code=201)
async def mark_leave(
    body: MarkLeaveRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Mark today as leave. Not allowed once the day has a check-in."""
    return svc.mark_leave(db, current_user.id, body.reason, actor_id=current_user.id)


@router.get("/history", response_model=List[AttendanceRecordOut])
async def history(
    from_date: Optional[date] = Query(None, description="Start date (inclusive)"),
    to_date: Optional[date] = Query(None, description="End date (inclusive, default today)"),
    user_id: Optional[int] = Query(None, description="Another user's history (managers only)"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Day records ordered by date; the last 30 days when no range is given"""
    owner = _history_owner(current_user, user_id)
    return svc.list_history(db, owner, from_date, to_date)


@router.get("/history/export")
async def export_history(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    user_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Same records as /history, as CSV"""
    owner = _history_owner(current_user, user_id)
    records = svc.list_history(db, owner, from_date, to_date)
    rows = [
        {
            "work_date": r.work_date,
            "status": r.status,
            "check_in": r.check_in,
            "check_out": r.check_out,
            "work_duration": r.work_duration,
            "leave_reason": r.leave_reason,
            "auto_closed": r.auto_closed,
        }
        for r in records
    ]
    return stream_csv(HISTORY_CSV_HEADERS, rows, filename=f"attendance_{owner}.csv")


@router.get("/streak", response_model=StreakOut)
async def streak(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return get_streak_summary(db, current_user.id)


@router.get("/badges", response_model=List[BadgeOut])
async def badges(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Badges of the caller; newly qualified badges are awarded before listing"""
    return sync_badges(db, current_user.id)


@router.get("/policy", response_model=PolicyBundleOut)
async def policy(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Active policy, the caller's shift and the derived cutoffs"""
    bundle = get_policy_bundle(db, current_user.team_id)
    bundle["metrics"] = policy_metrics(bundle["policy"], bundle["shift"])
    return bundle


@router.get("/team/today", response_model=TeamTodayOut)
async def team_today(
    user_ids: List[int] = Query(..., description="Team members (membership is resolved by the caller)"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_manager),
):
    return svc.team_today_summary(db, user_ids)
