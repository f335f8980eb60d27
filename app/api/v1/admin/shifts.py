"""
Admin shift endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import CurrentUser, get_db, require_privileged
from app.schemas.policy import ShiftIn, ShiftOut
from app.services import policy_service

router = APIRouter()


@router.get("", response_model=List[ShiftOut])
async def list_shifts(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_privileged),
):
    return policy_service.list_shifts(db, include_inactive=include_inactive)


@router.post("", response_model=ShiftOut, status_code=201)
async def create_shift(
    body: ShiftIn,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_privileged),
):
    """Create a shift; it replaces the active shift of the same team (or the company default)"""
    return policy_service.create_shift(
        db,
        name=body.name,
        start_time=body.start_time,
        end_time=body.end_time,
        team_id=body.team_id,
        actor_id=current_user.id,
    )


@router.delete("/{shift_id}", response_model=ShiftOut)
async def deactivate_shift(
    shift_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_privileged),
):
    return policy_service.deactivate_shift(db, shift_id, actor_id=current_user.id)
