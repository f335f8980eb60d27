"""
Admin attendance policy endpoints: read, full replace, derived metrics preview
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import CurrentUser, get_db, require_privileged
from app.schemas.policy import PolicyIn, PolicyMetricsOut, PolicyOut
from app.services.policy_service import get_active_policy, get_policy_version, resolve_shift, update_policy
from app.services.time_window_service import policy_metrics

router = APIRouter()
_log = logging.getLogger(__name__)


@router.get("", response_model=PolicyOut)
async def get_policy(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_privileged),
):
    return get_active_policy(db)


@router.put("", response_model=PolicyOut)
async def put_policy(
    body: PolicyIn,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_privileged),
):
    """
    Replace the attendance policy. Every field is taken from the body; an
    invalid policy is rejected with 422 INVALID_POLICY listing each violated
    rule, and nothing is stored.
    """
    return update_policy(db, body.model_dump(), actor_id=current_user.id)


@router.get("/metrics", response_model=PolicyMetricsOut)
async def get_policy_metrics(
    team_id: Optional[int] = Query(None, description="Preview under this team's shift"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_privileged),
):
    """Durations and morning/afternoon cutoffs derived from the active policy"""
    return policy_metrics(get_active_policy(db), resolve_shift(db, team_id))


@router.get("/versions/{policy_id}", response_model=PolicyOut)
async def get_version(
    policy_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_privileged),
):
    """A past policy version, e.g. the one a historical record was classified under"""
    return get_policy_version(db, policy_id)
