"""
Database initialization helper: make sure an attendance policy exists
"""
import logging

from sqlalchemy.orm import Session

from app.models.policy import AttendancePolicy
from app.services.policy_service import get_active_policy

logger = logging.getLogger(__name__)


def init_db(db: Session) -> AttendancePolicy:
    """
    Ensure the default attendance policy exists.

    Safe to run on every startup; an existing policy is left unchanged.
    """
    policy = get_active_policy(db)
    logger.info(
        "Active attendance policy: version=%s hours=%s-%s break=%s-%s",
        policy.id, policy.work_start, policy.work_end, policy.break_start, policy.break_end,
    )
    return policy
