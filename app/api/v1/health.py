"""
Health check endpoint
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import SERVICE_NAME
from app.core.deps import get_db
from app.models.policy import AttendancePolicy

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    Service status plus database reachability.

    ``policy_version`` is the newest policy row, or null before the first
    policy is seeded. Returns 503 when the database cannot be queried.
    """
    try:
        policy_version = db.query(func.max(AttendancePolicy.id)).scalar()
    except SQLAlchemyError as e:
        logger.error("Health check database query failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "service": SERVICE_NAME, "database": "unavailable"},
        )
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "database": "ok",
        "policy_version": policy_version,
    }
