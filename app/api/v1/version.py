"""
Version and metadata endpoint
"""
from fastapi import APIRouter

from app.core.config import settings
from app.core.constants import SERVICE_NAME
from app.utils.datetime_utils import now_utc, to_local

router = APIRouter()


@router.get("/version")
async def get_version():
    """
    Service version plus the attendance clock.

    ``work_date`` and ``utc_offset`` let clients show check-in windows in the
    same zone the server classifies days in.
    """
    local_now = to_local(now_utc())
    return {
        "service": SERVICE_NAME,
        "version": settings.VERSION or "1.0.0",
        "env": settings.APP_ENV,
        "tz": settings.ATTENDANCE_TZ,
        "utc_offset": local_now.isoformat()[-6:],
        "work_date": local_now.date().isoformat(),
    }
