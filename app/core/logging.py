"""
Logging configuration for the Attendance Policy Engine
"""
import logging
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Library loggers that are too chatty at the app level
QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "alembic": logging.INFO,
}


class ZonedFormatter(logging.Formatter):
    """Timestamps in the attendance time zone, so log lines match local work dates"""

    def __init__(self, fmt: str, tz_name: str):
        super().__init__(fmt)
        self.tz = ZoneInfo(tz_name)

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, self.tz)
        if datefmt:
            return stamp.strftime(datefmt)
        return stamp.isoformat(timespec="milliseconds")


def setup_logging() -> None:
    """
    Configure the root logger from settings.LOG_LEVEL.

    Safe to call more than once (uvicorn reload, scripts importing the app).
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ZonedFormatter(LOG_FORMAT, settings.ATTENDANCE_TZ))
    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, env=%s, tz=%s", settings.LOG_LEVEL, settings.APP_ENV, settings.ATTENDANCE_TZ
    )
