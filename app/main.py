"""
Attendance Policy Engine - application entry point

    uvicorn app.main:app --reload
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import (
    attendance_error_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.exceptions import AttendanceError
from app.core.logging import setup_logging
from app.db.init_db import init_db
from app.db.session import SessionLocal

setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Hide the password of a server DATABASE_URL; sqlite paths are shown as is"""
    parsed = urlparse(url)
    if parsed.scheme.startswith("sqlite") or not parsed.password:
        return url
    netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    # Unmigrated database: tell the operator what to run instead of a bare 500
    if "no such table" in str(exc).lower():
        logger.error("Database schema missing on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Run alembic upgrade head"})
    return await generic_exception_handler(request, exc)


def _bootstrap_policy() -> None:
    db = SessionLocal()
    try:
        init_db(db)
    except OperationalError as e:
        # Tables not migrated yet; the default policy is created on first use instead
        db.rollback()
        logger.warning("Attendance policy bootstrap skipped: %s", e)
    finally:
        db.close()


def create_app() -> FastAPI:
    application = FastAPI(
        title="Attendance Policy Engine",
        description="Attendance policy, day classification, streaks and badges",
        version=settings.VERSION or "1.0.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(AttendanceError, attendance_error_handler)
    application.add_exception_handler(OperationalError, operational_error_handler)
    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(Exception, generic_exception_handler)

    application.include_router(api_router, prefix="/api/v1")

    @application.on_event("startup")
    def on_startup() -> None:
        logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
        logger.info("Attendance timezone: %s", settings.ATTENDANCE_TZ)
        _bootstrap_policy()

    return application


app = create_app()
