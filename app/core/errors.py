"""
Central error handling for the Attendance Policy Engine

Every error response shares one envelope:
``{"error": true, "status_code": ..., "detail": ..., "path": ...}`` plus
handler-specific keys (``code`` and ``context`` for attendance errors,
``errors`` for validation failures outside prod).
"""
import logging
import traceback
from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import AttendanceError
from app.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)

_JSON_SCALARS = (str, int, float, bool, type(None))


def _error_response(
    request: Request,
    status_code: int,
    detail: Any,
    headers: Optional[dict] = None,
    **extra: Any,
) -> JSONResponse:
    content = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "path": str(request.url.path),
    }
    content.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def attendance_error_handler(request: Request, exc: AttendanceError) -> JSONResponse:
    """Typed attendance errors carry a stable machine-readable ``code``"""
    logger.info("Attendance error %s on %s: %s", exc.code, request.url.path, exc.detail)
    context = sanitize_for_json(exc.context) if exc.context else None
    return _error_response(request, exc.status_code, exc.detail, code=exc.code, context=context)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Field-level errors are listed except in prod"""
    if settings.APP_ENV == "prod":
        return _error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error: Invalid request data")

    errors = []
    for e in exc.errors():
        err = dict(e)
        # ctx may hold exception instances (e.g. ValueError from a validator)
        if isinstance(err.get("ctx"), dict):
            err["ctx"] = {k: v if isinstance(v, _JSON_SCALARS) else str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        errors=sanitize_for_json(errors),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)

    if settings.APP_ENV == "prod":
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc),
        traceback=traceback.format_exc() if settings.APP_ENV == "local" else None,
    )
