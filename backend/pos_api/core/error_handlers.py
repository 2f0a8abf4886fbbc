"""
Central exception handlers.

AppException subclasses are HTTPExceptions and keep FastAPI's default
handling. These handlers cover what services let propagate from the
database and anything unexpected.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from pos_shared.config.constants import ErrorMessages
from pos_shared.config.logging import api_logger as logger
from pos_shared.config.settings import settings
from pos_shared.security.rate_limit import rate_limit_exceeded_handler

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

MAX_ERROR_MESSAGE_LENGTH = 500


def classify_integrity_error(exc: IntegrityError) -> str:
    """Return "unique", "foreign_key" or "other" for a constraint violation."""
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION:
        return "unique"
    if sqlstate == FOREIGN_KEY_VIOLATION:
        return "foreign_key"

    message = str(exc.orig).lower()
    if "unique" in message or "duplicate" in message:
        return "unique"
    if "foreign key" in message:
        return "foreign_key"
    return "other"


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    kind = classify_integrity_error(exc)
    logger.warning("Integrity error", path=request.url.path, kind=kind, error=str(exc.orig))
    if kind == "foreign_key":
        return JSONResponse(status_code=400, content={"detail": ErrorMessages.FK_VIOLATION})
    return JSONResponse(status_code=409, content={"detail": ErrorMessages.DUPLICATE_RECORD})


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("Database unavailable", path=request.url.path, error=str(exc.orig))
    return JSONResponse(
        status_code=503,
        content={"detail": ErrorMessages.DB_UNAVAILABLE},
        headers={"Retry-After": "30"},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error", path=request.url.path, error=str(exc), exc_info=True)
    return JSONResponse(status_code=500, content={"detail": ErrorMessages.INTERNAL})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500; the exception text is only shown outside production."""
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=True)
    if settings.environment == "production":
        message = ErrorMessages.INTERNAL
    else:
        message = str(exc)[:MAX_ERROR_MESSAGE_LENGTH] or ErrorMessages.INTERNAL
    return JSONResponse(status_code=500, content={"detail": message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
