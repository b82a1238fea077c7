"""Error taxonomy and the FastAPI handlers that render it.

Expected failures (duplicate entry, unauthorized delete, bad payload) are
returned as booleans by the services; only the cases below cross into the
HTTP layer as exceptions.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Operational error with an HTTP status attached."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class ValidationFailure(AppError):
    status_code = 400

    def __init__(self, message: str = "Validation failed") -> None:
        super().__init__(message)


class ConflictError(AppError):
    status_code = 409

    def __init__(self, message: str = "Already exists") -> None:
        super().__init__(message)


class RateLimitedError(AppError):
    status_code = 429

    def __init__(self, message: str = "Too many requests") -> None:
        super().__init__(message)


class GalleryItemNotFound(NotFoundError):
    def __init__(self, session_id: str, version: str) -> None:
        super().__init__("Gallery item not found")
        self.session_id = session_id
        self.version = version


def _format_validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return details


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "Operational error: %s",
        exc.message,
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        {
            "success": False,
            "error": "Validation Error",
            "details": _format_validation_errors(exc),
        },
        status_code=400,
    )


async def _store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Store operation failed",
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path},
    )
    return JSONResponse(
        {"success": False, "error": "Internal Server Error"},
        status_code=500,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, _store_error_handler)
