"""
Application error taxonomy and the exception handlers that render it.

Every error response has the body ``{"success": false, "message": ...}``.
Outside production the body also carries the exception type and stack.
"""
import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace_api.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Operational error carrying the HTTP status it maps to"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


def _error_body(message: str, exc: Exception) -> dict:
    body = {"success": False, "message": message}
    if not settings.is_production:
        body["error"] = type(exc).__name__
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def _log_error(request: Request, status_code: int, message: str, exc: Exception):
    extra = {"path": request.url.path, "method": request.method, "status_code": status_code}
    if status_code >= 500:
        logger.error(f"Error {status_code}: {message}", extra=extra, exc_info=exc)
    else:
        logger.warning(f"Error {status_code}: {message}", extra=extra)


def error_response(request: Request, status_code: int, message: str, exc: Exception, headers=None) -> JSONResponse:
    _log_error(request, status_code, message, exc)
    return JSONResponse(status_code=status_code, content=_error_body(message, exc), headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return error_response(request, exc.status_code, exc.message, exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(request, exc.status_code, message, exc, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(request, status.HTTP_400_BAD_REQUEST, message, exc)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Duplicate or conflicting record", exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    message = "Internal Server Error" if settings.is_production else str(exc) or "Internal Server Error"
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message, exc)


def register_exception_handlers(app: FastAPI):
    """Attach the error handlers to the application"""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
