"""
Application error taxonomy and the FastAPI handlers that translate it into
JSON responses.

Authorization and role-management errors propagate up to the route layer and
are rendered here. Audit persistence errors never reach this module: the
audit service swallows them.
"""
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging_config import get_logger
from app.utils.response_utils import ResponseWrapper

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "APP_ERROR"
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        if error_code:
            self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class UnauthenticatedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_message = "Forbidden: insufficient permissions"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_message = "Resource conflict"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class AuditPersistenceError(AppError):
    """Raised inside the audit service only; never surfaces to a caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "AUDIT_PERSISTENCE_ERROR"
    default_message = "Failed to persist audit log"


def error_payload(message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = ResponseWrapper.error(message=message, error_code=error_code, details=details)
    payload["error"] = message
    return payload


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(exc.message, exc.error_code, exc.details),
        )

    @app.exception_handler(HTTPException)
    async def _handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail
        if isinstance(detail, dict) and detail.get("success") is False:
            content = dict(detail)
            content.setdefault("error", detail.get("message"))
        else:
            content = error_payload(str(detail), "HTTP_ERROR")
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(f"Request validation failed on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_payload(
                "Request validation failed",
                "VALIDATION_ERROR",
                {"errors": exc.errors()},
            ),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unexpected error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_payload("Internal server error", "INTERNAL_SERVER_ERROR"),
        )
