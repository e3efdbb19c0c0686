import re
from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from app.schemas.base import create_success_response, create_error_response
from app.core.logging_config import get_logger

logger = get_logger(__name__)


class ResponseWrapper:
    """Utility class for wrapping responses in standard format"""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> Dict[str, Any]:
        return jsonable_encoder(create_success_response(data, message))

    @staticmethod
    def error(
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Wrap error response and make it JSON-safe"""
        raw = create_error_response(message, error_code, details)
        return jsonable_encoder(raw)

    @staticmethod
    def created(data: Any = None, message: str = "Resource created successfully") -> Dict[str, Any]:
        return ResponseWrapper.success(data, message)

    @staticmethod
    def updated(data: Any = None, message: str = "Resource updated successfully") -> Dict[str, Any]:
        return ResponseWrapper.success(data, message)

    @staticmethod
    def deleted(message: str = "Resource deleted successfully") -> Dict[str, Any]:
        return ResponseWrapper.success(None, message)


def _conflicting_fields(error_msg: str) -> Dict[str, str]:
    match = re.search(r"Key \((.*?)\)=\((.*?)\)", error_msg)
    if not match:
        return {}
    columns = match.group(1).split(", ")
    values = match.group(2).split(", ")
    return {col: val for col, val in zip(columns, values)}


def is_unique_violation(error: Exception) -> bool:
    """True for duplicate-key errors from PostgreSQL and SQLite alike"""
    error_msg = str(getattr(error, "orig", error)).lower()
    return "duplicate key" in error_msg or "unique constraint" in error_msg


def handle_db_error(error: Exception) -> HTTPException:
    """Convert database errors to HTTP exceptions with detailed info"""
    error_msg = str(error).strip().replace("\n", " ")

    if is_unique_violation(error):
        detail = ResponseWrapper.error(
            message="Resource already exists with the same values",
            error_code="DUPLICATE_RESOURCE",
            details={"conflicting_fields": _conflicting_fields(error_msg)},
        )
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    elif "foreign key" in error_msg.lower():
        detail = ResponseWrapper.error(
            message="Referenced resource not found",
            error_code="FOREIGN_KEY_VIOLATION",
            details={"conflicting_fields": _conflicting_fields(error_msg)},
        )
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    logger.error(f"Database operation failed: {error_msg}")
    detail = ResponseWrapper.error(
        message="Database operation failed",
        error_code="DATABASE_ERROR",
    )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
