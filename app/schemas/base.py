"""
Response envelope shared by every route.

Success: {"success": true, "message", "data", "timestamp"}
Error:   {"success": false, "message", "error_code", "details", "timestamp"}
"""
from datetime import datetime
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

# The firm operates out of Vienna; response timestamps are local time
VIENNA = ZoneInfo("Europe/Vienna")


def local_timestamp() -> str:
    return datetime.now(VIENNA).strftime("%Y-%m-%d %H:%M:%S")


def create_success_response(data: Any = None, message: str = "Success") -> Dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
        "timestamp": local_timestamp(),
    }


def create_error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "error_code": error_code,
        "details": details,
        "timestamp": local_timestamp(),
    }
