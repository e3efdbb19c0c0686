"""
Bearer token resolution.

The session provider signs a JWT carrying the user's id, email, portal role,
company and status. A missing, expired or invalid token resolves to no
identity; the permission gate turns that into a 401.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.errors import UnauthenticatedError
from app.core.logging_config import get_logger
from common_utils.auth.utils import verify_token

logger = get_logger(__name__)

# auto_error=False: absence of a session is decided by the permission gate
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SessionUser:
    """Identity as resolved by the session provider. Trusted as-is."""
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    company_id: Optional[str] = None
    status: Optional[str] = None


def session_user_from_token(token: str) -> Optional[SessionUser]:
    try:
        payload = verify_token(token)
    except UnauthenticatedError as e:
        logger.info(f"Rejected bearer token: {e.message}")
        return None

    if payload.get("token_type", "access") != "access":
        logger.info("Rejected bearer token: not an access token")
        return None

    user_id = payload.get("user_id")
    if not user_id:
        logger.info("Rejected bearer token: missing user_id claim")
        return None

    return SessionUser(
        user_id=str(user_id),
        email=payload.get("email"),
        role=payload.get("role"),
        company_id=payload.get("company_id"),
        status=payload.get("status"),
    )


async def get_session_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[SessionUser]:
    if credentials is None or not credentials.credentials:
        return None
    return session_user_from_token(credentials.credentials)
