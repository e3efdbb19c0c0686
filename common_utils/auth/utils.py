from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
import jwt
from app.config import settings
from app.core.errors import UnauthenticatedError

# Configuration - use centralized settings
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    role: Optional[str] = None,          # customer | employee
    company_id: Optional[str] = None,
    status: Optional[str] = None,
    custom_claims: Optional[Dict] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Issue a session token carrying the resolved identity. Production tokens
    come from the session provider; this is used by scripts and tests.
    """
    to_encode = {
        "user_id": user_id,
        "email": email,
        "role": role,
        "company_id": company_id,
        "status": status,
        "token_type": "access",
    }

    if custom_claims:
        to_encode.update(custom_claims)

    to_encode = {k: v for k, v in to_encode.items() if v is not None}

    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": datetime.now(timezone.utc)})

    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> Dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])

    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Token expired", error_code="TOKEN_EXPIRED")

    except jwt.InvalidTokenError:
        raise UnauthenticatedError("Invalid token", error_code="INVALID_TOKEN")
