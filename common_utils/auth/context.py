"""
Per-request context handed to protected handlers.

Handlers take a single RequestContext instead of reaching into the raw
Request: the session identity, the database session and the request facts
the audit trail needs all travel together.
"""
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database.session import get_db
from common_utils.auth.token_validation import SessionUser, get_session_user


@dataclass
class RequestContext:
    db: Session
    identity: Optional[SessionUser]
    method: str = "GET"
    path: str = "/"
    path_params: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    # Filled in by PermissionChecker once resolved
    permissions: Optional[Set[str]] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.identity.user_id if self.identity else None


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


async def get_request_context(
    request: Request,
    db: Session = Depends(get_db),
    identity: Optional[SessionUser] = Depends(get_session_user),
) -> RequestContext:
    return RequestContext(
        db=db,
        identity=identity,
        method=request.method,
        path=request.url.path,
        path_params=dict(request.path_params),
        query_params=dict(request.query_params),
        correlation_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        client_ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
