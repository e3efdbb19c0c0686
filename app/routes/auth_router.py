from fastapi import APIRouter, Depends

from app.core.permissions import PERMISSION_REGISTRY
from app.models.audit_log import AuditAction
from app.schemas.iam import EffectivePermissionsResponse
from app.services import permission_service
from app.services.audit_service import audit_service
from app.utils.response_utils import ResponseWrapper
from common_utils.auth.context import RequestContext, get_request_context
from common_utils.auth.permission_checker import with_auth

router = APIRouter(
    prefix="/auth",
    tags=["Auth"]
)


@router.get("/permissions")
@with_auth()
async def get_my_permissions(ctx: RequestContext = Depends(get_request_context)):
    """
    Effective permissions of the caller for the UI permission cache.
    Every catalog name is present, mapped to whether it is granted.
    Returned bare, without the response envelope.
    """
    granted = ctx.permissions or set()
    return EffectivePermissionsResponse(
        permissions={p.name: p.name in granted for p in PERMISSION_REGISTRY},
        roles=permission_service.get_user_roles_summary(ctx.db, ctx.user_id),
    ).model_dump()


@router.get("/me")
@with_auth()
async def get_current_session(ctx: RequestContext = Depends(get_request_context)):
    identity = ctx.identity
    return ResponseWrapper.success(
        data={
            "user_id": identity.user_id,
            "email": identity.email,
            "role": identity.role,
            "company_id": identity.company_id,
            "status": identity.status,
            "is_admin": permission_service.is_admin(ctx.db, identity.user_id),
            "roles": permission_service.get_user_roles_summary(ctx.db, identity.user_id),
            "permissions": sorted(ctx.permissions or []),
        },
        message="Session fetched successfully"
    )


@router.post("/logout")
@with_auth()
async def logout(ctx: RequestContext = Depends(get_request_context)):
    """Token revocation belongs to the session provider; this records the event."""
    await audit_service.dispatch_auth_event(
        action=AuditAction.LOGOUT,
        user_email=ctx.identity.email,
        user_id=ctx.user_id,
        user_ip_address=ctx.client_ip,
        user_agent=ctx.user_agent,
    )
    return ResponseWrapper.success(message="Logged out")
