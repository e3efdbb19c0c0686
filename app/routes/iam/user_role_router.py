from fastapi import APIRouter, Depends, status

from app.core.permissions import PERMISSIONS
from app.crud.iam import user_role_crud
from app.models.audit_log import AuditAction, EntityType
from app.schemas.iam import UserRoleCreate, UserRoleResponse, AssignedRoleResponse
from app.services import permission_service
from app.utils.audit_helper import audited
from app.utils.response_utils import ResponseWrapper
from common_utils.auth.context import RequestContext, get_request_context
from common_utils.auth.permission_checker import with_permission

router = APIRouter(
    prefix="/users",
    tags=["IAM User Roles"]
)


def _user_id(ctx: RequestContext, result) -> str:
    return ctx.path_params.get("user_id")


@router.get("/{user_id}/roles")
@with_permission(PERMISSIONS.VIEW_USERS)
async def get_roles_for_user(
    user_id: str,
    ctx: RequestContext = Depends(get_request_context),
):
    assignments = user_role_crud.list_assignments_for_user(ctx.db, user_id=user_id)
    data = [
        AssignedRoleResponse(
            id=assignment.role.id,
            name=assignment.role.name,
            description=assignment.role.description,
            is_system=assignment.role.is_system,
            assigned_at=assignment.assigned_at,
        ).model_dump()
        for assignment in sorted(assignments, key=lambda a: a.role.name)
    ]
    return ResponseWrapper.success(data=data, message="User roles fetched successfully")


@router.get("/{user_id}/permissions")
@with_permission(PERMISSIONS.VIEW_USERS)
async def get_permissions_for_user(
    user_id: str,
    ctx: RequestContext = Depends(get_request_context),
):
    """Effective permissions of another user, as the gate would resolve them"""
    return ResponseWrapper.success(
        data={
            "user_id": user_id,
            "permissions": sorted(permission_service.get_user_permissions(ctx.db, user_id)),
            "roles": permission_service.get_user_roles_summary(ctx.db, user_id),
            "is_admin": permission_service.is_admin(ctx.db, user_id),
        },
        message="User permissions fetched successfully"
    )


@router.post("/{user_id}/roles", status_code=status.HTTP_201_CREATED)
@audited(
    entity_type=EntityType.USER,
    action=AuditAction.ASSIGN_ROLE,
    get_entity_id=_user_id,
    get_metadata=lambda ctx, result: {"role_id": result["data"]["role_id"]} if result else {},
    success_status=status.HTTP_201_CREATED,
)
@with_permission(PERMISSIONS.MANAGE_USER_ROLES)
async def assign_role_to_user(
    user_id: str,
    payload: UserRoleCreate,
    ctx: RequestContext = Depends(get_request_context),
):
    assignment = user_role_crud.assign_role(
        ctx.db,
        user_id=user_id,
        role_id=payload.role_id,
        assigned_by=ctx.user_id,
    )
    return ResponseWrapper.created(
        data=UserRoleResponse.model_validate(assignment).model_dump(),
        message="Role assigned successfully"
    )


@router.delete("/{user_id}/roles/{role_id}")
@audited(
    entity_type=EntityType.USER,
    action=AuditAction.REMOVE_ROLE,
    get_entity_id=_user_id,
    get_metadata=lambda ctx, result: {"role_id": ctx.path_params.get("role_id")},
)
@with_permission(PERMISSIONS.MANAGE_USER_ROLES)
async def remove_role_from_user(
    user_id: str,
    role_id: str,
    ctx: RequestContext = Depends(get_request_context),
):
    user_role_crud.revoke_role(ctx.db, user_id=user_id, role_id=role_id)
    return ResponseWrapper.deleted(message="Role removed successfully")
