from fastapi import APIRouter, Depends, status

from app.core.errors import ForbiddenError
from app.core.permissions import PERMISSIONS
from app.crud.iam import role_crud
from app.models.audit_log import AuditAction, EntityType
from app.schemas.iam import RoleCreate, RoleUpdate, RoleResponse
from app.utils.audit_helper import audited
from app.utils.response_utils import ResponseWrapper
from common_utils.auth.context import RequestContext, get_request_context
from common_utils.auth.permission_checker import with_permission

router = APIRouter(
    prefix="/roles",
    tags=["IAM Roles"]
)


def _role_response(role, user_count=None) -> dict:
    data = RoleResponse.model_validate(role)
    if user_count is not None:
        data.user_count = user_count
    return data.model_dump()


def _role_name(ctx: RequestContext, result) -> dict:
    return {"role_name": result["data"]["name"]} if result else {}


def _role_state(role) -> dict:
    return {
        "name": role.name,
        "description": role.description,
        "permission_names": sorted(p.name for p in role.permissions),
    }


def _state_before(ctx: RequestContext):
    role = role_crud.get(ctx.db, ctx.path_params.get("role_id"))
    return _role_state(role) if role else None


def _state_after(ctx: RequestContext, result):
    role = result["data"]
    return {
        "name": role["name"],
        "description": role["description"],
        "permission_names": sorted(role["permission_names"]),
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
@audited(
    entity_type=EntityType.ROLE,
    action=AuditAction.CREATE,
    get_entity_id=lambda ctx, result: result["data"]["id"] if result else None,
    get_metadata=_role_name,
    get_after_state=_state_after,
    success_status=status.HTTP_201_CREATED,
)
@with_permission(PERMISSIONS.CREATE_ROLES)
async def create_role(
    role: RoleCreate,
    ctx: RequestContext = Depends(get_request_context),
):
    """Create a custom role with the given permission set"""
    if role.permission_names and PERMISSIONS.ASSIGN_PERMISSIONS not in ctx.permissions:
        raise ForbiddenError()

    created_role = role_crud.create_role(ctx.db, obj_in=role)
    return ResponseWrapper.created(
        data=_role_response(created_role, user_count=0),
        message="Role created successfully"
    )


@router.get("/")
@with_permission(PERMISSIONS.VIEW_ROLES)
async def get_roles(ctx: RequestContext = Depends(get_request_context)):
    """All roles ordered by name, each with its permissions and holder count"""
    roles = role_crud.list_roles(ctx.db)
    return ResponseWrapper.success(
        data=[_role_response(role, user_count=count) for role, count in roles],
        message="Roles fetched successfully"
    )


@router.get("/{role_id}")
@with_permission(PERMISSIONS.VIEW_ROLES)
async def get_role(
    role_id: str,
    ctx: RequestContext = Depends(get_request_context),
):
    role = role_crud.get_role(ctx.db, role_id=role_id)
    return ResponseWrapper.success(
        data=_role_response(role, user_count=role_crud.count_users(ctx.db, role_id=role_id)),
        message="Role fetched successfully"
    )


@router.put("/{role_id}")
@audited(
    entity_type=EntityType.ROLE,
    action=AuditAction.UPDATE,
    get_metadata=_role_name,
    get_before_state=_state_before,
    get_after_state=_state_after,
)
@with_permission(PERMISSIONS.EDIT_ROLES)
async def update_role(
    role_id: str,
    role_update: RoleUpdate,
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Partial update. Sending permission_names replaces the role's whole
    permission set and additionally requires assign_permissions.
    """
    if role_update.permission_names is not None and PERMISSIONS.ASSIGN_PERMISSIONS not in ctx.permissions:
        raise ForbiddenError()

    role = role_crud.update_role(ctx.db, role_id=role_id, obj_in=role_update)
    return ResponseWrapper.updated(
        data=_role_response(role, user_count=role_crud.count_users(ctx.db, role_id=role_id)),
        message="Role updated successfully"
    )


@router.delete("/{role_id}")
@audited(
    entity_type=EntityType.ROLE,
    action=AuditAction.DELETE,
    get_metadata=_role_name,
    get_before_state=_state_before,
)
@with_permission(PERMISSIONS.DELETE_ROLES)
async def delete_role(
    role_id: str,
    ctx: RequestContext = Depends(get_request_context),
):
    """Delete a custom role. Its grants and assignments go with it."""
    name = role_crud.delete_role(ctx.db, role_id=role_id)
    return ResponseWrapper.success(
        data={"id": role_id, "name": name},
        message="Role deleted successfully"
    )
