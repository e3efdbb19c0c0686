from fastapi import APIRouter, Depends

from app.core.permissions import PERMISSIONS
from app.crud.iam import permission_crud
from app.schemas.iam import PermissionOverviewResponse, PermissionWithRolesResponse
from app.utils.response_utils import ResponseWrapper
from common_utils.auth.context import RequestContext, get_request_context
from common_utils.auth.permission_checker import with_permission

router = APIRouter(
    prefix="/permissions",
    tags=["IAM Permissions"]
)


@router.get("/")
@with_permission(PERMISSIONS.VIEW_PERMISSIONS)
async def get_permissions(ctx: RequestContext = Depends(get_request_context)):
    """
    The permission catalog as stored, each entry with the roles granting it,
    both as a flat list and grouped by category.
    """
    flat = [PermissionWithRolesResponse.model_validate(p) for p in permission_crud.list_with_roles(ctx.db)]
    categorized = {}
    for item in flat:
        categorized.setdefault(item.category, []).append(item)

    return ResponseWrapper.success(
        data=PermissionOverviewResponse(permissions=flat, categorized=categorized).model_dump(),
        message="Permissions fetched successfully"
    )
