from app.schemas.iam.permission import (
    PermissionResponse, PermissionWithRolesResponse, PermissionOverviewResponse,
    EffectivePermissionsResponse, RoleRef
)
from app.schemas.iam.role import (
    RoleBase, RoleCreate, RoleUpdate, RoleResponse
)
from app.schemas.iam.user_role import (
    UserRoleCreate, UserRoleResponse, AssignedRoleResponse
)
