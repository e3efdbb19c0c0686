from app.models.iam.permission import Permission
from app.models.iam.role import Role, role_permissions
from app.models.iam.user_role import UserRole
