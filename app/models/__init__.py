# Import all models here so Base.metadata knows every table
from app.models.user import User, UserTypeEnum, UserStatusEnum
from app.models.file import File, FileStatusEnum
from app.models.audit_log import AuditLog, AuditAction, EntityType, AuditStatus

# IAM models
from app.models.iam.permission import Permission
from app.models.iam.role import Role, role_permissions
from app.models.iam.user_role import UserRole
