from app.routes.auth_router import router as auth_router
from app.routes.file_router import router as file_router
from app.routes.audit_log_router import router as audit_log_router

# IAM
from app.routes.iam.permission_router import router as permission_router
from app.routes.iam.role_router import router as role_router
from app.routes.iam.user_role_router import router as user_role_router
