from app.crud.audit_log import audit_log
from app.crud.iam import permission_crud, role_crud, user_role_crud
