from app.crud.iam.permission import permission_crud
from app.crud.iam.role import role_crud
from app.crud.iam.user_role import user_role_crud
