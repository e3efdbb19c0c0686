from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func
from app.models.iam import Role, UserRole
from app.schemas.iam import RoleCreate, RoleUpdate
from app.crud.base import CRUDBase
from app.crud.iam.permission import permission_crud
from app.core.errors import ConflictError, NotFoundError
from app.core.logging_config import get_logger
from app.utils.response_utils import is_unique_violation

logger = get_logger(__name__)


class CRUDRole(CRUDBase[Role, RoleCreate, RoleUpdate]):
    """
    Role store. Mutations are audited by the route layer, not here.
    """

    def get_by_name(self, db: Session, *, name: str) -> Optional[Role]:
        return db.query(Role).filter(Role.name == name).first()

    def get_role(self, db: Session, *, role_id: str) -> Role:
        role = (
            db.query(Role)
            .options(selectinload(Role.permissions))
            .filter(Role.id == role_id)
            .first()
        )
        if not role:
            raise NotFoundError(f"Role {role_id} not found", error_code="ROLE_NOT_FOUND")
        return role

    def list_roles(self, db: Session) -> List[Tuple[Role, int]]:
        """Every role ordered by name, paired with the number of holders"""
        counts = dict(
            db.query(UserRole.role_id, func.count(UserRole.id))
            .group_by(UserRole.role_id)
            .all()
        )
        roles = (
            db.query(Role)
            .options(selectinload(Role.permissions))
            .order_by(Role.name)
            .all()
        )
        return [(role, counts.get(role.id, 0)) for role in roles]

    def count_users(self, db: Session, *, role_id: str) -> int:
        return db.query(func.count(UserRole.id)).filter(UserRole.role_id == role_id).scalar() or 0

    def create_role(
        self,
        db: Session,
        *,
        obj_in: RoleCreate,
        is_system: bool = False,
        grants_all_permissions: bool = False,
    ) -> Role:
        permissions = permission_crud.get_by_names(db, names=obj_in.permission_names)

        if self.get_by_name(db, name=obj_in.name):
            raise ConflictError(f"Role '{obj_in.name}' already exists", error_code="ROLE_EXISTS")

        db_obj = Role(
            name=obj_in.name,
            description=obj_in.description,
            is_system=is_system,
            grants_all_permissions=grants_all_permissions,
        )
        db_obj.permissions = permissions
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise ConflictError(f"Role '{obj_in.name}' already exists", error_code="ROLE_EXISTS")
            raise
        db.refresh(db_obj)
        logger.info(f"Role created: {db_obj.name} ({db_obj.id}) with {len(permissions)} permissions")
        return db_obj

    def update_role(self, db: Session, *, role_id: str, obj_in: RoleUpdate) -> Role:
        """
        Apply a partial update. When permission_names is present the role's
        grants are replaced wholesale in the same transaction as the other
        field changes.
        """
        db_obj = self.get_role(db, role_id=role_id)
        update_data = obj_in.model_dump(exclude_unset=True)
        permission_names = update_data.pop("permission_names", None)

        if update_data.get("name") is None:
            update_data.pop("name", None)
        new_name = update_data.get("name")
        if new_name is not None and new_name != db_obj.name:
            if db_obj.is_system:
                raise ConflictError("cannot rename system role", error_code="SYSTEM_ROLE_IMMUTABLE")
            if self.get_by_name(db, name=new_name):
                raise ConflictError(f"Role '{new_name}' already exists", error_code="ROLE_EXISTS")

        permissions = None
        if permission_names is not None:
            permissions = permission_crud.get_by_names(db, names=permission_names)

        self.update_fields(db_obj, update_data)
        if permissions is not None:
            db_obj.permissions = permissions

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise ConflictError(f"Role '{new_name}' already exists", error_code="ROLE_EXISTS")
            raise
        db.refresh(db_obj)
        logger.info(f"Role updated: {db_obj.name} ({db_obj.id})")
        return db_obj

    def delete_role(self, db: Session, *, role_id: str) -> str:
        db_obj = self.get(db, role_id)
        if not db_obj:
            raise NotFoundError(f"Role {role_id} not found", error_code="ROLE_NOT_FOUND")
        if db_obj.is_system:
            raise ConflictError("cannot delete system role", error_code="SYSTEM_ROLE_IMMUTABLE")

        name = db_obj.name
        db.delete(db_obj)
        db.commit()
        logger.info(f"Role deleted: {name} ({role_id})")
        return name


role_crud = CRUDRole(Role)
