from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from app.models.iam import Role, UserRole
from app.models.user import User
from app.schemas.iam import UserRoleCreate
from app.crud.base import CRUDBase
from app.core.errors import ConflictError, NotFoundError
from app.core.logging_config import get_logger
from app.utils.response_utils import is_unique_violation

logger = get_logger(__name__)


class CRUDUserRole(CRUDBase[UserRole, UserRoleCreate, None]):
    def get_assignment(self, db: Session, *, user_id: str, role_id: str) -> Optional[UserRole]:
        return db.query(UserRole).filter(
            UserRole.user_id == user_id,
            UserRole.role_id == role_id
        ).first()

    def assign_role(
        self,
        db: Session,
        *,
        user_id: str,
        role_id: str,
        assigned_by: Optional[str] = None,
    ) -> UserRole:
        if not db.query(User.id).filter(User.id == user_id).first():
            raise NotFoundError(f"User {user_id} not found", error_code="USER_NOT_FOUND")
        if not db.query(Role.id).filter(Role.id == role_id).first():
            raise NotFoundError(f"Role {role_id} not found", error_code="ROLE_NOT_FOUND")
        if self.get_assignment(db, user_id=user_id, role_id=role_id):
            raise ConflictError("User already has this role", error_code="ROLE_ALREADY_ASSIGNED")

        db_obj = UserRole(user_id=user_id, role_id=role_id, assigned_by=assigned_by)
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent assignment of the same pair
            db.rollback()
            if is_unique_violation(e):
                raise ConflictError("User already has this role", error_code="ROLE_ALREADY_ASSIGNED")
            raise
        db.refresh(db_obj)
        logger.info(f"Role {role_id} assigned to user {user_id} by {assigned_by or 'system'}")
        return db_obj

    def revoke_role(self, db: Session, *, user_id: str, role_id: str) -> None:
        db_obj = self.get_assignment(db, user_id=user_id, role_id=role_id)
        if not db_obj:
            raise NotFoundError("Role assignment not found", error_code="ASSIGNMENT_NOT_FOUND")
        db.delete(db_obj)
        db.commit()
        logger.info(f"Role {role_id} revoked from user {user_id}")

    def list_roles_for_user(self, db: Session, *, user_id: str) -> List[Role]:
        return (
            db.query(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .filter(UserRole.user_id == user_id)
            .order_by(Role.name)
            .all()
        )

    def list_assignments_for_user(self, db: Session, *, user_id: str) -> List[UserRole]:
        return (
            db.query(UserRole)
            .filter(UserRole.user_id == user_id)
            .order_by(UserRole.assigned_at)
            .all()
        )


user_role_crud = CRUDUserRole(UserRole)
