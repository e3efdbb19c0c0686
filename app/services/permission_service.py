"""
Permission resolver.

Effective permissions are always computed from the current role
assignments; nothing here is cached, so a revocation is visible to the very
next check.
"""
from typing import Dict, Iterable, List, Set

from sqlalchemy.orm import Session

from app.models.iam import Permission, Role, UserRole, role_permissions
from app.core.logging_config import get_logger

logger = get_logger(__name__)


def get_user_permissions(db: Session, user_id: str) -> Set[str]:
    """
    Union of the permission names granted by every role the user holds.
    A role flagged grants_all_permissions contributes every catalogued
    permission row.
    """
    if not user_id:
        return set()

    granted = (
        db.query(Permission.name)
        .join(role_permissions, role_permissions.c.permission_id == Permission.id)
        .join(UserRole, UserRole.role_id == role_permissions.c.role_id)
        .filter(UserRole.user_id == user_id)
        .distinct()
        .all()
    )
    permissions = {name for (name,) in granted}

    if _holds_wildcard_role(db, user_id):
        permissions.update(name for (name,) in db.query(Permission.name).all())

    return permissions


def _holds_wildcard_role(db: Session, user_id: str) -> bool:
    return db.query(UserRole.id).join(Role, Role.id == UserRole.role_id).filter(
        UserRole.user_id == user_id,
        Role.grants_all_permissions.is_(True),
    ).first() is not None


def user_has_permission(db: Session, user_id: str, permission: str) -> bool:
    # Unknown names are simply absent from every set
    return permission in get_user_permissions(db, user_id)


def user_has_any_permission(db: Session, user_id: str, permissions: Iterable[str]) -> bool:
    permissions = list(permissions)
    if not permissions:
        return False
    effective = get_user_permissions(db, user_id)
    return any(p in effective for p in permissions)


def user_has_all_permissions(db: Session, user_id: str, permissions: Iterable[str]) -> bool:
    """Vacuously true for an empty requirement list."""
    permissions = list(permissions)
    if not permissions:
        return True
    effective = get_user_permissions(db, user_id)
    return all(p in effective for p in permissions)


def is_admin(db: Session, user_id: str) -> bool:
    """True iff the user holds a role carrying the all-permissions flag."""
    if not user_id:
        return False
    return _holds_wildcard_role(db, user_id)


def get_user_roles_summary(db: Session, user_id: str) -> List[Dict[str, str]]:
    rows = (
        db.query(Role.id, Role.name)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user_id)
        .order_by(Role.name)
        .all()
    )
    return [{"id": role_id, "name": name} for role_id, name in rows]
