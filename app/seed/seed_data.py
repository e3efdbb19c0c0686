"""
Idempotent seeding of the permission catalog and the default system roles.
"""
from typing import Dict

from sqlalchemy.orm import Session

from app.core.logging_config import get_logger
from app.core.permissions import DEFAULT_ROLES, PERMISSION_REGISTRY
from app.models.iam import Permission, Role

logger = get_logger(__name__)


def seed_permissions(db: Session) -> Dict[str, Permission]:
    """
    Insert catalog entries that are missing. Existing rows keep their id;
    description and category follow the catalog. Nothing is deleted.
    """
    existing = {p.name: p for p in db.query(Permission).all()}
    created = 0
    for definition in PERMISSION_REGISTRY:
        permission = existing.get(definition.name)
        if permission:
            permission.description = definition.description
            permission.category = definition.category
            continue
        permission = Permission(
            name=definition.name,
            description=definition.description,
            category=definition.category,
        )
        db.add(permission)
        existing[definition.name] = permission
        created += 1

    db.flush()
    logger.info(f"Permissions seeded: {created} created, {len(existing) - created} already present")
    return existing


def seed_roles(db: Session, permissions: Dict[str, Permission]) -> Dict[str, Role]:
    """
    Create default system roles that do not exist yet. A role that already
    exists keeps its grants, since admins may have edited them.
    """
    roles = {}
    for definition in DEFAULT_ROLES:
        role = db.query(Role).filter(Role.name == definition.name).first()
        if role:
            role.is_system = True
            role.grants_all_permissions = definition.grants_all_permissions
            logger.debug(f"Role {definition.name} already exists.")
        else:
            role = Role(
                name=definition.name,
                description=definition.description,
                is_system=True,
                grants_all_permissions=definition.grants_all_permissions,
            )
            role.permissions = [permissions[name] for name in definition.permissions]
            db.add(role)
            logger.info(f"Role {definition.name} created.")
        roles[definition.name] = role

    db.flush()
    return roles


def seed_iam(db: Session) -> Dict[str, Role]:
    """
    Seed IAM: permissions then system roles, in one transaction.
    """
    try:
        permissions = seed_permissions(db)
        roles = seed_roles(db, permissions)
        db.commit()
    except Exception:
        db.rollback()
        logger.error("IAM seeding failed, rolled back", exc_info=True)
        raise
    logger.info("IAM seeding completed.")
    return roles
