#!/usr/bin/env python3
"""
Script to create (or promote) a portal administrator.

Creates the user if the email is unknown, seeds the IAM catalog if needed and
assigns the administrator role. Running it twice is harmless.

    python -m scripts.create_admin --email office@litex.at --name "Office"
"""
import argparse
import sys

from app.config import settings
from app.core.errors import ConflictError
from app.core.logging_config import setup_logging, get_logger
from app.crud.iam import role_crud, user_role_crud
from app.database.create_tables import create_tables
from app.database.session import SessionLocal
from app.models.user import User, UserTypeEnum, UserStatusEnum
from app.seed.seed_data import seed_iam
from common_utils.auth.utils import create_access_token

logger = get_logger(__name__)


def create_admin(db, email: str, name: str = None) -> User:
    seed_iam(db)

    user = db.query(User).filter(User.email == email).first()
    if not user:
        user = User(
            email=email,
            name=name or email.split("@")[0],
            role=UserTypeEnum.EMPLOYEE,
            status=UserStatusEnum.ACTIVE,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created user {email} ({user.id})")

    admin_role = role_crud.get_by_name(db, name=settings.ADMIN_ROLE_NAME)
    try:
        user_role_crud.assign_role(db, user_id=user.id, role_id=admin_role.id)
    except ConflictError:
        logger.info(f"{email} already holds {settings.ADMIN_ROLE_NAME}")
    return user


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a portal administrator")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default=None)
    parser.add_argument("--create-tables", action="store_true", help="create missing tables first")
    parser.add_argument("--print-token", action="store_true", help="print a bearer token for the admin")
    args = parser.parse_args(argv)

    setup_logging()
    if args.create_tables:
        create_tables()

    db = SessionLocal()
    try:
        user = create_admin(db, args.email, args.name)
        print(f"Administrator ready: {user.email} ({user.id})")
        if args.print_token:
            print(create_access_token(
                user_id=user.id,
                email=user.email,
                role=user.role.value,
                status=user.status.value,
            ))
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
