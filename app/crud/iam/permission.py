from typing import List, Optional, Sequence
from sqlalchemy.orm import Session, selectinload
from app.models.iam import Permission
from app.crud.base import CRUDBase
from app.core.errors import ValidationError
from app.core.permissions import validate_permission_names


class CRUDPermission(CRUDBase[Permission, None, None]):
    def get_by_name(self, db: Session, *, name: str) -> Optional[Permission]:
        return db.query(Permission).filter(Permission.name == name).first()

    def get_by_names(self, db: Session, *, names: Sequence[str]) -> List[Permission]:
        """
        Load the rows for the given catalog names. Unknown names raise
        ValidationError before the database is touched.
        """
        names = validate_permission_names(names)
        if not names:
            return []
        rows = db.query(Permission).filter(Permission.name.in_(names)).all()
        by_name = {row.name: row for row in rows}
        # A catalog name that was never seeded is as unknown as a typo
        missing = [name for name in names if name not in by_name]
        if missing:
            raise ValidationError(
                "Unknown permission names",
                error_code="UNKNOWN_PERMISSION",
                details={"field": "permission_names", "unknown": missing},
            )
        return [by_name[name] for name in names]

    def list_with_roles(self, db: Session) -> List[Permission]:
        return (
            db.query(Permission)
            .options(selectinload(Permission.roles))
            .order_by(Permission.category, Permission.name)
            .all()
        )


permission_crud = CRUDPermission(Permission)
