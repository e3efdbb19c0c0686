import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, func, Table
from sqlalchemy.orm import relationship
from app.database.session import Base

# Association table for Role-Permission many-to-many relationship
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", String(36), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", String(36), ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(255))
    is_system = Column(Boolean, default=False, nullable=False)  # system roles can't be renamed or deleted
    grants_all_permissions = Column(Boolean, default=False, nullable=False)  # wildcard: every catalogued permission

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    permissions = relationship(
        "Permission",
        secondary=role_permissions,
        back_populates="roles",
        passive_deletes=True,
        order_by="Permission.name",
    )
    user_roles = relationship(
        "UserRole",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def permission_names(self):
        return sorted(p.name for p in self.permissions)

    def __repr__(self):
        return f"<Role {self.name}>"
