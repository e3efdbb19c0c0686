import uuid

from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from app.database.session import Base


class Permission(Base):
    __tablename__ = "permissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(String(255))
    category = Column(String(50), nullable=False, index=True)  # navigation, tasks, files, ...
    created_at = Column(DateTime, default=func.now(), nullable=False)

    roles = relationship(
        "Role",
        secondary="role_permissions",
        back_populates="permissions",
        passive_deletes=True,
        order_by="Role.name",
    )

    def __repr__(self):
        return f"<Permission {self.name}>"
