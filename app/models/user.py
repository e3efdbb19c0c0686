import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, String, DateTime, Enum, func
from sqlalchemy.orm import relationship
from app.database.session import Base


class UserTypeEnum(str, PyEnum):
    CUSTOMER = "customer"
    EMPLOYEE = "employee"


class UserStatusEnum(str, PyEnum):
    ACTIVE = "active"
    INVITED = "invited"
    DISABLED = "disabled"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(150))
    role = Column(Enum(UserTypeEnum, native_enum=False, length=20), nullable=False, default=UserTypeEnum.CUSTOMER)
    company_id = Column(String(36), nullable=True, index=True)
    status = Column(Enum(UserStatusEnum, native_enum=False, length=20), nullable=False, default=UserStatusEnum.ACTIVE)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    user_roles = relationship(
        "UserRole",
        foreign_keys="UserRole.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
