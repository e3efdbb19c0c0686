import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, String, DateTime, JSON, Text, func, Index
from app.database.session import Base


class AuditAction(str, PyEnum):
    # Auth
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    LOGIN_FAILED = "LOGIN_FAILED"

    # CRUD
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    # Special actions
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    SUBMIT = "SUBMIT"
    ASSIGN = "ASSIGN"
    UNASSIGN = "UNASSIGN"
    DOWNLOAD = "DOWNLOAD"
    UPLOAD = "UPLOAD"
    EXPORT = "EXPORT"

    # Permissions
    GRANT_PERMISSION = "GRANT_PERMISSION"
    REVOKE_PERMISSION = "REVOKE_PERMISSION"
    ASSIGN_ROLE = "ASSIGN_ROLE"
    REMOVE_ROLE = "REMOVE_ROLE"


class EntityType(str, PyEnum):
    USER = "user"
    TASK = "task"
    FILE = "file"
    COMPANY = "company"
    ROLE = "role"
    PERMISSION = "permission"
    COMMENT = "comment"
    NOTIFICATION = "notification"


class AuditStatus(str, PyEnum):
    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"


class AuditLog(Base):
    """Append-only. Nothing in the application updates or deletes these rows."""

    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(100), nullable=True)

    # Actor. No foreign key: entries outlive the user they describe.
    user_id = Column(String(36), nullable=True, index=True)
    user_email = Column(String(255), nullable=False)
    user_ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=AuditStatus.SUCCESS.value)
    error_message = Column(Text, nullable=True)
    # "metadata" is reserved on declarative models, so the attribute is named details
    details = Column("metadata", JSON, nullable=True)
    changes = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False, index=True)

    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_user_created", "user_id", "created_at"),
    )
