from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Optional, List, Tuple
from app.models.audit_log import AuditLog
from app.schemas.audit_log import AuditLogCreate, AuditLogFilter
from app.core.logging_config import get_logger

logger = get_logger(__name__)


class CRUDAuditLog:
    """Append-only: there is deliberately no update or delete here."""

    def create(self, db: Session, *, audit_log_data: AuditLogCreate) -> AuditLog:
        """
        Create a new audit log entry
        """
        db_audit_log = AuditLog(**audit_log_data.model_dump())
        db.add(db_audit_log)
        db.commit()
        db.refresh(db_audit_log)
        return db_audit_log

    def get_by_id(self, db: Session, *, audit_id: str) -> Optional[AuditLog]:
        return db.query(AuditLog).filter(AuditLog.id == audit_id).first()

    def get_filtered(
        self,
        db: Session,
        *,
        filters: AuditLogFilter
    ) -> Tuple[List[AuditLog], int]:
        """
        Get audit logs with filters and pagination, newest first
        Returns tuple of (records, total_count)
        """
        query = db.query(AuditLog)

        conditions = []

        if filters.user_id:
            conditions.append(AuditLog.user_id == filters.user_id)

        if filters.entity_type:
            conditions.append(AuditLog.entity_type == filters.entity_type)

        if filters.entity_id:
            conditions.append(AuditLog.entity_id == filters.entity_id)

        if filters.action:
            conditions.append(AuditLog.action == filters.action)

        if filters.status:
            conditions.append(AuditLog.status == filters.status)

        if filters.start_date:
            conditions.append(AuditLog.created_at >= filters.start_date)

        if filters.end_date:
            conditions.append(AuditLog.created_at <= filters.end_date)

        if conditions:
            query = query.filter(and_(*conditions))

        total_count = query.count()

        records = (
            query
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )

        return records, total_count


audit_log = CRUDAuditLog()
