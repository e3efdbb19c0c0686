import asyncio
from typing import Optional, Dict, Any, Set, Union, Callable

from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import AuditPersistenceError
from app.core.logging_config import get_logger
from app.crud.audit_log import audit_log
from app.database.session import SessionLocal
from app.models.audit_log import AuditAction, AuditStatus, EntityType
from app.schemas.audit_log import AuditLogCreate

logger = get_logger(__name__)

SENSITIVE_FIELDS = ("password", "token", "secret", "api_key")


class AuditService:
    """
    Service for audit logging across the application.

    Writes are best effort: every public entry point swallows persistence
    failures after logging them, so the business operation being audited
    never fails because of the audit trail. Each write uses its own session
    and is attempted exactly once.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory
        self._pending: Set[asyncio.Task] = set()

    @staticmethod
    def sanitize_data(data: Optional[Dict[str, Any]], fields_to_exclude: list = None) -> Optional[Dict[str, Any]]:
        """
        Sanitize data before logging (remove sensitive fields like passwords)
        """
        if data is None:
            return None
        if fields_to_exclude is None:
            fields_to_exclude = SENSITIVE_FIELDS

        sanitized = {}
        for key, value in data.items():
            if any(marker in str(key).lower() for marker in fields_to_exclude):
                sanitized[key] = "***REDACTED***"
            else:
                sanitized[key] = AuditService._sanitize_value(value, fields_to_exclude)
        return sanitized

    @staticmethod
    def _sanitize_value(value: Any, fields_to_exclude) -> Any:
        if isinstance(value, dict):
            return AuditService.sanitize_data(value, fields_to_exclude)
        if isinstance(value, (list, tuple)):
            return [AuditService._sanitize_value(item, fields_to_exclude) for item in value]
        return value

    def _persist(self, entry: AuditLogCreate) -> str:
        db = self.session_factory()
        try:
            record = audit_log.create(db=db, audit_log_data=entry)
            return record.id
        except Exception as e:
            db.rollback()
            raise AuditPersistenceError(str(e)) from e
        finally:
            db.close()

    def record_audit_log(
        self,
        *,
        action: Union[AuditAction, str],
        entity_type: Union[EntityType, str],
        entity_id: Optional[Any] = None,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
        user_ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        status: Union[AuditStatus, str] = AuditStatus.SUCCESS,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        changes: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """
        Persist one audit entry and return its id, or None if the write
        failed. Never raises.
        """
        try:
            entry = AuditLogCreate(
                action=_value(action),
                entity_type=_value(entity_type),
                entity_id=str(entity_id) if entity_id is not None else None,
                user_id=user_id,
                user_email=user_email or "anonymous",
                user_ip_address=user_ip_address,
                user_agent=user_agent,
                status=_value(status),
                error_message=error_message,
                details=self.sanitize_data(metadata),
                changes=self.sanitize_data(changes),
            )
            return self._persist(entry)
        except AuditPersistenceError as e:
            logger.error(f"Failed to persist audit log {_value(action)} {_value(entity_type)}: {e.message}")
        except Exception as e:
            logger.error(f"Failed to build audit log {_value(action)} {_value(entity_type)}: {str(e)}", exc_info=True)
        return None

    async def dispatch(self, **entry: Any) -> None:
        """
        Hand an entry to the recorder without holding up the caller.

        In background mode the write runs on a worker thread and is tracked
        until drain(); in inline mode the caller waits for it. Either way
        nothing is raised.
        """
        if settings.AUDIT_LOG_MODE == "inline":
            await asyncio.to_thread(self.record_audit_log, **entry)
            return

        try:
            task = asyncio.create_task(asyncio.to_thread(self.record_audit_log, **entry))
        except RuntimeError as e:
            logger.error(f"Audit dispatch dropped, no running loop: {str(e)}")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self, timeout: Optional[float] = None) -> int:
        """
        Wait for outstanding background writes. Returns how many were still
        unfinished when the timeout expired; those are abandoned.
        """
        if not self._pending:
            return 0
        timeout = settings.AUDIT_DRAIN_TIMEOUT_SECONDS if timeout is None else timeout
        _, unfinished = await asyncio.wait(set(self._pending), timeout=timeout)
        if unfinished:
            logger.warning(f"Abandoning {len(unfinished)} audit writes still in flight after {timeout}s")
        return len(unfinished)

    @staticmethod
    def _auth_entry(
        action: AuditAction,
        user_email: Optional[str],
        user_id: Optional[str] = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        error_message: Optional[str] = None,
        user_ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        return dict(
            action=action,
            entity_type=EntityType.USER,
            entity_id=user_id,
            user_id=user_id,
            user_email=user_email,
            user_ip_address=user_ip_address,
            user_agent=user_agent,
            status=status,
            error_message=error_message,
        )

    def audit_auth_event(self, **event: Any) -> Optional[str]:
        """
        Convenience method for LOGIN / LOGOUT / LOGIN_FAILED entries.
        Takes action, user_email and optionally user_id, status,
        error_message, user_ip_address, user_agent.
        """
        return self.record_audit_log(**self._auth_entry(**event))

    async def dispatch_auth_event(self, **event: Any) -> None:
        await self.dispatch(**self._auth_entry(**event))


def _value(item: Any) -> Any:
    return item.value if hasattr(item, "value") else item


audit_service = AuditService()
