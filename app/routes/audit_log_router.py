from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.permissions import PERMISSIONS
from app.crud.audit_log import audit_log
from app.schemas.audit_log import AuditLogFilter, AuditLogPage, AuditLogResponse
from app.utils.response_utils import ResponseWrapper
from common_utils.auth.context import RequestContext, get_request_context
from common_utils.auth.permission_checker import with_permission

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


# Reading the trail is not itself audited
@router.get("/")
@with_permission(PERMISSIONS.VIEW_AUDIT_LOGS)
async def get_audit_logs(
    user_id: Optional[str] = Query(None, description="Actor user id"),
    entity_type: Optional[str] = Query(None, description="user, role, file, ..."),
    entity_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None, description="CREATE, UPDATE, ASSIGN_ROLE, ..."),
    status: Optional[str] = Query(None, description="success, failed or error"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=200, description="Items per page"),
    offset: int = Query(0, ge=0),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Audit log entries, newest first
    """
    filters = AuditLogFilter(
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action.upper() if action else None,
        status=status,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    records, total = audit_log.get_filtered(ctx.db, filters=filters)

    return ResponseWrapper.success(
        data=AuditLogPage(
            logs=[AuditLogResponse.model_validate(r) for r in records],
            total=total,
            has_more=offset + len(records) < total,
        ).model_dump(),
        message="Audit logs fetched successfully"
    )
