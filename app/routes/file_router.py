from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import ConflictError, NotFoundError
from app.core.permissions import PERMISSIONS
from app.models.audit_log import AuditAction, EntityType
from app.models.file import File, FileStatusEnum
from app.schemas.file import FileRejectRequest, FileResponse
from app.utils.audit_helper import audited
from app.utils.response_utils import ResponseWrapper, handle_db_error
from app.core.logging_config import get_logger
from common_utils import utc_now
from common_utils.auth.context import RequestContext, get_request_context
from common_utils.auth.permission_checker import with_permission

logger = get_logger(__name__)

router = APIRouter(
    prefix="/files",
    tags=["Files"]
)


def _pending_file(ctx: RequestContext, file_id: str) -> File:
    file = ctx.db.query(File).filter(File.id == file_id).first()
    if not file:
        raise NotFoundError("File not found", error_code="FILE_NOT_FOUND")
    if file.status != FileStatusEnum.PENDING:
        raise ConflictError(
            f"File is already {file.status.value}",
            error_code="FILE_ALREADY_REVIEWED",
        )
    return file


def _commit(ctx: RequestContext, file: File) -> File:
    try:
        ctx.db.commit()
    except SQLAlchemyError as e:
        ctx.db.rollback()
        raise handle_db_error(e)
    ctx.db.refresh(file)
    return file


@router.post("/{file_id}/approve")
@audited(
    entity_type=EntityType.FILE,
    action=AuditAction.APPROVE,
    get_metadata=lambda ctx, result: {"file_name": result["data"]["name"]} if result else {},
)
@with_permission(PERMISSIONS.APPROVE_FILES)
async def approve_file(
    file_id: str,
    ctx: RequestContext = Depends(get_request_context),
):
    file = _pending_file(ctx, file_id)
    file.status = FileStatusEnum.APPROVED
    file.approved_by = ctx.user_id
    file.approved_at = utc_now()
    file = _commit(ctx, file)
    logger.info(f"File {file_id} approved by {ctx.user_id}")
    return ResponseWrapper.success(
        data=FileResponse.model_validate(file).model_dump(),
        message="File approved"
    )


@router.post("/{file_id}/reject")
@audited(
    entity_type=EntityType.FILE,
    action=AuditAction.REJECT,
    get_metadata=lambda ctx, result: (
        {"file_name": result["data"]["name"], "reason": result["data"]["rejection_reason"]} if result else {}
    ),
)
@with_permission(PERMISSIONS.REJECT_FILES)
async def reject_file(
    file_id: str,
    payload: Optional[FileRejectRequest] = Body(None),
    ctx: RequestContext = Depends(get_request_context),
):
    file = _pending_file(ctx, file_id)
    file.status = FileStatusEnum.REJECTED
    file.rejected_by = ctx.user_id
    file.rejected_at = utc_now()
    file.rejection_reason = payload.reason if payload else None
    file = _commit(ctx, file)
    logger.info(f"File {file_id} rejected by {ctx.user_id}")
    return ResponseWrapper.success(
        data=FileResponse.model_validate(file).model_dump(),
        message="File rejected"
    )
