"""
Automatic audit logging for route handlers.

@audited wraps the same kind of handler PermissionChecker does and is placed
outside it, so a denied attempt by a known user is still recorded (status
"failed"). Requests without a session identity are not recorded.
"""
import functools
import time
from typing import Any, Callable, Dict, Optional, Union

from fastapi import HTTPException

from app.config import settings
from app.core.errors import AppError
from app.core.logging_config import get_logger
from app.models.audit_log import AuditAction, AuditStatus, EntityType
from app.services.audit_service import audit_service
from common_utils.auth.context import RequestContext
from common_utils.auth.permission_checker import find_context

logger = get_logger(__name__)

METHOD_ACTIONS = {
    "GET": AuditAction.READ,
    "POST": AuditAction.CREATE,
    "PUT": AuditAction.UPDATE,
    "PATCH": AuditAction.UPDATE,
    "DELETE": AuditAction.DELETE,
}


def action_for_method(method: str) -> AuditAction:
    return METHOD_ACTIONS.get(method.upper(), AuditAction.READ)


def entity_type_from_path(path: str) -> str:
    """
    /api/v1/roles/abc -> role, /api/v1/audit-logs -> audit-log
    """
    if path.startswith(settings.API_PREFIX):
        path = path[len(settings.API_PREFIX):]
    segments = [s for s in path.split("/") if s]
    if not segments:
        return "unknown"
    segment = segments[0]
    if segment.endswith("ies"):
        return segment[:-3] + "y"
    if segment.endswith("s"):
        return segment[:-1]
    return segment


def entity_id_from_context(ctx: RequestContext) -> Optional[str]:
    if "id" in ctx.path_params:
        return str(ctx.path_params["id"])
    # Innermost *_id wins: /users/{user_id}/roles/{role_id} -> role_id
    id_params = [key for key in ctx.path_params if key.endswith("_id")]
    if id_params:
        return str(ctx.path_params[id_params[-1]])
    if ctx.query_params.get("id"):
        return str(ctx.query_params["id"])
    return None


def _status_for(error: BaseException) -> AuditStatus:
    if isinstance(error, AppError) and error.status_code < 500:
        return AuditStatus.FAILED
    if isinstance(error, HTTPException) and 400 <= error.status_code < 500:
        return AuditStatus.FAILED
    return AuditStatus.ERROR


def _response_status(error: Optional[BaseException], success_status: int) -> int:
    if error is None:
        return success_status
    if isinstance(error, (AppError, HTTPException)):
        return error.status_code
    return 500


def audited(
    entity_type: Union[EntityType, str, None] = None,
    action: Union[AuditAction, str, None] = None,
    skip: Optional[Callable[[RequestContext], bool]] = None,
    get_entity_id: Optional[Callable[[RequestContext, Any], Optional[Any]]] = None,
    get_metadata: Optional[Callable[[RequestContext, Any], Optional[Dict[str, Any]]]] = None,
    get_before_state: Optional[Callable[[RequestContext], Any]] = None,
    get_after_state: Optional[Callable[[RequestContext, Any], Any]] = None,
    success_status: int = 200,
):
    """
    Record one audit entry per invocation of the wrapped handler.

    Args:
        entity_type: defaults to the first path segment after the API prefix
        action: defaults to the HTTP method mapping (GET -> READ, ...)
        skip: predicate on the context; when true nothing is recorded
        get_entity_id: (ctx, result) -> id; result is None when the handler raised
        get_metadata: (ctx, result) -> extra metadata merged into the entry
        get_before_state: (ctx) -> snapshot taken before the handler runs
        get_after_state: (ctx, result) -> snapshot after a successful handler;
            together they fill the entry's changes as {"before", "after"}
        success_status: response status recorded when the handler returns
    """
    def decorator(handler: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(handler)
        async def wrapper(*args, **kwargs):
            ctx = find_context(args, kwargs)
            before = _snapshot_before(ctx)
            started = time.perf_counter()
            result = None
            error: Optional[BaseException] = None
            try:
                result = await handler(*args, **kwargs)
                return result
            except BaseException as e:
                error = e
                raise
            finally:
                await _record(ctx, result, error, started, before)

        def _snapshot_before(ctx: RequestContext) -> Any:
            if get_before_state is None or ctx.identity is None:
                return None
            try:
                return get_before_state(ctx)
            except Exception as e:
                logger.warning(f"Before-state for {ctx.method} {ctx.path} unavailable: {str(e)}")
                return None

        async def _record(
            ctx: RequestContext,
            result: Any,
            error: Optional[BaseException],
            started: float,
            before: Any,
        ) -> None:
            if ctx.identity is None:
                return
            try:
                if skip is not None and skip(ctx):
                    return
                entity_id = get_entity_id(ctx, result) if get_entity_id else None
                if entity_id is None:
                    entity_id = entity_id_from_context(ctx)

                metadata: Dict[str, Any] = {
                    "path": ctx.path,
                    "method": ctx.method,
                    "response_status": _response_status(error, success_status),
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "correlation_id": ctx.correlation_id,
                }
                if get_metadata:
                    metadata.update(get_metadata(ctx, result) or {})

                error_message = None
                if error is not None:
                    error_message = error.message if isinstance(error, AppError) else str(error)

                changes = None
                after = get_after_state(ctx, result) if get_after_state and error is None else None
                if before is not None or after is not None:
                    changes = {"before": before, "after": after}

                await audit_service.dispatch(
                    action=action or action_for_method(ctx.method),
                    entity_type=entity_type or entity_type_from_path(ctx.path),
                    entity_id=entity_id,
                    user_id=ctx.identity.user_id,
                    user_email=ctx.identity.email,
                    user_ip_address=ctx.client_ip,
                    user_agent=ctx.user_agent,
                    status=AuditStatus.SUCCESS if error is None else _status_for(error),
                    error_message=error_message,
                    metadata=metadata,
                    changes=changes,
                )
            except Exception as e:
                # A broken getter must not change the handler's outcome
                logger.error(f"Audit entry for {ctx.method} {ctx.path} dropped: {str(e)}", exc_info=True)

        return wrapper

    return decorator
