"""
Authorization gate.

PermissionChecker wraps an async handler whose arguments include a
RequestContext. Before the handler runs it checks that a session identity is
present (401 otherwise, without touching the resolver) and that the user's
effective permissions satisfy the requirement (403 otherwise, without
touching the handler). The handler's result or error passes through as-is.

An empty requirement denies in every mode; only with_auth() admits any
authenticated user.
"""
import functools
from enum import Enum
from typing import Any, Callable, Iterable, List, Union

from app.core.errors import ForbiddenError, UnauthenticatedError
from app.core.logging_config import get_logger
from app.services import permission_service
from common_utils.auth.context import RequestContext

logger = get_logger(__name__)


class PermissionMode(str, Enum):
    ANY = "any"
    ALL = "all"


def find_context(args: tuple, kwargs: dict) -> RequestContext:
    for value in list(kwargs.values()) + list(args):
        if isinstance(value, RequestContext):
            return value
    raise TypeError("Protected handler was called without a RequestContext")


class PermissionChecker:
    def __init__(
        self,
        required_permissions: Union[str, Iterable[str], None] = None,
        mode: PermissionMode = PermissionMode.ANY,
        auth_only: bool = False,
    ):
        if isinstance(required_permissions, str):
            required_permissions = [required_permissions]
        self.required_permissions: List[str] = list(required_permissions or [])
        self.mode = PermissionMode(mode)
        self.auth_only = auth_only
        if auth_only and self.required_permissions:
            raise ValueError("auth_only checkers take no required permissions")

    def is_satisfied(self, effective: set) -> bool:
        if self.auth_only:
            return True
        if not self.required_permissions:
            return False
        if self.mode == PermissionMode.ALL:
            return all(p in effective for p in self.required_permissions)
        return any(p in effective for p in self.required_permissions)

    async def authorize(self, ctx: RequestContext) -> None:
        if ctx.identity is None:
            logger.info(f"Unauthenticated request to {ctx.method} {ctx.path}")
            raise UnauthenticatedError()

        effective = permission_service.get_user_permissions(ctx.db, ctx.identity.user_id)
        ctx.permissions = effective

        if not self.is_satisfied(effective):
            # Keep the required names out of the response body
            logger.warning(
                f"Permission denied for user {ctx.identity.user_id} on {ctx.method} {ctx.path}. "
                f"Required ({self.mode.value}): {self.required_permissions}"
            )
            raise ForbiddenError()

        logger.debug(f"Permission check passed for user {ctx.identity.user_id} on {ctx.path}")

    def __call__(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(handler)
        async def wrapper(*args, **kwargs):
            await self.authorize(find_context(args, kwargs))
            return await handler(*args, **kwargs)

        return wrapper


def with_permission(permission: str) -> PermissionChecker:
    return PermissionChecker([permission])


def with_any_permission(permissions: Iterable[str]) -> PermissionChecker:
    return PermissionChecker(permissions, mode=PermissionMode.ANY)


def with_all_permissions(permissions: Iterable[str]) -> PermissionChecker:
    return PermissionChecker(permissions, mode=PermissionMode.ALL)


def with_auth() -> PermissionChecker:
    """Authentication only, no specific permission."""
    return PermissionChecker(auth_only=True)
