"""
Authorization gate tests, calling decorated handlers directly.
"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from app.core.errors import ForbiddenError, UnauthenticatedError
from app.core.permissions import PERMISSIONS
from app.services import permission_service
from common_utils.auth.context import RequestContext, SessionUser
from common_utils.auth.permission_checker import (
    PermissionChecker,
    PermissionMode,
    with_all_permissions,
    with_any_permission,
    with_auth,
    with_permission,
)


def make_ctx(db, user=None, **kwargs) -> RequestContext:
    identity = SessionUser(user_id=user.id, email=user.email) if user else None
    return RequestContext(db=db, identity=identity, **kwargs)


def run(coro):
    return asyncio.run(coro)


class TestUnauthenticated:

    def test_no_session_is_rejected_before_resolver_and_handler(self, test_db):
        handler = AsyncMock(return_value="ok")
        protected = with_permission(PERMISSIONS.VIEW_TASKS)(handler)

        with patch.object(permission_service, "get_user_permissions") as resolver:
            with pytest.raises(UnauthenticatedError):
                run(protected(make_ctx(test_db)))

        resolver.assert_not_called()
        handler.assert_not_called()

    def test_with_auth_needs_only_a_session(self, test_db, plain_user):
        handler = AsyncMock(return_value="ok")
        assert run(with_auth()(handler)(make_ctx(test_db, plain_user))) == "ok"

        with pytest.raises(UnauthenticatedError):
            run(with_auth()(handler)(make_ctx(test_db)))


class TestForbidden:

    def test_missing_permission_never_calls_handler(self, test_db, plain_user):
        handler = AsyncMock(return_value="ok")
        protected = with_permission(PERMISSIONS.DELETE_ROLES)(handler)

        with pytest.raises(ForbiddenError) as exc_info:
            run(protected(make_ctx(test_db, plain_user)))

        handler.assert_not_called()
        assert PERMISSIONS.DELETE_ROLES not in exc_info.value.message

    def test_unknown_permission_denies_even_admin(self, test_db, admin_user):
        handler = AsyncMock(return_value="ok")
        with pytest.raises(ForbiddenError):
            run(with_permission("not_a_permission")(handler)(make_ctx(test_db, admin_user)))
        handler.assert_not_called()


class TestModes:

    @pytest.fixture
    def viewer(self, make_user, make_role, grant):
        user = make_user()
        grant(user, make_role("Viewer", [PERMISSIONS.VIEW_TASKS, PERMISSIONS.VIEW_FILES]))
        return user

    def test_any_mode(self, test_db, viewer):
        handler = AsyncMock(return_value="ok")
        protected = with_any_permission([PERMISSIONS.DELETE_TASKS, PERMISSIONS.VIEW_FILES])(handler)
        assert run(protected(make_ctx(test_db, viewer))) == "ok"

    def test_all_mode(self, test_db, viewer):
        handler = AsyncMock(return_value="ok")
        ok = with_all_permissions([PERMISSIONS.VIEW_TASKS, PERMISSIONS.VIEW_FILES])(handler)
        denied = with_all_permissions([PERMISSIONS.VIEW_TASKS, PERMISSIONS.DELETE_TASKS])(handler)

        assert run(ok(make_ctx(test_db, viewer))) == "ok"
        with pytest.raises(ForbiddenError):
            run(denied(make_ctx(test_db, viewer)))
        assert handler.await_count == 1

    @pytest.mark.parametrize("checker", [
        with_any_permission([]),
        with_all_permissions([]),
        PermissionChecker(),
    ])
    def test_empty_requirement_fails_closed(self, test_db, plain_user, admin_user, checker):
        handler = AsyncMock(return_value="ok")
        protected = checker(handler)

        for user in (plain_user, admin_user):
            with pytest.raises(ForbiddenError):
                run(protected(make_ctx(test_db, user)))
        handler.assert_not_called()

    def test_auth_only_takes_no_requirements(self):
        assert with_auth().is_satisfied(set()) is True
        with pytest.raises(ValueError):
            PermissionChecker([PERMISSIONS.VIEW_TASKS], auth_only=True)

    def test_mode_accepts_plain_string(self):
        checker = PermissionChecker(PERMISSIONS.VIEW_TASKS, mode="all")
        assert checker.mode is PermissionMode.ALL
        assert checker.required_permissions == [PERMISSIONS.VIEW_TASKS]


class TestPassThrough:

    def test_result_and_context_reach_handler(self, test_db, admin_user):
        async def handler(ctx, value, *, suffix=""):
            return f"{value}{suffix}:{len(ctx.permissions)}"

        protected = with_permission(PERMISSIONS.VIEW_TASKS)(handler)
        ctx = make_ctx(test_db, admin_user)

        assert run(protected(ctx, "x", suffix="!")) == f"x!:{len(ctx.permissions)}"
        assert PERMISSIONS.VIEW_TASKS in ctx.permissions

    def test_handler_error_propagates_unchanged(self, test_db, admin_user):
        class Boom(Exception):
            pass

        async def handler(ctx):
            raise Boom("kaputt")

        with pytest.raises(Boom, match="kaputt"):
            run(with_permission(PERMISSIONS.VIEW_TASKS)(handler)(make_ctx(test_db, admin_user)))

    def test_context_found_in_kwargs(self, test_db, admin_user):
        async def handler(file_id, ctx=None):
            return file_id

        protected = with_permission(PERMISSIONS.APPROVE_FILES)(handler)
        assert run(protected(file_id="f-1", ctx=make_ctx(test_db, admin_user))) == "f-1"

    def test_missing_context_is_a_programming_error(self):
        protected = with_auth()(AsyncMock())
        with pytest.raises(TypeError):
            run(protected("no context here"))


class TestReviewerScenario:
    """Grant, allow, revoke, deny: the handler runs exactly once."""

    def test_revoked_reviewer_is_denied(self, test_db, make_user, make_role, grant):
        from app.crud.iam import user_role_crud

        reviewer_role = make_role("Reviewer", [PERMISSIONS.APPROVE_FILES])
        user = make_user()
        grant(user, reviewer_role)

        handler = AsyncMock(return_value={"approved": True})
        approve = with_permission(PERMISSIONS.APPROVE_FILES)(handler)

        assert run(approve(make_ctx(test_db, user))) == {"approved": True}

        user_role_crud.revoke_role(test_db, user_id=user.id, role_id=reviewer_role.id)

        with pytest.raises(ForbiddenError):
            run(approve(make_ctx(test_db, user)))
        assert handler.await_count == 1
