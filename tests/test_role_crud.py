"""
Role store and user-role assignment tests (crud layer, no HTTP).
"""
from unittest.mock import patch

import pytest

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.permissions import PERMISSIONS, DEFAULT_ROLES
from app.crud.iam import role_crud, user_role_crud
from app.models.iam import Role, UserRole, role_permissions
from app.schemas.iam import RoleCreate, RoleUpdate
from app.seed.seed_data import seed_iam


class TestCreateRole:

    def test_create_custom_role(self, test_db, seeded_roles):
        role = role_crud.create_role(
            test_db,
            obj_in=RoleCreate(
                name="Reviewer",
                description="Prüft Belege",
                permission_names=[PERMISSIONS.APPROVE_FILES, PERMISSIONS.REJECT_FILES],
            ),
        )

        assert role.id
        assert role.is_system is False
        assert role.grants_all_permissions is False
        assert role.permission_names == [PERMISSIONS.APPROVE_FILES, PERMISSIONS.REJECT_FILES]

    def test_duplicate_name_conflicts(self, test_db, make_role):
        make_role("Reviewer")
        with pytest.raises(ConflictError):
            make_role("Reviewer")

    def test_unknown_permission_rejected_and_nothing_persisted(self, test_db, seeded_roles):
        with pytest.raises(ValidationError) as exc_info:
            role_crud.create_role(
                test_db,
                obj_in=RoleCreate(name="Broken", permission_names=[PERMISSIONS.VIEW_TASKS, "fly"]),
            )

        assert exc_info.value.details["unknown"] == ["fly"]
        assert role_crud.get_by_name(test_db, name="Broken") is None

    def test_duplicate_permission_names_collapse(self, test_db, make_role):
        role = make_role("Twice", [PERMISSIONS.VIEW_TASKS, PERMISSIONS.VIEW_TASKS])
        assert role.permission_names == [PERMISSIONS.VIEW_TASKS]

    def test_name_taken_between_check_and_insert_conflicts(self, test_db, make_role):
        make_role("Reviewer")

        # The name check passes, the unique index catches it at commit
        with patch.object(role_crud, "get_by_name", return_value=None):
            with pytest.raises(ConflictError) as exc_info:
                role_crud.create_role(test_db, obj_in=RoleCreate(name="Reviewer"))

        assert exc_info.value.error_code == "ROLE_EXISTS"
        assert test_db.query(Role).filter(Role.name == "Reviewer").count() == 1


class TestUpdateRole:

    def test_full_replace_of_permissions(self, test_db, make_role):
        role = make_role("Reviewer", [PERMISSIONS.VIEW_FILES, PERMISSIONS.APPROVE_FILES])

        updated = role_crud.update_role(
            test_db,
            role_id=role.id,
            obj_in=RoleUpdate(permission_names=[PERMISSIONS.REJECT_FILES]),
        )

        assert updated.permission_names == [PERMISSIONS.REJECT_FILES]
        rows = test_db.query(role_permissions).filter(role_permissions.c.role_id == role.id).all()
        assert len(rows) == 1

    def test_empty_list_clears_permissions(self, test_db, make_role):
        role = make_role("Reviewer", [PERMISSIONS.VIEW_FILES])
        updated = role_crud.update_role(test_db, role_id=role.id, obj_in=RoleUpdate(permission_names=[]))
        assert updated.permission_names == []

    def test_omitted_permissions_are_kept(self, test_db, make_role):
        role = make_role("Reviewer", [PERMISSIONS.VIEW_FILES])
        updated = role_crud.update_role(test_db, role_id=role.id, obj_in=RoleUpdate(description="neu"))
        assert updated.description == "neu"
        assert updated.permission_names == [PERMISSIONS.VIEW_FILES]

    def test_invalid_permission_leaves_role_untouched(self, test_db, make_role):
        role = make_role("Reviewer", [PERMISSIONS.VIEW_FILES])

        with pytest.raises(ValidationError):
            role_crud.update_role(
                test_db,
                role_id=role.id,
                obj_in=RoleUpdate(name="Renamed", permission_names=["nope"]),
            )

        test_db.expire_all()
        reloaded = role_crud.get_role(test_db, role_id=role.id)
        assert reloaded.name == "Reviewer"
        assert reloaded.permission_names == [PERMISSIONS.VIEW_FILES]

    def test_rename_to_existing_name_conflicts(self, test_db, make_role):
        make_role("Alpha")
        beta = make_role("Beta")
        with pytest.raises(ConflictError):
            role_crud.update_role(test_db, role_id=beta.id, obj_in=RoleUpdate(name="Alpha"))

    def test_missing_role(self, test_db, seeded_roles):
        with pytest.raises(NotFoundError):
            role_crud.update_role(test_db, role_id="missing", obj_in=RoleUpdate(description="x"))


class TestSystemRoles:

    def test_system_role_cannot_be_renamed(self, test_db, seeded_roles):
        kunde = seeded_roles["Kunde"]
        with pytest.raises(ConflictError) as exc_info:
            role_crud.update_role(test_db, role_id=kunde.id, obj_in=RoleUpdate(name="Client"))
        assert exc_info.value.message == "cannot rename system role"

    def test_system_role_same_name_is_not_a_rename(self, test_db, seeded_roles):
        kunde = seeded_roles["Kunde"]
        updated = role_crud.update_role(test_db, role_id=kunde.id, obj_in=RoleUpdate(name="Kunde"))
        assert updated.name == "Kunde"

    def test_system_role_description_can_change(self, test_db, seeded_roles):
        kunde = seeded_roles["Kunde"]
        updated = role_crud.update_role(test_db, role_id=kunde.id, obj_in=RoleUpdate(description="x"))
        assert updated.description == "x"

    def test_system_role_cannot_be_deleted(self, test_db, seeded_roles):
        kunde = seeded_roles["Kunde"]
        with pytest.raises(ConflictError):
            role_crud.delete_role(test_db, role_id=kunde.id)
        assert role_crud.get_by_name(test_db, name="Kunde") is not None


class TestDeleteRole:

    def test_delete_cascades_grants_and_assignments(self, test_db, make_role, make_user, grant):
        role = make_role("Temp", [PERMISSIONS.VIEW_TASKS, PERMISSIONS.VIEW_FILES])
        user = make_user()
        grant(user, role)
        role_id = role.id

        assert role_crud.delete_role(test_db, role_id=role_id) == "Temp"

        assert test_db.query(Role).filter(Role.id == role_id).first() is None
        assert test_db.query(UserRole).filter(UserRole.role_id == role_id).count() == 0
        assert test_db.query(role_permissions).filter(role_permissions.c.role_id == role_id).count() == 0

    def test_delete_missing_role(self, test_db, seeded_roles):
        with pytest.raises(NotFoundError):
            role_crud.delete_role(test_db, role_id="missing")


class TestListRoles:

    def test_ordered_by_name_with_user_counts(self, test_db, seeded_roles, make_user, grant):
        user = make_user()
        grant(user, seeded_roles["Kunde"])

        listed = role_crud.list_roles(test_db)
        names = [role.name for role, _ in listed]
        counts = {role.name: count for role, count in listed}

        assert names == sorted(names)
        assert counts["Kunde"] == 1
        assert counts["Betrachter"] == 0


class TestUserRoleAssignment:

    def test_assign_and_list(self, test_db, seeded_roles, make_user):
        admin = make_user()
        user = make_user()
        assignment = user_role_crud.assign_role(
            test_db, user_id=user.id, role_id=seeded_roles["Kunde"].id, assigned_by=admin.id
        )

        assert assignment.assigned_by == admin.id
        assert assignment.assigned_at is not None
        assert [r.name for r in user_role_crud.list_roles_for_user(test_db, user_id=user.id)] == ["Kunde"]

    def test_duplicate_assignment_conflicts(self, test_db, seeded_roles, make_user):
        user = make_user()
        user_role_crud.assign_role(test_db, user_id=user.id, role_id=seeded_roles["Kunde"].id)

        with pytest.raises(ConflictError):
            user_role_crud.assign_role(test_db, user_id=user.id, role_id=seeded_roles["Kunde"].id)

        assert test_db.query(UserRole).filter(UserRole.user_id == user.id).count() == 1

    def test_concurrent_duplicate_assignment_conflicts(self, test_db, seeded_roles, make_user):
        user = make_user()
        kunde = seeded_roles["Kunde"]
        user_role_crud.assign_role(test_db, user_id=user.id, role_id=kunde.id)

        with patch.object(user_role_crud, "get_assignment", return_value=None):
            with pytest.raises(ConflictError) as exc_info:
                user_role_crud.assign_role(test_db, user_id=user.id, role_id=kunde.id)

        assert exc_info.value.error_code == "ROLE_ALREADY_ASSIGNED"
        assert test_db.query(UserRole).filter(UserRole.user_id == user.id).count() == 1

    def test_assign_unknown_role(self, test_db, seeded_roles, make_user):
        user = make_user()
        with pytest.raises(NotFoundError):
            user_role_crud.assign_role(test_db, user_id=user.id, role_id="missing")

    def test_assign_unknown_user(self, test_db, seeded_roles):
        with pytest.raises(NotFoundError):
            user_role_crud.assign_role(test_db, user_id="missing", role_id=seeded_roles["Kunde"].id)

    def test_revoke_missing_assignment(self, test_db, seeded_roles, make_user):
        user = make_user()
        with pytest.raises(NotFoundError):
            user_role_crud.revoke_role(test_db, user_id=user.id, role_id=seeded_roles["Kunde"].id)


class TestSeeding:

    def test_seed_is_idempotent(self, test_db, seeded_roles):
        again = seed_iam(test_db)

        assert set(again) == {definition.name for definition in DEFAULT_ROLES}
        assert test_db.query(Role).count() == len(DEFAULT_ROLES)
        assert all(role.is_system for role in again.values())

    def test_reseed_keeps_edited_grants(self, test_db, seeded_roles):
        kunde = seeded_roles["Kunde"]
        role_crud.update_role(test_db, role_id=kunde.id, obj_in=RoleUpdate(permission_names=[PERMISSIONS.VIEW_TASKS]))

        seed_iam(test_db)

        test_db.expire_all()
        assert role_crud.get_role(test_db, role_id=kunde.id).permission_names == [PERMISSIONS.VIEW_TASKS]
