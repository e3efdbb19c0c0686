"""
Test suite for session endpoints.

- GET  /auth/permissions
- GET  /auth/me
- POST /auth/logout
"""
from datetime import timedelta

from fastapi import status

from app.core.permissions import PERMISSIONS, PERMISSION_NAMES
from app.models.audit_log import AuditLog
from common_utils.auth.utils import create_access_token


class TestMyPermissions:

    def test_permission_map_covers_catalog(self, client, make_user, seeded_roles, grant, headers_for):
        user = make_user()
        grant(user, seeded_roles["Betrachter"])

        response = client.get("/api/v1/auth/permissions", headers=headers_for(user))

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert set(body["permissions"]) == set(PERMISSION_NAMES)
        assert body["permissions"][PERMISSIONS.VIEW_DASHBOARD] is True
        assert body["permissions"][PERMISSIONS.DELETE_ROLES] is False
        assert body["roles"] == [{"id": seeded_roles["Betrachter"].id, "name": "Betrachter"}]

    def test_admin_gets_everything(self, client, admin_headers):
        body = client.get("/api/v1/auth/permissions", headers=admin_headers).json()
        assert all(body["permissions"].values())

    def test_reads_are_not_audited(self, client, test_db, admin_headers):
        client.get("/api/v1/auth/permissions", headers=admin_headers)
        assert test_db.query(AuditLog).count() == 0

    def test_requires_session(self, client, seeded_roles):
        response = client.get("/api/v1/auth/permissions")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Unauthorized"

    def test_expired_token(self, client, plain_user):
        token = create_access_token(user_id=plain_user.id, expires_delta=timedelta(minutes=-5))

        response = client.get("/api/v1/auth/permissions", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestSession:

    def test_me(self, client, admin_user, admin_headers):
        response = client.get("/api/v1/auth/me", headers=admin_headers)

        data = response.json()["data"]
        assert data["user_id"] == admin_user.id
        assert data["email"] == "admin@litex.test"
        assert data["is_admin"] is True
        assert data["roles"][0]["name"] == "Administrator"

    def test_logout_is_recorded(self, client, test_db, plain_user, plain_headers):
        response = client.post(
            "/api/v1/auth/logout",
            headers={**plain_headers, "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )

        assert response.status_code == status.HTTP_200_OK
        entry = test_db.query(AuditLog).one()
        assert (entry.action, entry.entity_type, entry.user_id) == ("LOGOUT", "user", plain_user.id)
        assert entry.user_ip_address == "203.0.113.7"
