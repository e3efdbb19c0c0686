"""
Pytest configuration and fixtures for testing.
"""
import os

# Must be set before the app modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUDIT_LOG_MODE", "inline")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("NO_COLOR", "1")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.database.session import Base, get_db, enable_sqlite_foreign_keys
from main import app
from app.crud.iam import role_crud, user_role_crud
from app.models.file import File
from app.models.user import User, UserTypeEnum, UserStatusEnum
from app.schemas.iam import RoleCreate
from app.seed.seed_data import seed_iam
from app.services.audit_service import audit_service
from common_utils.auth.utils import create_access_token


# Test database URL - using in-memory SQLite for tests
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def test_engine():
    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Role and user deletes rely on ON DELETE CASCADE
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return sessionmaker(autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_db(session_factory, monkeypatch):
    """
    Create a fresh test database for each test function. Audit writes go to
    the same database through their own sessions.
    """
    monkeypatch.setattr(audit_service, "session_factory", session_factory)
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client(test_db, monkeypatch):
    """
    Create a test client with database override. Audit writes are awaited
    inline so assertions can read them right after the response.
    """
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    monkeypatch.setattr(settings, "AUDIT_LOG_MODE", "inline")
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def seeded_roles(test_db):
    """Permission catalog plus the default system roles, keyed by name"""
    return seed_iam(test_db)


@pytest.fixture(scope="function")
def make_user(test_db):
    counter = {"n": 0}

    def _make_user(email=None, role=UserTypeEnum.EMPLOYEE, company_id=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@litex.test",
            name=f"User {counter['n']}",
            role=role,
            company_id=company_id,
            status=UserStatusEnum.ACTIVE,
        )
        test_db.add(user)
        test_db.commit()
        test_db.refresh(user)
        return user

    return _make_user


@pytest.fixture(scope="function")
def make_role(test_db, seeded_roles):
    def _make_role(name, permission_names=(), description=None):
        return role_crud.create_role(
            test_db,
            obj_in=RoleCreate(name=name, description=description, permission_names=list(permission_names)),
        )

    return _make_role


@pytest.fixture(scope="function")
def grant(test_db):
    """Assign a role to a user"""
    def _grant(user, role, assigned_by=None):
        return user_role_crud.assign_role(test_db, user_id=user.id, role_id=role.id, assigned_by=assigned_by)

    return _grant


def auth_headers(user) -> dict:
    token = create_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        company_id=user.company_id,
        status=user.status.value,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def admin_user(make_user, seeded_roles, grant):
    user = make_user(email="admin@litex.test")
    grant(user, seeded_roles[settings.ADMIN_ROLE_NAME])
    return user


@pytest.fixture(scope="function")
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture(scope="function")
def plain_user(make_user, seeded_roles):
    """An employee holding no roles at all"""
    return make_user(email="nobody@litex.test")


@pytest.fixture(scope="function")
def plain_headers(plain_user):
    return auth_headers(plain_user)


@pytest.fixture(scope="function")
def pending_file(test_db, make_user):
    uploader = make_user(email="kunde@example.at", role=UserTypeEnum.CUSTOMER, company_id="company-1")
    file = File(name="Rechnung_2024_03.pdf", storage_key="uploads/rechnung.pdf", uploaded_by=uploader.id)
    test_db.add(file)
    test_db.commit()
    test_db.refresh(file)
    return file


@pytest.fixture(scope="function")
def headers_for():
    """Bearer headers for an arbitrary user"""
    return auth_headers
