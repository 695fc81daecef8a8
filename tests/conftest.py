import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-access-engine")

import pytest
from datetime import datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from jose import jwt

from access_engine.database import get_db
from access_engine.dependencies import get_permission_cache, get_navigation_cache
from access_engine.config import settings
# Import all model classes to ensure they're registered with SQLAlchemy
from access_engine.models import (
    Base,
    Tenant,
    User,
    TenantMembership,
    View,
    Feature,
    Module,
    MenuItem,
    SubMenuItem,
    TenantModule,
)
from access_engine.models.tenant_membership import TenantRole
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.navigation_service import NavigationCache
# Import FastAPI app AFTER model imports
from access_engine.main import app

# Test database (SQLite in-memory for speed)
# Use StaticPool to ensure all connections share the same in-memory database
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def permission_cache():
    """Fresh permission cache per test"""
    return PermissionCache(ttl_seconds=300, stripes=4)


@pytest.fixture
def navigation_cache():
    return NavigationCache(max_entries=16)


@pytest.fixture(scope="function")
def client(db_session, permission_cache, navigation_cache):
    """FastAPI test client with test database and per-test caches"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_permission_cache] = lambda: permission_cache
    app.dependency_overrides[get_navigation_cache] = lambda: navigation_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_test_token(
    user_id: str = "test-user-123",
    tenant_id: int | None = None,
    expired: bool = False,
) -> str:
    """
    Generate valid JWT token for testing.

    Args:
        user_id: User ID to embed in 'sub' claim
        tenant_id: Acting tenant to embed in 'tenant_id' claim (omitted if None)
        expired: If True, create expired token

    Returns:
        Encoded JWT token
    """
    if expired:
        exp = datetime.now(UTC) - timedelta(minutes=5)
    else:
        exp = datetime.now(UTC) + timedelta(minutes=15)

    payload = {"sub": user_id, "exp": exp, "iat": datetime.now(UTC)}
    if tenant_id is not None:
        payload["tenant_id"] = tenant_id

    token = jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")
    return token


def auth_headers_for(user: User, tenant: Tenant) -> dict:
    """Authorization headers acting as the given user in the given tenant"""
    token = create_test_token(user_id=user.auth_user_id, tenant_id=tenant.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def tenant_a(db_session):
    tenant = Tenant(name="Acme")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def tenant_b(db_session):
    tenant = Tenant(name="Globex")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


def _add_member(db_session, auth_user_id: str, tenant: Tenant, role: TenantRole) -> User:
    user = User(auth_user_id=auth_user_id)
    db_session.add(user)
    db_session.flush()
    db_session.add(TenantMembership(tenant_id=tenant.id, user_id=user.id, role=role))
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def owner_a(db_session, tenant_a):
    """OWNER of tenant A"""
    return _add_member(db_session, "owner-a", tenant_a, TenantRole.OWNER)


@pytest.fixture
def admin_a(db_session, tenant_a):
    """ADMIN of tenant A"""
    return _add_member(db_session, "admin-a", tenant_a, TenantRole.ADMIN)


@pytest.fixture
def member_a(db_session, tenant_a):
    """MEMBER of tenant A"""
    return _add_member(db_session, "member-a", tenant_a, TenantRole.MEMBER)


@pytest.fixture
def owner_b(db_session, tenant_b):
    """OWNER of tenant B"""
    return _add_member(db_session, "owner-b", tenant_b, TenantRole.OWNER)


@pytest.fixture
def member_b(db_session, tenant_b):
    """MEMBER of tenant B"""
    return _add_member(db_session, "member-b", tenant_b, TenantRole.MEMBER)


@pytest.fixture
def catalog(db_session):
    """
    Global catalog shared by every tenant.

    Views: dashboard, users, settings, reports (reports is in module 'analytics').
    Features: UserManagement, UserCreate, UserDelete, Reporting (Reporting is in module 'analytics').
    Menu: Home -> dashboard (entrypoint), Admin -> [Users, Settings], Reports -> reports.
    """
    dashboard = View(id="dashboard", name="Dashboard", url="/dashboard")
    users = View(id="users", name="Users", url="/admin/users")
    settings_view = View(id="settings", name="Settings", url="/admin/settings")
    reports = View(id="reports", name="Reports", url="/reports")
    user_management = Feature(id="UserManagement", name="User management", key="users.manage")
    reporting = Feature(id="Reporting", name="Reporting", key="reports.run")
    user_create = Feature(id="UserCreate", name="Create users", key="users.create")
    user_delete = Feature(id="UserDelete", name="Delete users", key="users.delete")
    db_session.add_all(
        [dashboard, users, settings_view, reports, user_management, reporting, user_create, user_delete]
    )
    db_session.flush()

    analytics = Module(id="analytics", code="ANALYTICS", name="Analytics")
    analytics.views.append(reports)
    analytics.features.append(reporting)
    db_session.add(analytics)

    home = MenuItem(id="home", label="Home", sequence_index=0, view_id="dashboard", is_entrypoint=True)
    admin = MenuItem(id="admin", label="Admin", sequence_index=1, is_entrypoint=False, icon="gear")
    admin.sub_items = [
        SubMenuItem(id="admin-users", label="Users", sequence_index=0, view_id="users"),
        SubMenuItem(id="admin-settings", label="Settings", sequence_index=1, view_id="settings"),
    ]
    report_item = MenuItem(id="reports", label="Reports", sequence_index=2, view_id="reports", is_entrypoint=True)
    db_session.add_all([home, admin, report_item])
    db_session.commit()
    return {
        "views": {"dashboard", "users", "settings", "reports"},
        "features": {"UserManagement", "Reporting", "UserCreate", "UserDelete"},
        "modules": {"analytics"},
    }


@pytest.fixture
def analytics_enabled_a(db_session, tenant_a, catalog):
    """Tenant A has the analytics module"""
    db_session.add(TenantModule(tenant_id=tenant_a.id, module_id="analytics"))
    db_session.commit()


def seed_level(
    db_session,
    tenant: Tenant,
    name: str,
    views: dict | None = None,
    features: dict | None = None,
    users: list | None = None,
):
    """
    Insert a user level with its permission rows and assignments directly.

    Args:
        views: view_id -> PermissionState
        features: (feature_id, action) -> (PermissionState, ActionScope | None)
        users: Users to assign the level to
    """
    from access_engine.models import (
        UserLevel,
        UserLevelViewPermission,
        UserLevelFeaturePermission,
        UserLevelAssignment,
    )

    level = UserLevel(tenant_id=tenant.id, name=name)
    db_session.add(level)
    db_session.flush()
    for view_id, state in (views or {}).items():
        db_session.add(
            UserLevelViewPermission(
                tenant_id=tenant.id, user_level_id=level.id, view_id=view_id, state=state
            )
        )
    for (feature_id, action), (state, scope) in (features or {}).items():
        db_session.add(
            UserLevelFeaturePermission(
                tenant_id=tenant.id,
                user_level_id=level.id,
                feature_id=feature_id,
                action=action,
                state=state,
                scope=scope,
            )
        )
    for user in users or []:
        db_session.add(
            UserLevelAssignment(tenant_id=tenant.id, user_id=user.id, user_level_id=level.id)
        )
    db_session.commit()
    db_session.refresh(level)
    return level
