import pytest
from sqlalchemy.exc import OperationalError

from access_engine.core.exceptions import (
    ConflictException,
    CrossTenantAccessException,
    NotFoundException,
    StoreUnavailableException,
    ValidationException,
)
from access_engine.models import UserLevel, UserLevelAssignment
from access_engine.models.audit_log import AuditAction, AuditEntityType, AuditLogEntry
from access_engine.models.permission_state import ActionScope, PermissionState
from access_engine.repositories.audit_log_repository import AuditLogRepository
from access_engine.repositories.user_level_assignment_repository import (
    UserLevelAssignmentRepository,
)
from access_engine.services.assignment_service import AssignmentService
from access_engine.services.module_service import ModuleService
from access_engine.services.permission_resolver import PermissionResolver
from access_engine.services.user_level_service import UserLevelService
from tests.conftest import seed_level

ALLOW = PermissionState.ALLOW
DENY = PermissionState.DENY
INHERIT = PermissionState.INHERIT


def broken_append(self, entry):
    raise OperationalError("INSERT", {}, Exception("disk I/O error"))


class TestUserLevelCrud:
    def test_create_and_list(self, db_session, tenant_a, admin_a, permission_cache):
        service = UserLevelService(db_session, permission_cache)

        service.create_user_level(tenant_a.id, admin_a.id, "  Manager ", "Team leads")
        service.create_user_level(tenant_a.id, admin_a.id, "Clerk")
        levels = service.list_user_levels(tenant_a.id, admin_a.id)

        assert [level.name for level in levels] == ["Clerk", "Manager"]
        assert levels[1].description == "Team leads"

    def test_duplicate_name_conflicts(self, db_session, tenant_a, admin_a, permission_cache):
        service = UserLevelService(db_session, permission_cache)
        service.create_user_level(tenant_a.id, admin_a.id, "Manager")

        with pytest.raises(ConflictException):
            service.create_user_level(tenant_a.id, admin_a.id, "Manager")

    def test_same_name_allowed_in_other_tenant(
        self, db_session, tenant_a, tenant_b, admin_a, owner_b, permission_cache
    ):
        service = UserLevelService(db_session, permission_cache)
        service.create_user_level(tenant_a.id, admin_a.id, "Manager")

        level = service.create_user_level(tenant_b.id, owner_b.id, "Manager")

        assert level.tenant_id == tenant_b.id

    def test_blank_name_rejected(self, db_session, tenant_a, admin_a, permission_cache):
        service = UserLevelService(db_session, permission_cache)
        with pytest.raises(ValidationException):
            service.create_user_level(tenant_a.id, admin_a.id, "   ")

    def test_rename_to_taken_name_conflicts(self, db_session, tenant_a, admin_a, permission_cache):
        service = UserLevelService(db_session, permission_cache)
        service.create_user_level(tenant_a.id, admin_a.id, "Manager")
        clerk = service.create_user_level(tenant_a.id, admin_a.id, "Clerk")

        with pytest.raises(ConflictException):
            service.update_user_level(tenant_a.id, admin_a.id, clerk.id, name="Manager")

    def test_update_keeps_unspecified_fields(self, db_session, tenant_a, admin_a, permission_cache):
        service = UserLevelService(db_session, permission_cache)
        level = service.create_user_level(tenant_a.id, admin_a.id, "Clerk", "Front desk")

        updated = service.update_user_level(tenant_a.id, admin_a.id, level.id, name="Receptionist")

        assert updated.name == "Receptionist"
        assert updated.description == "Front desk"

    def test_delete_unassigned_level(self, db_session, tenant_a, admin_a, catalog, permission_cache):
        level = seed_level(db_session, tenant_a, "Temp", views={"dashboard": ALLOW})
        service = UserLevelService(db_session, permission_cache)

        service.delete_user_level(tenant_a.id, admin_a.id, level.id)

        assert db_session.query(UserLevel).count() == 0

    def test_delete_assigned_level_conflicts(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        level = seed_level(db_session, tenant_a, "Staff", users=[member_a])
        service = UserLevelService(db_session, permission_cache)

        with pytest.raises(ConflictException):
            service.delete_user_level(tenant_a.id, admin_a.id, level.id)

        assert db_session.query(UserLevel).count() == 1


class TestTenantGuard:
    def test_foreign_level_looks_missing(
        self, db_session, tenant_a, tenant_b, admin_a, catalog, permission_cache
    ):
        foreign = seed_level(db_session, tenant_b, "Theirs")
        service = UserLevelService(db_session, permission_cache)

        with pytest.raises(CrossTenantAccessException) as foreign_exc:
            service.get_user_level(tenant_a.id, admin_a.id, foreign.id)
        with pytest.raises(NotFoundException) as missing_exc:
            service.get_user_level(tenant_a.id, admin_a.id, 987654)

        assert str(foreign_exc.value) == str(missing_exc.value)

    def test_foreign_level_matrix_untouched(
        self, db_session, tenant_a, tenant_b, admin_a, catalog, permission_cache
    ):
        foreign = seed_level(db_session, tenant_b, "Theirs", views={"dashboard": ALLOW})
        service = UserLevelService(db_session, permission_cache)

        with pytest.raises(NotFoundException):
            service.set_view_permissions(tenant_a.id, admin_a.id, foreign.id, {"dashboard": DENY})

        rows = service.permission_repo.get_view_permissions({foreign.id})
        assert [(row.view_id, row.state) for row in rows] == [("dashboard", ALLOW)]
        assert db_session.query(AuditLogEntry).count() == 0

    def test_actor_outside_tenant_rejected(
        self, db_session, tenant_a, owner_b, permission_cache
    ):
        service = UserLevelService(db_session, permission_cache)
        with pytest.raises(NotFoundException):
            service.create_user_level(tenant_a.id, owner_b.id, "Intruder")


class TestPermissionMatrices:
    def test_replace_view_matrix_drops_inherit(
        self, db_session, tenant_a, admin_a, catalog, permission_cache
    ):
        level = seed_level(db_session, tenant_a, "Staff", views={"settings": ALLOW})
        service = UserLevelService(db_session, permission_cache)

        service.set_view_permissions(
            tenant_a.id, admin_a.id, level.id, {"dashboard": ALLOW, "users": DENY, "settings": INHERIT}
        )
        rows = service.get_view_permissions(tenant_a.id, admin_a.id, level.id)

        assert [(row.view_id, row.state) for row in rows] == [("dashboard", ALLOW), ("users", DENY)]

    def test_unknown_view_rejected(self, db_session, tenant_a, admin_a, catalog, permission_cache):
        level = seed_level(db_session, tenant_a, "Staff")
        service = UserLevelService(db_session, permission_cache)

        with pytest.raises(ValidationException):
            service.set_view_permissions(tenant_a.id, admin_a.id, level.id, {"nowhere": ALLOW})

    def test_replace_feature_matrix(self, db_session, tenant_a, admin_a, catalog, permission_cache):
        level = seed_level(db_session, tenant_a, "Staff")
        service = UserLevelService(db_session, permission_cache)

        service.set_feature_permissions(
            tenant_a.id,
            admin_a.id,
            level.id,
            {
                ("UserManagement", "Create"): (ALLOW, ActionScope.TEAM),
                ("UserManagement", "Delete"): (DENY, None),
                ("UserManagement", "Export"): (INHERIT, None),
            },
        )
        rows = service.get_feature_permissions(tenant_a.id, admin_a.id, level.id)

        assert [(row.action, row.state, row.scope) for row in rows] == [
            ("Create", ALLOW, ActionScope.TEAM),
            ("Delete", DENY, None),
        ]

    @pytest.mark.parametrize(
        "matrix",
        [
            {("UserManagement", "Create"): (ALLOW, None)},
            {("UserManagement", "Delete"): (DENY, ActionScope.ANY)},
            {("UserManagement", "Teleport"): (ALLOW, ActionScope.OWN)},
            {("NoSuchFeature", "Create"): (ALLOW, ActionScope.OWN)},
            {("UserManagement", "Create"): ("sometimes", None)},
        ],
    )
    def test_malformed_feature_matrix_rejected(
        self, db_session, tenant_a, admin_a, catalog, permission_cache, matrix
    ):
        level = seed_level(db_session, tenant_a, "Staff")
        service = UserLevelService(db_session, permission_cache)

        with pytest.raises(ValidationException):
            service.set_feature_permissions(tenant_a.id, admin_a.id, level.id, matrix)

        assert service.get_feature_permissions(tenant_a.id, admin_a.id, level.id) == []


class TestSingleEntryEdits:
    def test_view_edit_keeps_other_views(self, db_session, tenant_a, admin_a, catalog, permission_cache):
        level = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW, "users": ALLOW})
        service = UserLevelService(db_session, permission_cache)

        row = service.update_view_permission(tenant_a.id, admin_a.id, level.id, "users", DENY)
        service.update_view_permission(tenant_a.id, admin_a.id, level.id, "settings", ALLOW)

        assert row.state is DENY
        rows = service.get_view_permissions(tenant_a.id, admin_a.id, level.id)
        assert [(r.view_id, r.state) for r in rows] == [
            ("dashboard", ALLOW),
            ("settings", ALLOW),
            ("users", DENY),
        ]

    def test_view_set_to_inherit_is_removed(self, db_session, tenant_a, admin_a, catalog, permission_cache):
        level = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW, "users": ALLOW})
        service = UserLevelService(db_session, permission_cache)

        row = service.update_view_permission(tenant_a.id, admin_a.id, level.id, "users", INHERIT)

        assert row is None
        rows = service.get_view_permissions(tenant_a.id, admin_a.id, level.id)
        assert [r.view_id for r in rows] == ["dashboard"]

    def test_view_edit_is_audited(self, db_session, tenant_a, admin_a, catalog, permission_cache):
        level = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW})

        UserLevelService(db_session, permission_cache).update_view_permission(
            tenant_a.id, admin_a.id, level.id, "users", DENY
        )

        entry = db_session.query(AuditLogEntry).one()
        assert entry.entity_type == AuditEntityType.VIEW_PERMISSIONS
        assert entry.before_state == {"dashboard": "allow"}
        assert entry.after_state == {"dashboard": "allow", "users": "deny"}

    def test_view_edit_reaches_holders(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        level = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW}, users=[member_a])
        resolver = PermissionResolver(db_session, permission_cache)
        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"dashboard"}

        UserLevelService(db_session, permission_cache).update_view_permission(
            tenant_a.id, admin_a.id, level.id, "users", ALLOW
        )

        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"dashboard", "users"}

    def test_unknown_view_rejected(self, db_session, tenant_a, admin_a, catalog, permission_cache):
        level = seed_level(db_session, tenant_a, "Staff")
        service = UserLevelService(db_session, permission_cache)

        with pytest.raises(ValidationException):
            service.update_view_permission(tenant_a.id, admin_a.id, level.id, "nowhere", ALLOW)

        assert db_session.query(AuditLogEntry).count() == 0

    def test_feature_edit_changes_scope(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        level = seed_level(
            db_session,
            tenant_a,
            "Staff",
            features={
                ("UserManagement", "Read"): (ALLOW, ActionScope.OWN),
                ("UserManagement", "Delete"): (DENY, None),
            },
            users=[member_a],
        )
        resolver = PermissionResolver(db_session, permission_cache)
        assert resolver.resolve_feature(tenant_a.id, member_a.id, "UserManagement", "Read").scope is ActionScope.OWN

        row = UserLevelService(db_session, permission_cache).update_feature_permission(
            tenant_a.id, admin_a.id, level.id, "UserManagement", "Read", ALLOW, ActionScope.TEAM
        )

        assert row.scope is ActionScope.TEAM
        decision = resolver.resolve_feature(tenant_a.id, member_a.id, "UserManagement", "Read")
        assert decision.scope is ActionScope.TEAM
        assert not resolver.resolve_feature(tenant_a.id, member_a.id, "UserManagement", "Delete").allowed

    def test_feature_set_to_inherit_is_removed(self, db_session, tenant_a, admin_a, catalog, permission_cache):
        level = seed_level(
            db_session, tenant_a, "Staff", features={("UserManagement", "Read"): (ALLOW, ActionScope.OWN)}
        )
        service = UserLevelService(db_session, permission_cache)

        row = service.update_feature_permission(
            tenant_a.id, admin_a.id, level.id, "UserManagement", "Read", INHERIT
        )

        assert row is None
        assert service.get_feature_permissions(tenant_a.id, admin_a.id, level.id) == []

    @pytest.mark.parametrize(
        "feature_id, action, state, scope",
        [
            ("UserManagement", "Create", ALLOW, None),
            ("UserManagement", "Create", DENY, ActionScope.OWN),
            ("UserManagement", "Teleport", ALLOW, ActionScope.OWN),
            ("NoSuchFeature", "Create", ALLOW, ActionScope.OWN),
        ],
    )
    def test_malformed_feature_edit_rejected(
        self, db_session, tenant_a, admin_a, catalog, permission_cache, feature_id, action, state, scope
    ):
        level = seed_level(db_session, tenant_a, "Staff")
        service = UserLevelService(db_session, permission_cache)

        with pytest.raises(ValidationException):
            service.update_feature_permission(
                tenant_a.id, admin_a.id, level.id, feature_id, action, state, scope
            )

        assert service.get_feature_permissions(tenant_a.id, admin_a.id, level.id) == []

    def test_foreign_level_looks_missing(
        self, db_session, tenant_a, tenant_b, admin_a, catalog, permission_cache
    ):
        foreign = seed_level(db_session, tenant_b, "Theirs", views={"dashboard": ALLOW})

        with pytest.raises(NotFoundException):
            UserLevelService(db_session, permission_cache).update_view_permission(
                tenant_a.id, admin_a.id, foreign.id, "dashboard", DENY
            )


class TestAtomicity:
    def test_failed_audit_undoes_create(
        self, db_session, tenant_a, admin_a, permission_cache, monkeypatch
    ):
        monkeypatch.setattr(AuditLogRepository, "append", broken_append)
        service = UserLevelService(db_session, permission_cache)

        with pytest.raises(StoreUnavailableException):
            service.create_user_level(tenant_a.id, admin_a.id, "Ghost")

        assert db_session.query(UserLevel).count() == 0

    def test_failed_audit_undoes_matrix_change(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache, monkeypatch
    ):
        level = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW}, users=[member_a])
        service = UserLevelService(db_session, permission_cache)

        with monkeypatch.context() as patch:
            patch.setattr(AuditLogRepository, "append", broken_append)
            with pytest.raises(StoreUnavailableException):
                service.set_view_permissions(tenant_a.id, admin_a.id, level.id, {"dashboard": DENY})

        rows = service.get_view_permissions(tenant_a.id, admin_a.id, level.id)
        assert [(row.view_id, row.state) for row in rows] == [("dashboard", ALLOW)]
        resolved = PermissionResolver(db_session, permission_cache).resolve_all(tenant_a.id, member_a.id)
        assert resolved.views == frozenset({"dashboard"})

    def test_failed_audit_undoes_assignment(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache, monkeypatch
    ):
        level = seed_level(db_session, tenant_a, "Staff")
        monkeypatch.setattr(AuditLogRepository, "append", broken_append)

        with pytest.raises(StoreUnavailableException):
            AssignmentService(db_session, permission_cache).set_user_level_assignments(
                tenant_a.id, admin_a.id, member_a.id, {level.id}
            )

        assert db_session.query(UserLevelAssignment).count() == 0


class TestCacheCoherency:
    def test_view_change_visible_on_next_resolution(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        level = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW}, users=[member_a])
        resolver = PermissionResolver(db_session, permission_cache)
        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"dashboard"}

        UserLevelService(db_session, permission_cache).set_view_permissions(
            tenant_a.id, admin_a.id, level.id, {"users": ALLOW}
        )

        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"users"}

    def test_feature_change_visible_on_next_resolution(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        level = seed_level(
            db_session,
            tenant_a,
            "Staff",
            features={("UserManagement", "Read"): (ALLOW, ActionScope.OWN)},
            users=[member_a],
        )
        resolver = PermissionResolver(db_session, permission_cache)
        assert resolver.resolve_feature(tenant_a.id, member_a.id, "UserManagement", "Read").allowed

        UserLevelService(db_session, permission_cache).set_feature_permissions(
            tenant_a.id, admin_a.id, level.id, {("UserManagement", "Read"): (DENY, None)}
        )

        assert not resolver.resolve_feature(tenant_a.id, member_a.id, "UserManagement", "Read").allowed

    def test_other_users_keep_their_entries(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        level = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW}, users=[member_a])
        seed_level(db_session, tenant_a, "Admins", views={"settings": ALLOW}, users=[admin_a])
        resolver = PermissionResolver(db_session, permission_cache)
        admin_set = resolver.resolve_all(tenant_a.id, admin_a.id)
        resolver.resolve_all(tenant_a.id, member_a.id)

        UserLevelService(db_session, permission_cache).set_view_permissions(
            tenant_a.id, admin_a.id, level.id, {"users": ALLOW}
        )

        assert permission_cache.get(tenant_a.id, admin_a.id) is admin_set
        assert permission_cache.get(tenant_a.id, member_a.id) is None

    @staticmethod
    def _assign_during_holder_lookup(monkeypatch, db_session, tenant, actor, user, level, cache):
        """Give `user` the level and cache its old matrix right after the holders are read"""
        original = UserLevelAssignmentRepository.get_user_ids_for_level
        resolver = PermissionResolver(db_session, cache)
        cached = {}

        def lookup_then_assign(self, tenant_id, user_level_id):
            holders = original(self, tenant_id, user_level_id)
            if not cached:
                AssignmentService(db_session, cache).set_user_level_assignments(
                    tenant.id, actor.id, user.id, {level.id}
                )
                cached["before"] = resolver.resolve_all(tenant.id, user.id)
            return holders

        monkeypatch.setattr(
            UserLevelAssignmentRepository, "get_user_ids_for_level", lookup_then_assign
        )
        return resolver, cached

    def test_view_change_reaches_holder_assigned_mid_write(
        self, monkeypatch, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        level = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW}, users=[member_a])
        resolver, cached = self._assign_during_holder_lookup(
            monkeypatch, db_session, tenant_a, admin_a, admin_a, level, permission_cache
        )

        UserLevelService(db_session, permission_cache).set_view_permissions(
            tenant_a.id, admin_a.id, level.id, {"users": ALLOW}
        )

        assert cached["before"].views == {"dashboard"}
        assert resolver.resolve_views(tenant_a.id, admin_a.id) == {"users"}
        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"users"}

    def test_feature_change_reaches_holder_assigned_mid_write(
        self, monkeypatch, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        level = seed_level(
            db_session,
            tenant_a,
            "Staff",
            features={("UserManagement", "Read"): (ALLOW, ActionScope.OWN)},
            users=[member_a],
        )
        resolver, cached = self._assign_during_holder_lookup(
            monkeypatch, db_session, tenant_a, admin_a, admin_a, level, permission_cache
        )

        UserLevelService(db_session, permission_cache).set_feature_permissions(
            tenant_a.id, admin_a.id, level.id, {("UserManagement", "Read"): (DENY, None)}
        )

        assert cached["before"].decision("UserManagement", "Read").allowed
        assert not resolver.resolve_feature(tenant_a.id, admin_a.id, "UserManagement", "Read").allowed


class TestAssignments:
    def test_assign_and_replace(self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache):
        staff = seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW})
        auditors = seed_level(db_session, tenant_a, "Auditors", views={"users": ALLOW})
        service = AssignmentService(db_session, permission_cache)
        resolver = PermissionResolver(db_session, permission_cache)

        service.set_user_level_assignments(tenant_a.id, admin_a.id, member_a.id, {staff.id, auditors.id})
        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"dashboard", "users"}

        service.set_user_level_assignments(tenant_a.id, admin_a.id, member_a.id, {auditors.id})
        assert service.get_user_level_ids(tenant_a.id, admin_a.id, member_a.id) == {auditors.id}
        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"users"}

    def test_empty_set_removes_everything(
        self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache
    ):
        seed_level(db_session, tenant_a, "Staff", views={"dashboard": ALLOW}, users=[member_a])
        service = AssignmentService(db_session, permission_cache)

        service.set_user_level_assignments(tenant_a.id, admin_a.id, member_a.id, set())

        resolved = PermissionResolver(db_session, permission_cache).resolve_all(tenant_a.id, member_a.id)
        assert resolved.views == frozenset()

    def test_assignment_is_audited(self, db_session, tenant_a, admin_a, member_a, catalog, permission_cache):
        staff = seed_level(db_session, tenant_a, "Staff")

        AssignmentService(db_session, permission_cache).set_user_level_assignments(
            tenant_a.id, admin_a.id, member_a.id, {staff.id}
        )

        entry = db_session.query(AuditLogEntry).one()
        assert entry.entity_type == AuditEntityType.USER_LEVEL_ASSIGNMENT
        assert entry.action == AuditAction.ASSIGNMENT_CHANGE
        assert entry.entity_id == str(member_a.id)
        assert entry.before_state == {"user_level_ids": []}
        assert entry.after_state == {"user_level_ids": [staff.id]}

    def test_foreign_level_rejected(
        self, db_session, tenant_a, tenant_b, admin_a, member_a, catalog, permission_cache
    ):
        foreign = seed_level(db_session, tenant_b, "Theirs")

        with pytest.raises(CrossTenantAccessException):
            AssignmentService(db_session, permission_cache).set_user_level_assignments(
                tenant_a.id, admin_a.id, member_a.id, {foreign.id}
            )

        assert db_session.query(UserLevelAssignment).count() == 0

    def test_foreign_user_rejected(
        self, db_session, tenant_a, admin_a, member_b, catalog, permission_cache
    ):
        staff = seed_level(db_session, tenant_a, "Staff")

        with pytest.raises(CrossTenantAccessException):
            AssignmentService(db_session, permission_cache).set_user_level_assignments(
                tenant_a.id, admin_a.id, member_b.id, {staff.id}
            )

    def test_missing_level_rejected(self, db_session, tenant_a, admin_a, member_a, permission_cache):
        with pytest.raises(NotFoundException):
            AssignmentService(db_session, permission_cache).set_user_level_assignments(
                tenant_a.id, admin_a.id, member_a.id, {123456}
            )


class TestTenantModules:
    def test_enabling_module_reveals_gated_views(
        self, db_session, tenant_a, owner_a, member_a, catalog, permission_cache
    ):
        seed_level(db_session, tenant_a, "Analyst", views={"reports": ALLOW}, users=[member_a])
        resolver = PermissionResolver(db_session, permission_cache)
        assert resolver.resolve_views(tenant_a.id, member_a.id) == frozenset()

        ModuleService(db_session, permission_cache).set_tenant_modules(
            tenant_a.id, owner_a.id, {"analytics"}
        )

        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"reports"}

    def test_disabling_module_hides_views(
        self, db_session, tenant_a, owner_a, member_a, analytics_enabled_a, permission_cache
    ):
        seed_level(db_session, tenant_a, "Analyst", views={"reports": ALLOW}, users=[member_a])
        resolver = PermissionResolver(db_session, permission_cache)
        assert resolver.resolve_views(tenant_a.id, member_a.id) == {"reports"}

        service = ModuleService(db_session, permission_cache)
        service.set_tenant_modules(tenant_a.id, owner_a.id, set())

        assert service.get_tenant_modules(tenant_a.id, owner_a.id) == set()
        assert resolver.resolve_views(tenant_a.id, member_a.id) == frozenset()
        entry = db_session.query(AuditLogEntry).one()
        assert entry.entity_type == AuditEntityType.TENANT_MODULES
        assert entry.before_state == {"module_ids": ["analytics"]}

    def test_unknown_module_rejected(self, db_session, tenant_a, owner_a, catalog, permission_cache):
        with pytest.raises(ValidationException):
            ModuleService(db_session, permission_cache).set_tenant_modules(
                tenant_a.id, owner_a.id, {"warp-drive"}
            )
