import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from access_engine.core.exceptions import (
    ConflictException,
    ValidationException,
)
from access_engine.models.audit_log import AuditAction, AuditEntityType
from access_engine.models.level_permission import (
    UserLevelFeaturePermission,
    UserLevelViewPermission,
)
from access_engine.models.permission_state import (
    ActionScope,
    PermissionState,
    parse_action,
    parse_scope,
    parse_state,
    validate_grant,
)
from access_engine.models.user_level import UserLevel
from access_engine.repositories.catalog_repository import CatalogRepository
from access_engine.repositories.permission_repository import PermissionRepository
from access_engine.repositories.user_level_assignment_repository import (
    UserLevelAssignmentRepository,
)
from access_engine.repositories.user_level_repository import UserLevelRepository
from access_engine.services.audit_service import AuditService
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.tenant_guard import TenantGuard
from access_engine.services.unit_of_work import atomic, store_errors

logger = logging.getLogger(__name__)

FeatureMatrix = dict[tuple[str, str], tuple[PermissionState, Optional[ActionScope]]]


def _view_matrix_state(rows: list[UserLevelViewPermission]) -> dict[str, str]:
    return {row.view_id: row.state.value for row in sorted(rows, key=lambda r: r.view_id)}


def _feature_matrix_state(rows: list[UserLevelFeaturePermission]) -> list[dict]:
    return [
        {
            "feature_id": row.feature_id,
            "action": row.action,
            "state": row.state.value,
            "scope": row.scope.value if row.scope else None,
        }
        for row in sorted(rows, key=lambda r: (r.feature_id, r.action))
    ]


class UserLevelService:
    """
    Service layer for user level CRUD and the per-level permission matrices.

    Every mutation runs guard -> cache invalidation scope -> writes + audit
    entry -> single commit. Nothing is acknowledged until the audit entry
    is committed and the affected users' cache entries are gone.
    """

    def __init__(self, db: Session, cache: PermissionCache, audit: Optional[AuditService] = None):
        self.db = db
        self.cache = cache
        self.guard = TenantGuard(db)
        self.audit = audit or AuditService(db)
        self.level_repo = UserLevelRepository(db)
        self.permission_repo = PermissionRepository(db)
        self.assignment_repo = UserLevelAssignmentRepository(db)
        self.catalog_repo = CatalogRepository(db)

    def list_user_levels(self, tenant_id: int, actor_user_id: int) -> list[UserLevel]:
        """Get all levels of the tenant"""
        self.guard.ensure_user(tenant_id, actor_user_id)
        with store_errors():
            return self.level_repo.get_by_tenant(tenant_id)

    def get_user_level(self, tenant_id: int, actor_user_id: int, user_level_id: int) -> UserLevel:
        """
        Get one level of the tenant.

        Raises:
            NotFoundException: If the level doesn't exist or belongs to another tenant
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        return self.guard.ensure_level(tenant_id, user_level_id)

    def create_user_level(
        self,
        tenant_id: int,
        actor_user_id: int,
        name: str,
        description: Optional[str] = None,
    ) -> UserLevel:
        """
        Create a level.

        Raises:
            ConflictException: If the name is taken within the tenant
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        name = self._clean_name(name)
        self._ensure_name_free(tenant_id, name)

        with atomic(self.db):
            level = self.level_repo.create(
                UserLevel(tenant_id=tenant_id, name=name, description=description)
            )
            self.audit.record(
                tenant_id,
                actor_user_id,
                AuditEntityType.USER_LEVEL,
                level.id,
                AuditAction.CREATE,
                after_state=level.to_audit_state(),
            )

        logger.info("User level created: tenant=%s level=%s name=%s", tenant_id, level.id, name)
        return level

    def update_user_level(
        self,
        tenant_id: int,
        actor_user_id: int,
        user_level_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> UserLevel:
        """
        Rename and/or re-describe a level.

        Raises:
            NotFoundException: If the level doesn't exist or belongs to another tenant
            ConflictException: If the new name is taken within the tenant
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        level = self.guard.ensure_level(tenant_id, user_level_id)
        before = level.to_audit_state()

        if name is not None:
            name = self._clean_name(name)
            if name != level.name:
                self._ensure_name_free(tenant_id, name)

        with atomic(self.db):
            if name is not None:
                level.name = name
            if description is not None:
                level.description = description
            self.level_repo.update(level)
            self.audit.record(
                tenant_id,
                actor_user_id,
                AuditEntityType.USER_LEVEL,
                level.id,
                AuditAction.UPDATE,
                before_state=before,
                after_state=level.to_audit_state(),
            )

        return level

    def delete_user_level(self, tenant_id: int, actor_user_id: int, user_level_id: int) -> None:
        """
        Delete a level and its permission rows.

        Raises:
            NotFoundException: If the level doesn't exist or belongs to another tenant
            ConflictException: If any user still holds the level
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        level = self.guard.ensure_level(tenant_id, user_level_id)

        with store_errors():
            assigned = self.assignment_repo.count_for_level(level.id)
        if assigned:
            raise ConflictException(
                f"User level '{level.name}' is assigned to {assigned} user(s) and cannot be deleted"
            )

        before = level.to_audit_state()
        with atomic(self.db):
            self.level_repo.delete(level)
            self.audit.record(
                tenant_id,
                actor_user_id,
                AuditEntityType.USER_LEVEL,
                user_level_id,
                AuditAction.DELETE,
                before_state=before,
            )
        self.cache.invalidate_level(tenant_id, user_level_id)

        logger.info("User level deleted: tenant=%s level=%s", tenant_id, user_level_id)

    def get_view_permissions(
        self, tenant_id: int, actor_user_id: int, user_level_id: int
    ) -> list[UserLevelViewPermission]:
        """Explicit view rows of a level (inherit entries are implicit)"""
        self.guard.ensure_user(tenant_id, actor_user_id)
        level = self.guard.ensure_level(tenant_id, user_level_id)
        with store_errors():
            rows = self.permission_repo.get_view_permissions({level.id})
        return sorted(rows, key=lambda r: r.view_id)

    def get_feature_permissions(
        self, tenant_id: int, actor_user_id: int, user_level_id: int
    ) -> list[UserLevelFeaturePermission]:
        """Explicit feature rows of a level"""
        self.guard.ensure_user(tenant_id, actor_user_id)
        level = self.guard.ensure_level(tenant_id, user_level_id)
        with store_errors():
            rows = self.permission_repo.get_feature_permissions({level.id})
        return sorted(rows, key=lambda r: (r.feature_id, r.action))

    def set_view_permissions(
        self,
        tenant_id: int,
        actor_user_id: int,
        user_level_id: int,
        views: dict[str, PermissionState],
    ) -> None:
        """
        Replace the view matrix of a level.

        Raises:
            NotFoundException: If the level doesn't exist or belongs to another tenant
            ValidationException: If a view id is not in the catalog
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        level = self.guard.ensure_level(tenant_id, user_level_id)

        views = {view_id: parse_state(state) for view_id, state in views.items()}
        self._ensure_views_exist(set(views))
        self._write_view_matrix(
            tenant_id,
            actor_user_id,
            level,
            lambda: self.permission_repo.replace_view_permissions(tenant_id, level.id, views),
        )
        logger.info("View permissions replaced: tenant=%s level=%s", tenant_id, level.id)

    def update_view_permission(
        self,
        tenant_id: int,
        actor_user_id: int,
        user_level_id: int,
        view_id: str,
        state: PermissionState,
    ) -> Optional[UserLevelViewPermission]:
        """
        Change one view decision of a level, leaving the rest of the matrix alone.

        Returns:
            The stored row, or None when the view was set back to inherit
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        level = self.guard.ensure_level(tenant_id, user_level_id)

        state = parse_state(state)
        self._ensure_views_exist({view_id})
        self._write_view_matrix(
            tenant_id,
            actor_user_id,
            level,
            lambda: self.permission_repo.set_view_permission(tenant_id, level.id, view_id, state),
        )
        logger.info(
            "View permission set: tenant=%s level=%s view=%s state=%s",
            tenant_id,
            level.id,
            view_id,
            state.value,
        )
        with store_errors():
            return self.permission_repo.get_view_permission(level.id, view_id)

    def set_feature_permissions(
        self,
        tenant_id: int,
        actor_user_id: int,
        user_level_id: int,
        features: FeatureMatrix,
    ) -> None:
        """
        Replace the feature matrix of a level.

        Args:
            features: (feature_id, action) -> (state, scope); scope only with allow

        Raises:
            NotFoundException: If the level doesn't exist or belongs to another tenant
            ValidationException: For unknown features/actions or a malformed scope
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        level = self.guard.ensure_level(tenant_id, user_level_id)

        matrix: FeatureMatrix = {}
        for (feature_id, action), (state, scope) in features.items():
            matrix[(feature_id, parse_action(action).value)] = self._parse_grant(state, scope)

        self._ensure_features_exist({feature_id for feature_id, _ in matrix})
        self._write_feature_matrix(
            tenant_id,
            actor_user_id,
            level,
            lambda: self.permission_repo.replace_feature_permissions(tenant_id, level.id, matrix),
        )
        logger.info("Feature permissions replaced: tenant=%s level=%s", tenant_id, level.id)

    def update_feature_permission(
        self,
        tenant_id: int,
        actor_user_id: int,
        user_level_id: int,
        feature_id: str,
        action: str,
        state: PermissionState,
        scope: Optional[ActionScope] = None,
    ) -> Optional[UserLevelFeaturePermission]:
        """
        Change the decision for one feature action of a level.

        Returns:
            The stored row, or None when the action was set back to inherit

        Raises:
            ValidationException: For an unknown feature/action or a malformed scope
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        level = self.guard.ensure_level(tenant_id, user_level_id)

        action = parse_action(action).value
        state, scope = self._parse_grant(state, scope)
        self._ensure_features_exist({feature_id})
        self._write_feature_matrix(
            tenant_id,
            actor_user_id,
            level,
            lambda: self.permission_repo.set_feature_permission(
                tenant_id, level.id, feature_id, action, state, scope
            ),
        )
        logger.info(
            "Feature permission set: tenant=%s level=%s feature=%s action=%s state=%s",
            tenant_id,
            level.id,
            feature_id,
            action,
            state.value,
        )
        with store_errors():
            return self.permission_repo.get_feature_permission(level.id, feature_id, action)

    def _write_view_matrix(
        self, tenant_id: int, actor_user_id: int, level: UserLevel, write: Callable[[], None]
    ) -> None:
        with store_errors():
            holders = self.assignment_repo.get_user_ids_for_level(tenant_id, level.id)

        with self.cache.invalidating(tenant_id, holders):
            with atomic(self.db):
                before = _view_matrix_state(self.permission_repo.get_view_permissions({level.id}))
                write()
                after = _view_matrix_state(self.permission_repo.get_view_permissions({level.id}))
                self.audit.record(
                    tenant_id,
                    actor_user_id,
                    AuditEntityType.VIEW_PERMISSIONS,
                    level.id,
                    AuditAction.UPDATE,
                    before_state=before,
                    after_state=after,
                )
            # Holders read above may be outdated by a concurrent assignment
            self.cache.invalidate_level(tenant_id, level.id)

    def _write_feature_matrix(
        self, tenant_id: int, actor_user_id: int, level: UserLevel, write: Callable[[], None]
    ) -> None:
        with store_errors():
            holders = self.assignment_repo.get_user_ids_for_level(tenant_id, level.id)

        with self.cache.invalidating(tenant_id, holders):
            with atomic(self.db):
                before = _feature_matrix_state(
                    self.permission_repo.get_feature_permissions({level.id})
                )
                write()
                after = _feature_matrix_state(
                    self.permission_repo.get_feature_permissions({level.id})
                )
                self.audit.record(
                    tenant_id,
                    actor_user_id,
                    AuditEntityType.FEATURE_PERMISSIONS,
                    level.id,
                    AuditAction.UPDATE,
                    before_state=before,
                    after_state=after,
                )
            self.cache.invalidate_level(tenant_id, level.id)

    @staticmethod
    def _parse_grant(state, scope) -> tuple[PermissionState, Optional[ActionScope]]:
        state = parse_state(state)
        scope = parse_scope(scope)
        validate_grant(state, scope)
        return state, scope

    def _ensure_views_exist(self, view_ids: set[str]) -> None:
        with store_errors():
            unknown = view_ids - self.catalog_repo.get_existing_view_ids(view_ids)
        if unknown:
            raise ValidationException(f"Unknown view(s): {', '.join(sorted(unknown))}")

    def _ensure_features_exist(self, feature_ids: set[str]) -> None:
        with store_errors():
            unknown = feature_ids - self.catalog_repo.get_existing_feature_ids(feature_ids)
        if unknown:
            raise ValidationException(f"Unknown feature(s): {', '.join(sorted(unknown))}")

    def _clean_name(self, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValidationException("User level name cannot be empty")
        return name

    def _ensure_name_free(self, tenant_id: int, name: str) -> None:
        with store_errors():
            existing = self.level_repo.get_by_name(tenant_id, name)
        if existing is not None:
            raise ConflictException(f"User level '{name}' already exists")
