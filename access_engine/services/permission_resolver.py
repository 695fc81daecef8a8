import logging
from collections import defaultdict
from typing import Optional

from sqlalchemy.orm import Session

from access_engine.core.exceptions import StoreUnavailableException
from access_engine.models.permission_state import (
    ActionScope,
    PermissionState,
    merge_feature_grants,
    merge_view_states,
)
from access_engine.models.resolved_permissions import Decision, FeatureKey, ResolvedPermissionSet
from access_engine.repositories.catalog_repository import CatalogRepository
from access_engine.repositories.permission_repository import PermissionRepository
from access_engine.repositories.user_level_assignment_repository import (
    UserLevelAssignmentRepository,
)
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.tenant_guard import TenantGuard
from access_engine.services.unit_of_work import store_errors

logger = logging.getLogger(__name__)


class PermissionResolver:
    """
    Computes a user's effective permissions from all of their user levels.

    Flow: tenant guard -> cache -> (on miss) load assignments and permission
    rows -> merge per view and per (feature, action) -> module gating ->
    cache. Any store failure during loading yields an all-denied set marked
    fail_closed instead of an error, and that set is never cached.
    """

    def __init__(self, db: Session, cache: PermissionCache):
        self.db = db
        self.cache = cache
        self.guard = TenantGuard(db)
        self.assignment_repo = UserLevelAssignmentRepository(db)
        self.permission_repo = PermissionRepository(db)
        self.catalog_repo = CatalogRepository(db)

    def resolve_all(self, tenant_id: int, user_id: int) -> ResolvedPermissionSet:
        """
        Resolve every view and feature decision of a user.

        Raises:
            NotFoundException: If the user is unknown or outside the tenant
        """
        # Taken before the first read so a write committing after it is always noticed
        generation = self.cache.generation(tenant_id, user_id)
        try:
            self.guard.ensure_user(tenant_id, user_id)
        except StoreUnavailableException:
            logger.error("Tenant check failed, denying all: tenant=%s user=%s", tenant_id, user_id)
            return ResolvedPermissionSet.denied(tenant_id, user_id, fail_closed=True)

        cached = self.cache.get(tenant_id, user_id)
        if cached is not None:
            return cached

        try:
            resolved = self._compute(tenant_id, user_id)
        except StoreUnavailableException:
            logger.error(
                "Permission resolution failed, denying all: tenant=%s user=%s", tenant_id, user_id
            )
            return ResolvedPermissionSet.denied(tenant_id, user_id, fail_closed=True)

        self.cache.put(tenant_id, user_id, resolved, generation=generation)
        return resolved

    def resolve_views(self, tenant_id: int, user_id: int) -> frozenset[str]:
        """Visible view ids of a user"""
        return self.resolve_all(tenant_id, user_id).views

    def resolve_feature(
        self, tenant_id: int, user_id: int, feature_id: str, action: str
    ) -> Decision:
        """Decision for one feature action"""
        return self.resolve_all(tenant_id, user_id).decision(feature_id, action)

    def _compute(self, tenant_id: int, user_id: int) -> ResolvedPermissionSet:
        with store_errors():
            level_ids = self.assignment_repo.get_level_ids_for_user(tenant_id, user_id)
            if not level_ids:
                return ResolvedPermissionSet.denied(tenant_id, user_id)

            view_rows = self.permission_repo.get_view_permissions(level_ids)
            feature_rows = self.permission_repo.get_feature_permissions(level_ids)
            gated_views = self.catalog_repo.get_gated_view_ids(tenant_id)
            gated_features = self.catalog_repo.get_gated_feature_ids(tenant_id)

        view_states: dict[str, list[PermissionState]] = defaultdict(list)
        for row in view_rows:
            # Rows written under another tenant never count, whatever the FK says
            if row.tenant_id == tenant_id:
                view_states[row.view_id].append(row.state)

        feature_grants: dict[FeatureKey, list[tuple[PermissionState, Optional[ActionScope]]]] = (
            defaultdict(list)
        )
        for row in feature_rows:
            if row.tenant_id == tenant_id:
                feature_grants[(row.feature_id, row.action)].append((row.state, row.scope))

        views = frozenset(
            view_id
            for view_id, states in view_states.items()
            if merge_view_states(states) and view_id not in gated_views
        )

        features: dict[FeatureKey, ActionScope] = {}
        for key, grants in feature_grants.items():
            scope = merge_feature_grants(grants)
            if scope is not None and key[0] not in gated_features:
                features[key] = scope

        logger.debug(
            "Resolved permissions: tenant=%s user=%s levels=%s views=%d features=%d",
            tenant_id,
            user_id,
            sorted(level_ids),
            len(views),
            len(features),
        )
        return ResolvedPermissionSet(
            tenant_id=tenant_id,
            user_id=user_id,
            views=views,
            features=features,
            user_level_ids=frozenset(level_ids),
        )
