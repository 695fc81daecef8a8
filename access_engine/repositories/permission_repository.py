"""Repository for per-level view and feature permission rows."""

from typing import Optional

from sqlalchemy.orm import Session

from access_engine.models.level_permission import (
    UserLevelViewPermission,
    UserLevelFeaturePermission,
)
from access_engine.models.permission_state import ActionScope, PermissionState


class PermissionRepository:
    """
    Repository for the view and feature permission matrices.

    Replace methods flush but never commit. Caller responsible for commit.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_view_permissions(self, user_level_ids: set[int]) -> list[UserLevelViewPermission]:
        """Get all view rows of the given levels"""
        if not user_level_ids:
            return []
        return (
            self.db.query(UserLevelViewPermission)
            .filter(UserLevelViewPermission.user_level_id.in_(user_level_ids))
            .all()
        )

    def get_feature_permissions(
        self, user_level_ids: set[int]
    ) -> list[UserLevelFeaturePermission]:
        """Get all feature rows of the given levels"""
        if not user_level_ids:
            return []
        return (
            self.db.query(UserLevelFeaturePermission)
            .filter(UserLevelFeaturePermission.user_level_id.in_(user_level_ids))
            .all()
        )

    def replace_view_permissions(
        self,
        tenant_id: int,
        user_level_id: int,
        views: dict[str, PermissionState],
    ) -> None:
        """
        Replace the view matrix of one level.

        Inherit entries are dropped: a missing row already means inherit.
        """
        self.db.query(UserLevelViewPermission).filter(
            UserLevelViewPermission.user_level_id == user_level_id
        ).delete(synchronize_session="fetch")
        self.db.add_all(
            UserLevelViewPermission(
                tenant_id=tenant_id,
                user_level_id=user_level_id,
                view_id=view_id,
                state=state,
            )
            for view_id, state in sorted(views.items())
            if state is not PermissionState.INHERIT
        )
        self.db.flush()

    def replace_feature_permissions(
        self,
        tenant_id: int,
        user_level_id: int,
        features: dict[tuple[str, str], tuple[PermissionState, Optional[ActionScope]]],
    ) -> None:
        """Replace the feature matrix of one level (inherit entries dropped)"""
        self.db.query(UserLevelFeaturePermission).filter(
            UserLevelFeaturePermission.user_level_id == user_level_id
        ).delete(synchronize_session="fetch")
        self.db.add_all(
            UserLevelFeaturePermission(
                tenant_id=tenant_id,
                user_level_id=user_level_id,
                feature_id=feature_id,
                action=action,
                state=state,
                scope=scope,
            )
            for (feature_id, action), (state, scope) in sorted(features.items())
            if state is not PermissionState.INHERIT
        )
        self.db.flush()

    def get_view_permission(
        self, user_level_id: int, view_id: str
    ) -> Optional[UserLevelViewPermission]:
        """Get the explicit row for one view of a level (None means inherit)"""
        return (
            self.db.query(UserLevelViewPermission)
            .filter(
                UserLevelViewPermission.user_level_id == user_level_id,
                UserLevelViewPermission.view_id == view_id,
            )
            .first()
        )

    def get_feature_permission(
        self, user_level_id: int, feature_id: str, action: str
    ) -> Optional[UserLevelFeaturePermission]:
        """Get the explicit row for one feature action of a level"""
        return (
            self.db.query(UserLevelFeaturePermission)
            .filter(
                UserLevelFeaturePermission.user_level_id == user_level_id,
                UserLevelFeaturePermission.feature_id == feature_id,
                UserLevelFeaturePermission.action == action,
            )
            .first()
        )

    def set_view_permission(
        self, tenant_id: int, user_level_id: int, view_id: str, state: PermissionState
    ) -> None:
        """Upsert one view row; inherit removes it"""
        row = self.get_view_permission(user_level_id, view_id)
        if state is PermissionState.INHERIT:
            if row is not None:
                self.db.delete(row)
        elif row is None:
            self.db.add(
                UserLevelViewPermission(
                    tenant_id=tenant_id, user_level_id=user_level_id, view_id=view_id, state=state
                )
            )
        else:
            row.state = state
        self.db.flush()

    def set_feature_permission(
        self,
        tenant_id: int,
        user_level_id: int,
        feature_id: str,
        action: str,
        state: PermissionState,
        scope: Optional[ActionScope],
    ) -> None:
        """Upsert one feature action row; inherit removes it"""
        row = self.get_feature_permission(user_level_id, feature_id, action)
        if state is PermissionState.INHERIT:
            if row is not None:
                self.db.delete(row)
        elif row is None:
            self.db.add(
                UserLevelFeaturePermission(
                    tenant_id=tenant_id,
                    user_level_id=user_level_id,
                    feature_id=feature_id,
                    action=action,
                    state=state,
                    scope=scope,
                )
            )
        else:
            row.state = state
            row.scope = scope
        self.db.flush()
