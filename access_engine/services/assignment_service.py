import logging

from sqlalchemy.orm import Session

from access_engine.models.audit_log import AuditAction, AuditEntityType
from access_engine.repositories.user_level_assignment_repository import (
    UserLevelAssignmentRepository,
)
from access_engine.services.audit_service import AuditService
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.tenant_guard import TenantGuard
from access_engine.services.unit_of_work import atomic, store_errors

logger = logging.getLogger(__name__)


class AssignmentService:
    """Service layer for user -> user level assignments"""

    def __init__(self, db: Session, cache: PermissionCache, audit: AuditService | None = None):
        self.db = db
        self.cache = cache
        self.guard = TenantGuard(db)
        self.audit = audit or AuditService(db)
        self.assignment_repo = UserLevelAssignmentRepository(db)

    def get_user_level_ids(self, tenant_id: int, actor_user_id: int, user_id: int) -> set[int]:
        """
        Levels currently assigned to a user.

        Raises:
            NotFoundException: If the user doesn't exist or belongs to another tenant
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        self.guard.ensure_user(tenant_id, user_id)
        with store_errors():
            return self.assignment_repo.get_level_ids_for_user(tenant_id, user_id)

    def set_user_level_assignments(
        self,
        tenant_id: int,
        actor_user_id: int,
        user_id: int,
        user_level_ids: set[int],
    ) -> set[int]:
        """
        Replace the set of levels a user holds.

        An empty set is valid and leaves the user with no permissions.

        Returns:
            The new set of level ids

        Raises:
            NotFoundException: If the user or any level doesn't exist
                or belongs to another tenant
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        self.guard.ensure_user(tenant_id, user_id)
        user_level_ids = set(user_level_ids)
        self.guard.ensure_levels(tenant_id, user_level_ids)

        with self.cache.invalidating(tenant_id, [user_id]):
            with atomic(self.db):
                before = self.assignment_repo.get_level_ids_for_user(tenant_id, user_id)
                self.assignment_repo.replace_for_user(tenant_id, user_id, user_level_ids)
                self.audit.record(
                    tenant_id,
                    actor_user_id,
                    AuditEntityType.USER_LEVEL_ASSIGNMENT,
                    user_id,
                    AuditAction.ASSIGNMENT_CHANGE,
                    before_state={"user_level_ids": sorted(before)},
                    after_state={"user_level_ids": sorted(user_level_ids)},
                )

        logger.info(
            "User level assignments replaced: tenant=%s user=%s levels=%s",
            tenant_id,
            user_id,
            sorted(user_level_ids),
        )
        return user_level_ids
