"""Tenant ownership checks applied before any permission data is touched."""

import logging

from sqlalchemy.orm import Session

from access_engine.core.exceptions import (
    CrossTenantAccessException,
    NotFoundException,
)
from access_engine.models.user_level import UserLevel
from access_engine.repositories.tenant_membership_repository import TenantMembershipRepository
from access_engine.repositories.user_level_repository import UserLevelRepository
from access_engine.repositories.user_repository import UserRepository
from access_engine.services.unit_of_work import store_errors

logger = logging.getLogger(__name__)


class TenantGuard:
    """
    Verifies that every entity referenced by a call belongs to the acting tenant.

    Entities owned by another tenant raise CrossTenantAccessException,
    which carries the same message as the plain NotFoundException for a
    missing entity, so callers cannot discover other tenants' data.
    """

    USER_NOT_FOUND = "User not found"
    LEVEL_NOT_FOUND = "User level not found"

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.membership_repo = TenantMembershipRepository(db)
        self.level_repo = UserLevelRepository(db)

    def ensure_user(self, tenant_id: int, user_id: int) -> None:
        """
        Require the user to be a member of the tenant.

        Raises:
            NotFoundException: If the user does not exist
            CrossTenantAccessException: If the user exists outside this tenant
            StoreUnavailableException: If the store cannot be read
        """
        with store_errors():
            if self.membership_repo.is_member(user_id, tenant_id):
                return
            exists = self.user_repo.exists(user_id)

        if exists:
            logger.warning(
                "Cross-tenant user reference rejected: tenant=%s user=%s", tenant_id, user_id
            )
            raise CrossTenantAccessException(self.USER_NOT_FOUND)
        raise NotFoundException(self.USER_NOT_FOUND)

    def ensure_level(self, tenant_id: int, user_level_id: int) -> UserLevel:
        """
        Require the level to belong to the tenant.

        Returns:
            The level

        Raises:
            NotFoundException: If the level does not exist
            CrossTenantAccessException: If the level belongs to another tenant
        """
        with store_errors():
            level = self.level_repo.get_by_id(user_level_id)

        if level is None:
            raise NotFoundException(self.LEVEL_NOT_FOUND)
        if level.tenant_id != tenant_id:
            logger.warning(
                "Cross-tenant level reference rejected: tenant=%s level=%s",
                tenant_id,
                user_level_id,
            )
            raise CrossTenantAccessException(self.LEVEL_NOT_FOUND)
        return level

    def ensure_levels(self, tenant_id: int, user_level_ids: set[int]) -> list[UserLevel]:
        """Require every level to exist and belong to the tenant"""
        with store_errors():
            levels = self.level_repo.get_by_ids(user_level_ids)

        if len(levels) != len(user_level_ids):
            raise NotFoundException(self.LEVEL_NOT_FOUND)
        foreign = [level.id for level in levels if level.tenant_id != tenant_id]
        if foreign:
            logger.warning(
                "Cross-tenant level reference rejected: tenant=%s levels=%s", tenant_id, foreign
            )
            raise CrossTenantAccessException(self.LEVEL_NOT_FOUND)
        return levels
