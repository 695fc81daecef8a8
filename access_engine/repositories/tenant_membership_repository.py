"""Repository for tenant membership lookups (who may act in which tenant)."""

from sqlalchemy import exists, select
from sqlalchemy.orm import Session, joinedload

from access_engine.models.tenant_membership import TenantMembership


class TenantMembershipRepository:
    """Read-only access to TenantMembership; memberships are managed outside the engine"""

    def __init__(self, db: Session):
        self.db = db

    def get_with_tenant(self, user_id: int, tenant_id: int) -> TenantMembership | None:
        """
        Membership of a user in a tenant, with the tenant loaded.

        Used to build the request's tenant context in one query.
        """
        return (
            self.db.query(TenantMembership)
            .options(joinedload(TenantMembership.tenant))
            .filter(
                TenantMembership.user_id == user_id,
                TenantMembership.tenant_id == tenant_id,
            )
            .first()
        )

    def is_member(self, user_id: int, tenant_id: int) -> bool:
        """True if the user belongs to the tenant"""
        stmt = select(
            exists().where(
                TenantMembership.user_id == user_id,
                TenantMembership.tenant_id == tenant_id,
            )
        )
        return bool(self.db.execute(stmt).scalar())
