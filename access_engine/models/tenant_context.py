"""Acting-tenant context resolved for each request."""

from dataclasses import dataclass

from access_engine.models.tenant_membership import TenantRole
from access_engine.models.tenant import Tenant
from access_engine.models.user import User


@dataclass(frozen=True)
class TenantContext:
    """
    Who is calling and in which tenant.

    Built from the JWT 'sub' and 'tenant_id' claims and checked against a
    membership row. Engine calls receive tenant.id as the acting tenant;
    role only decides access to the administrative endpoints.
    """

    user: User
    tenant: Tenant
    role: TenantRole

    def can_administer(self) -> bool:
        """User levels, permission matrices, assignments and the audit log"""
        return self.role in (TenantRole.OWNER, TenantRole.ADMIN)

    def can_manage_modules(self) -> bool:
        """Enabled modules change what every user of the tenant can reach"""
        return self.role is TenantRole.OWNER

    def __repr__(self) -> str:
        return f"<TenantContext(user_id={self.user.id}, tenant_id={self.tenant.id}, role={self.role.value})>"
