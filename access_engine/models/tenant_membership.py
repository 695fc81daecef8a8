"""Membership of a user in a tenant and the administrative role it carries."""

from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from access_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from access_engine.models.tenant import Tenant
    from access_engine.models.user import User


class TenantRole(str, PyEnum):
    """
    Administrative role within a tenant.

    Roles only gate the administrative API:
    - OWNER: everything ADMIN can do, plus the tenant's enabled modules
    - ADMIN: user levels, permission matrices, assignments, audit log
    - MEMBER / VIEWER: own permissions and navigation only

    What a user may see or do inside the product is decided by the user
    levels assigned to them, never by this role.
    """

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class TenantMembership(Base, TimestampMixin):
    """
    A user belongs to a tenant iff a membership row exists.

    Memberships are provisioned outside the engine. The tenant guard reads
    them to decide whether a user id may be referenced from a tenant.
    """

    __tablename__ = "tenant_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[TenantRole] = mapped_column(
        Enum(TenantRole, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=TenantRole.MEMBER,
    )

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="memberships")
    user: Mapped["User"] = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_user"),
    )

    def __repr__(self) -> str:
        return f"<TenantMembership(tenant_id={self.tenant_id}, user_id={self.user_id}, role={self.role.value})>"
