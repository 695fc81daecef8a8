"""Tenant: the isolation boundary every permission row is scoped to."""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from access_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from access_engine.models.module import TenantModule
    from access_engine.models.tenant_membership import TenantMembership
    from access_engine.models.user_level import UserLevel


class Tenant(Base, TimestampMixin):
    """
    A customer company.

    User levels, permission rows, assignments and audit entries carry a
    tenant_id; no engine query crosses that boundary.
    """

    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    memberships: Mapped[list["TenantMembership"]] = relationship(
        "TenantMembership",
        back_populates="tenant",
        cascade="all, delete-orphan",
    )
    user_levels: Mapped[list["UserLevel"]] = relationship(
        "UserLevel",
        back_populates="tenant",
        cascade="all, delete-orphan",
    )
    enabled_modules: Mapped[list["TenantModule"]] = relationship(
        "TenantModule",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name='{self.name}')>"
