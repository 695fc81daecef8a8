"""User level model: a tenant-scoped, role-like bundle of permissions."""

from sqlalchemy import String, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from access_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from access_engine.models.tenant import Tenant
    from access_engine.models.level_permission import (
        UserLevelViewPermission,
        UserLevelFeaturePermission,
    )


class UserLevel(Base, TimestampMixin):
    """
    Named permission bundle, assignable to any number of users.

    Constraints:
    - Unique(tenant_id, name)
    - Cannot be deleted while assigned (enforced at service layer)
    """

    __tablename__ = "user_levels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="user_levels")
    view_permissions: Mapped[list["UserLevelViewPermission"]] = relationship(
        "UserLevelViewPermission",
        cascade="all, delete-orphan",
    )
    feature_permissions: Mapped[list["UserLevelFeaturePermission"]] = relationship(
        "UserLevelFeaturePermission",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_user_level_tenant_name"),
    )

    def to_audit_state(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}

    def __repr__(self) -> str:
        return f"<UserLevel(id={self.id}, tenant_id={self.tenant_id}, name='{self.name}')>"
