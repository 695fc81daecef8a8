"""Module catalog and per-tenant module enablement."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from access_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from access_engine.models.view import View
    from access_engine.models.feature import Feature


module_views = Table(
    "module_views",
    Base.metadata,
    Column("module_id", String(100), ForeignKey("modules.id", ondelete="CASCADE"), primary_key=True),
    Column("view_id", String(100), ForeignKey("views.id", ondelete="CASCADE"), primary_key=True),
)

module_features = Table(
    "module_features",
    Base.metadata,
    Column("module_id", String(100), ForeignKey("modules.id", ondelete="CASCADE"), primary_key=True),
    Column("feature_id", String(100), ForeignKey("features.id", ondelete="CASCADE"), primary_key=True),
)


class Module(Base, TimestampMixin):
    """
    A purchasable bundle of views and features.

    A view or feature attached to at least one module is only reachable
    in tenants that enabled one of those modules. Views and features
    attached to no module are never gated.
    """

    __tablename__ = "modules"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    views: Mapped[list["View"]] = relationship("View", secondary=module_views)
    features: Mapped[list["Feature"]] = relationship("Feature", secondary=module_features)

    def __repr__(self) -> str:
        return f"<Module(id='{self.id}', code='{self.code}')>"


class TenantModule(Base, TimestampMixin):
    """Module enabled for a tenant."""

    __tablename__ = "tenant_modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    module_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("modules.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "module_id", name="uq_tenant_module"),
    )
