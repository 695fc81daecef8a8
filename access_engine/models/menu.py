"""Menu catalog used to build the permission-filtered navigation."""

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from access_engine.models.base import Base, TimestampMixin


class MenuItem(Base, TimestampMixin):
    """
    Top-level menu entry.

    tenant_id NULL marks a global (default) entry shown to every tenant.
    """

    __tablename__ = "menu_items"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    tenant_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    sequence_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    view_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("views.id", ondelete="SET NULL"), nullable=True
    )
    feature_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("features.id", ondelete="SET NULL"), nullable=True
    )
    is_entrypoint: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    icon: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Relationships
    sub_items: Mapped[list["SubMenuItem"]] = relationship(
        "SubMenuItem",
        back_populates="menu_item",
        cascade="all, delete-orphan",
        order_by="SubMenuItem.sequence_index",
    )


class SubMenuItem(Base, TimestampMixin):
    """Entry nested under a menu item."""

    __tablename__ = "sub_menu_items"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    tenant_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    menu_item_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("menu_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    sequence_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    view_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("views.id", ondelete="SET NULL"), nullable=True
    )
    feature_id: Mapped[str | None] = mapped_column(
        String(100), ForeignKey("features.id", ondelete="SET NULL"), nullable=True
    )

    menu_item: Mapped["MenuItem"] = relationship("MenuItem", back_populates="sub_items")
