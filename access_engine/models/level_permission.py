"""Per-level permission rows for views and feature actions."""

from sqlalchemy import Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from access_engine.models.base import Base, TimestampMixin
from access_engine.models.permission_state import ActionScope, PermissionState


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


class UserLevelViewPermission(Base, TimestampMixin):
    """
    Decision one user level holds for one view.

    Only explicit allow/deny rows are stored; a missing row means inherit.
    """

    __tablename__ = "user_level_view_permissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_level_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_levels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    view_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("views.id", ondelete="CASCADE"),
        nullable=False,
    )
    state: Mapped[PermissionState] = mapped_column(
        Enum(PermissionState, native_enum=False, values_callable=_enum_values),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_level_id", "view_id", name="uq_level_view"),
    )


class UserLevelFeaturePermission(Base, TimestampMixin):
    """
    Decision one user level holds for one (feature, action) pair.

    scope is set only when state is allow.
    """

    __tablename__ = "user_level_feature_permissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_level_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_levels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    feature_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False,
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    state: Mapped[PermissionState] = mapped_column(
        Enum(PermissionState, native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    scope: Mapped[ActionScope | None] = mapped_column(
        Enum(ActionScope, native_enum=False, values_callable=_enum_values),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("user_level_id", "feature_id", "action", name="uq_level_feature_action"),
    )
