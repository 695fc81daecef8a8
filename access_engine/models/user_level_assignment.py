"""Many-to-many assignment of user levels to users."""

from sqlalchemy import ForeignKey, Integer, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from access_engine.models.base import Base, TimestampMixin


class UserLevelAssignment(Base, TimestampMixin):
    """
    A user holds zero or more levels within one tenant.

    The (tenant_id, user_level_id) index backs the level -> users lookup
    used for cache invalidation.
    """

    __tablename__ = "user_level_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_level_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_levels.id", ondelete="RESTRICT"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "user_level_id", name="uq_user_level_assignment"),
        Index("ix_assignments_tenant_user", "tenant_id", "user_id"),
        Index("ix_assignments_tenant_level", "tenant_id", "user_level_id"),
    )
