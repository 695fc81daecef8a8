"""Per-session navigation history used for breadcrumbs and recents."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from access_engine.models.base import Base, utcnow

if TYPE_CHECKING:
    from access_engine.models.view import View


class NavTrailEntry(Base):
    """
    One visit of a view by a user in a browser session.

    Rows are only appended; the breadcrumb trail of a session is rebuilt
    from its visits in order. depth is the breadcrumb position the visit
    landed on when it was recorded.
    """

    __tablename__ = "nav_trail_entries"

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
    session_id: Mapped[str] = mapped_column(String(128), nullable=False)
    depth: Mapped[int] = mapped_column(Integer, nullable=False)
    view_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("views.id", ondelete="CASCADE"),
        nullable=False,
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    view: Mapped["View"] = relationship("View", lazy="joined")

    __table_args__ = (
        Index("ix_nav_trail_tenant_user_session", "tenant_id", "user_id", "session_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<NavTrailEntry(user_id={self.user_id}, session_id='{self.session_id}', "
            f"depth={self.depth}, view_id='{self.view_id}')>"
        )
