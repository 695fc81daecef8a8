"""View catalog model (an addressable page/route of the product)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from access_engine.models.base import Base, TimestampMixin


class View(Base, TimestampMixin):
    """
    Global catalog entry for a UI surface.

    Managed outside the engine. Visibility per user is decided by the
    view permissions of their user levels.
    """

    __tablename__ = "views"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)

    def __repr__(self) -> str:
        return f"<View(id='{self.id}', url='{self.url}')>"
