"""Feature catalog model (a business capability gated by actions)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from access_engine.models.base import Base, TimestampMixin


class Feature(Base, TimestampMixin):
    __tablename__ = "features"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Stable key, e.g. "users.create"
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Feature(id='{self.id}')>"
