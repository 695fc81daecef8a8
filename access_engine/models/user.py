from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from access_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from access_engine.models.tenant_membership import TenantMembership
    from access_engine.models.user_level_assignment import UserLevelAssignment


class User(Base, TimestampMixin):
    """
    A person known to the auth provider.

    No credentials are stored; auth_user_id is the JWT 'sub' claim and the
    row is provisioned on the first authenticated request. Permissions come
    from the user levels assigned per tenant.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    auth_user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    memberships: Mapped[list["TenantMembership"]] = relationship(
        "TenantMembership",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    # Read-only: assignments are replaced through their repository
    level_assignments: Mapped[list["UserLevelAssignment"]] = relationship(
        "UserLevelAssignment",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, auth_user_id='{self.auth_user_id}')>"
