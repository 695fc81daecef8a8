"""Repository for UserLevel model operations."""

from sqlalchemy.orm import Session
from access_engine.models.user_level import UserLevel


class UserLevelRepository:
    """
    Repository for UserLevel model operations.

    Write methods flush but never commit; the calling service commits
    once the audit entry for the same operation is recorded.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_level_id: int) -> UserLevel | None:
        """Get level by ID regardless of tenant (tenant guard use only)"""
        return self.db.query(UserLevel).filter(UserLevel.id == user_level_id).first()

    def get_by_ids(self, user_level_ids: set[int]) -> list[UserLevel]:
        """Get levels by ID regardless of tenant (tenant guard use only)"""
        if not user_level_ids:
            return []
        return self.db.query(UserLevel).filter(UserLevel.id.in_(user_level_ids)).all()

    def get_by_name(self, tenant_id: int, name: str) -> UserLevel | None:
        """Get level by its name within a tenant"""
        return (
            self.db.query(UserLevel)
            .filter(UserLevel.tenant_id == tenant_id, UserLevel.name == name)
            .first()
        )

    def get_by_tenant(self, tenant_id: int) -> list[UserLevel]:
        """Get all levels of a tenant ordered by name"""
        return (
            self.db.query(UserLevel)
            .filter(UserLevel.tenant_id == tenant_id)
            .order_by(UserLevel.name)
            .all()
        )

    def create(self, user_level: UserLevel) -> UserLevel:
        """Add a new level and assign its ID without committing"""
        self.db.add(user_level)
        self.db.flush()
        return user_level

    def update(self, user_level: UserLevel) -> UserLevel:
        """Flush pending changes of a level"""
        self.db.flush()
        return user_level

    def delete(self, user_level: UserLevel) -> None:
        """Delete level (cascades to its permission rows) without committing"""
        self.db.delete(user_level)
        self.db.flush()
