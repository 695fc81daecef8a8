"""Repository for UserLevelAssignment model operations."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from access_engine.models.user_level_assignment import UserLevelAssignment


class UserLevelAssignmentRepository:
    """Repository for user -> level assignments and the level -> users index"""

    def __init__(self, db: Session):
        self.db = db

    def get_level_ids_for_user(self, tenant_id: int, user_id: int) -> set[int]:
        """Levels currently assigned to a user within a tenant"""
        rows = (
            self.db.query(UserLevelAssignment.user_level_id)
            .filter(
                UserLevelAssignment.tenant_id == tenant_id,
                UserLevelAssignment.user_id == user_id,
            )
            .all()
        )
        return {row.user_level_id for row in rows}

    def get_user_ids_for_level(self, tenant_id: int, user_level_id: int) -> set[int]:
        """Users currently holding a level (the invalidation index)"""
        rows = (
            self.db.query(UserLevelAssignment.user_id)
            .filter(
                UserLevelAssignment.tenant_id == tenant_id,
                UserLevelAssignment.user_level_id == user_level_id,
            )
            .all()
        )
        return {row.user_id for row in rows}

    def count_for_level(self, user_level_id: int) -> int:
        """Number of active assignments referencing a level"""
        return (
            self.db.query(func.count(UserLevelAssignment.id))
            .filter(UserLevelAssignment.user_level_id == user_level_id)
            .scalar()
        )

    def replace_for_user(self, tenant_id: int, user_id: int, user_level_ids: set[int]) -> None:
        """
        Replace a user's assignments within a tenant without committing.
        Caller responsible for commit.
        """
        self.db.query(UserLevelAssignment).filter(
            UserLevelAssignment.tenant_id == tenant_id,
            UserLevelAssignment.user_id == user_id,
        ).delete(synchronize_session="fetch")
        self.db.add_all(
            UserLevelAssignment(tenant_id=tenant_id, user_id=user_id, user_level_id=level_id)
            for level_id in sorted(user_level_ids)
        )
        self.db.flush()
