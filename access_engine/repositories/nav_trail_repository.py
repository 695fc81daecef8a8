"""Repository for recorded navigation visits."""

from sqlalchemy.orm import Session

from access_engine.models.nav_trail import NavTrailEntry


class NavTrailRepository:
    """
    Repository for NavTrailEntry.

    Each user keeps at most max_entries visits per tenant; older visits are
    evicted first. append flushes but never commits.
    """

    def __init__(self, db: Session, max_entries: int):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.db = db
        self.max_entries = max_entries

    def append(self, entry: NavTrailEntry) -> NavTrailEntry:
        """Add a visit and evict the user's oldest visits beyond the cap"""
        self.db.add(entry)
        self.db.flush()
        self._evict_overflow(entry.tenant_id, entry.user_id)
        return entry

    def _evict_overflow(self, tenant_id: int, user_id: int) -> None:
        query = self.db.query(NavTrailEntry.id).filter(
            NavTrailEntry.tenant_id == tenant_id,
            NavTrailEntry.user_id == user_id,
        )
        overflow = query.count() - self.max_entries
        if overflow <= 0:
            return

        oldest_ids = [row.id for row in query.order_by(NavTrailEntry.id.asc()).limit(overflow).all()]
        self.db.query(NavTrailEntry).filter(NavTrailEntry.id.in_(oldest_ids)).delete(
            synchronize_session="fetch"
        )
        self.db.flush()

    def get_session_entries(self, tenant_id: int, user_id: int, session_id: str) -> list[NavTrailEntry]:
        """Visits of one session, oldest first"""
        return (
            self.db.query(NavTrailEntry)
            .filter(
                NavTrailEntry.tenant_id == tenant_id,
                NavTrailEntry.user_id == user_id,
                NavTrailEntry.session_id == session_id,
            )
            .order_by(NavTrailEntry.id.asc())
            .all()
        )

    def get_user_entries(self, tenant_id: int, user_id: int) -> list[NavTrailEntry]:
        """Visits of a user across all sessions, newest first"""
        return (
            self.db.query(NavTrailEntry)
            .filter(
                NavTrailEntry.tenant_id == tenant_id,
                NavTrailEntry.user_id == user_id,
            )
            .order_by(NavTrailEntry.id.desc())
            .all()
        )

    def count(self, tenant_id: int, user_id: int) -> int:
        return (
            self.db.query(NavTrailEntry)
            .filter(NavTrailEntry.tenant_id == tenant_id, NavTrailEntry.user_id == user_id)
            .count()
        )
