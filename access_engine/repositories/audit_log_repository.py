"""Repository for the bounded, append-only audit log."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

from sqlalchemy.orm import Session

from access_engine.models.audit_log import AuditLogEntry, AuditEntityType, AuditAction


@dataclass
class AuditLogFilters:
    """Optional filters for audit log queries (all AND-ed)."""

    entity_type: Optional[AuditEntityType] = None
    action: Optional[AuditAction] = None
    entity_id: Optional[str] = None
    user_id: Optional[int] = None  # actor
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class AuditLogRepository:
    """
    Repository for AuditLogEntry.

    The log holds at most max_entries rows. With cap_scope "global" the
    cap is shared by every tenant in the store, so the oldest entry is
    evicted regardless of which tenant wrote it. With "tenant" each tenant
    keeps its own newest max_entries rows.
    """

    def __init__(
        self,
        db: Session,
        max_entries: int,
        cap_scope: Literal["global", "tenant"] = "global",
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.db = db
        self.max_entries = max_entries
        self.cap_scope = cap_scope

    def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        """
        Add an entry and evict the oldest rows beyond the cap.

        Flushes without committing so the entry is part of the caller's
        transaction.
        """
        self.db.add(entry)
        self.db.flush()
        self._evict_overflow(entry.tenant_id)
        return entry

    def _evict_overflow(self, tenant_id: int) -> None:
        query = self.db.query(AuditLogEntry.id)
        if self.cap_scope == "tenant":
            query = query.filter(AuditLogEntry.tenant_id == tenant_id)

        overflow = query.count() - self.max_entries
        if overflow <= 0:
            return

        oldest_ids = [row.id for row in query.order_by(AuditLogEntry.id.asc()).limit(overflow).all()]
        self.db.query(AuditLogEntry).filter(AuditLogEntry.id.in_(oldest_ids)).delete(
            synchronize_session="fetch"
        )
        self.db.flush()

    def count(self, tenant_id: Optional[int] = None) -> int:
        """Number of stored entries, optionally for one tenant"""
        query = self.db.query(AuditLogEntry)
        if tenant_id is not None:
            query = query.filter(AuditLogEntry.tenant_id == tenant_id)
        return query.count()

    def query(
        self,
        tenant_id: int,
        filters: AuditLogFilters,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AuditLogEntry], int]:
        """
        Get entries of one tenant, newest first.

        Args:
            tenant_id: Tenant ID for isolation
            filters: Optional entity/action/actor/date filters
            limit: Maximum number of results
            offset: Pagination offset

        Returns:
            Tuple of (entries list, total count)
        """
        query = self.db.query(AuditLogEntry).filter(AuditLogEntry.tenant_id == tenant_id)

        if filters.entity_type is not None:
            query = query.filter(AuditLogEntry.entity_type == filters.entity_type)

        if filters.action is not None:
            query = query.filter(AuditLogEntry.action == filters.action)

        if filters.entity_id is not None:
            query = query.filter(AuditLogEntry.entity_id == filters.entity_id)

        if filters.user_id is not None:
            query = query.filter(AuditLogEntry.actor_user_id == filters.user_id)

        if filters.start is not None:
            query = query.filter(AuditLogEntry.timestamp >= filters.start)

        if filters.end is not None:
            query = query.filter(AuditLogEntry.timestamp <= filters.end)

        # Get total count before pagination
        total = query.count()

        entries = (
            query.order_by(AuditLogEntry.timestamp.desc(), AuditLogEntry.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

        return entries, total
