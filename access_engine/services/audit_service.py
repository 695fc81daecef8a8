"""Audit trail for administrative mutations."""

from typing import Literal, Optional

from sqlalchemy.orm import Session

from access_engine.config import settings
from access_engine.models.audit_log import AuditLogEntry, AuditEntityType, AuditAction
from access_engine.repositories.audit_log_repository import AuditLogFilters, AuditLogRepository
from access_engine.services.tenant_guard import TenantGuard
from access_engine.services.unit_of_work import store_errors


class AuditService:
    """
    Records and queries audit entries.

    record() only flushes: the entry commits (or rolls back) together
    with the mutation it describes.

    Known limitation: with the default "global" cap scope, one busy tenant
    can evict another tenant's history. Set AUDIT_LOG_CAP_SCOPE=tenant to
    cap each tenant separately.
    """

    def __init__(
        self,
        db: Session,
        max_entries: Optional[int] = None,
        cap_scope: Optional[Literal["global", "tenant"]] = None,
    ):
        self.db = db
        self.guard = TenantGuard(db)
        self.repo = AuditLogRepository(
            db,
            max_entries=max_entries or settings.AUDIT_LOG_MAX_ENTRIES,
            cap_scope=cap_scope or settings.AUDIT_LOG_CAP_SCOPE,
        )

    def record(
        self,
        tenant_id: int,
        actor_user_id: int,
        entity_type: AuditEntityType,
        entity_id: str | int,
        action: AuditAction,
        before_state=None,
        after_state=None,
    ) -> AuditLogEntry:
        """Append one entry inside the caller's transaction"""
        entry = AuditLogEntry(
            tenant_id=tenant_id,
            actor_user_id=actor_user_id,
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            before_state=before_state,
            after_state=after_state,
        )
        return self.repo.append(entry)

    def query(
        self,
        tenant_id: int,
        actor_user_id: int,
        filters: AuditLogFilters,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AuditLogEntry], int]:
        """
        Query one tenant's audit entries, newest first.

        Raises:
            NotFoundException: If the actor is not a member of the tenant
            StoreUnavailableException: If the store cannot be read
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        with store_errors():
            return self.repo.query(tenant_id, filters, limit=limit, offset=offset)
