"""Append-only audit record of administrative mutations."""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import JSON, DateTime, Enum, Integer, String, Index, event
from sqlalchemy.orm import Mapped, mapped_column

from access_engine.models.base import Base, utcnow


class AuditEntityType(str, PyEnum):
    USER_LEVEL = "user_level"
    VIEW_PERMISSIONS = "view_permissions"
    FEATURE_PERMISSIONS = "feature_permissions"
    USER_LEVEL_ASSIGNMENT = "user_level_assignment"
    TENANT_MODULES = "tenant_modules"


class AuditAction(str, PyEnum):
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    ASSIGNMENT_CHANGE = "AssignmentChange"


class AuditLogEntry(Base):
    """
    One administrative mutation with before/after payloads.

    No foreign keys: entries outlive the levels and users they describe.
    Rows are never updated; eviction (oldest first) is the only delete.
    """

    __tablename__ = "audit_log_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    actor_user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    entity_type: Mapped[AuditEntityType] = mapped_column(
        Enum(AuditEntityType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    entity_id: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    before_state: Mapped[dict | list | None] = mapped_column(JSON, nullable=True)
    after_state: Mapped[dict | list | None] = mapped_column(JSON, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_audit_tenant_timestamp", "tenant_id", "timestamp"),
    )


@event.listens_for(AuditLogEntry, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise ValueError("Audit log entries are immutable")
