from datetime import datetime
from pydantic import BaseModel
from typing import Any, Optional

from access_engine.models.audit_log import AuditAction, AuditEntityType


class AuditLogEntryResponse(BaseModel):
    """Schema for audit log entry response"""

    model_config = {"from_attributes": True}

    id: int
    tenant_id: int
    actor_user_id: int
    entity_type: AuditEntityType
    entity_id: str
    action: AuditAction
    before_state: Optional[Any]
    after_state: Optional[Any]
    timestamp: datetime


class AuditLogListResponse(BaseModel):
    """Schema for a page of audit log entries"""

    entries: list[AuditLogEntryResponse]
    total: int
    limit: int
    offset: int
