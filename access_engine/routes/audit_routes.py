from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from access_engine.database import get_db
from access_engine.dependencies import get_admin_context
from access_engine.models.audit_log import AuditAction, AuditEntityType
from access_engine.models.tenant_context import TenantContext
from access_engine.repositories.audit_log_repository import AuditLogFilters
from access_engine.services.audit_service import AuditService
from access_engine.schemas.audit_schemas import AuditLogListResponse

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
def query_audit_log(
    entity_type: Optional[AuditEntityType] = Query(None, description="Filter by entity type"),
    action: Optional[AuditAction] = Query(None, description="Filter by action"),
    entity_id: Optional[str] = Query(None, description="Filter by entity ID"),
    user_id: Optional[int] = Query(None, description="Filter by acting user ID"),
    start: Optional[datetime] = Query(None, description="Earliest timestamp (inclusive)"),
    end: Optional[datetime] = Query(None, description="Latest timestamp (inclusive)"),
    limit: int = Query(50, ge=1, le=500, description="Max results"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    context: TenantContext = Depends(get_admin_context),
    db: Session = Depends(get_db),
):
    """
    Audit trail of administrative changes in the current tenant, newest first.

    - **Requires ADMIN or OWNER permissions**
    """
    service = AuditService(db)
    filters = AuditLogFilters(
        entity_type=entity_type,
        action=action,
        entity_id=entity_id,
        user_id=user_id,
        start=start,
        end=end,
    )
    entries, total = service.query(
        context.tenant.id, context.user.id, filters, limit=limit, offset=offset
    )
    return AuditLogListResponse(entries=entries, total=total, limit=limit, offset=offset)
