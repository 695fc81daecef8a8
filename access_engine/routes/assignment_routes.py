from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from access_engine.database import get_db
from access_engine.dependencies import get_admin_context, get_permission_cache
from access_engine.models.tenant_context import TenantContext
from access_engine.services.assignment_service import AssignmentService
from access_engine.services.permission_cache import PermissionCache
from access_engine.schemas.assignment_schemas import ReplaceUserLevelsRequest, UserLevelsResponse

router = APIRouter()


@router.get("/{user_id}/user-levels", response_model=UserLevelsResponse)
def get_user_levels(
    user_id: int,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """Levels currently assigned to a user of the tenant"""
    service = AssignmentService(db, cache)
    level_ids = service.get_user_level_ids(context.tenant.id, context.user.id, user_id)
    return UserLevelsResponse(user_id=user_id, user_level_ids=sorted(level_ids))


@router.put("/{user_id}/user-levels", response_model=UserLevelsResponse)
def replace_user_levels(
    user_id: int,
    data: ReplaceUserLevelsRequest,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Replace the levels a user holds.

    - **Requires ADMIN or OWNER permissions**
    - Every level must belong to the current tenant
    """
    service = AssignmentService(db, cache)
    level_ids = service.set_user_level_assignments(
        context.tenant.id, context.user.id, user_id, set(data.user_level_ids)
    )
    return UserLevelsResponse(user_id=user_id, user_level_ids=sorted(level_ids))
