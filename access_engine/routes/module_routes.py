from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from access_engine.database import get_db
from access_engine.dependencies import (
    get_admin_context,
    get_owner_context,
    get_permission_cache,
)
from access_engine.models.tenant_context import TenantContext
from access_engine.services.module_service import ModuleService
from access_engine.services.permission_cache import PermissionCache
from access_engine.schemas.module_schemas import ReplaceTenantModulesRequest, TenantModulesResponse

router = APIRouter()


@router.get("/me/modules", response_model=TenantModulesResponse)
def get_tenant_modules(
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """Modules enabled for the current tenant"""
    service = ModuleService(db, cache)
    module_ids = service.get_tenant_modules(context.tenant.id, context.user.id)
    return TenantModulesResponse(tenant_id=context.tenant.id, module_ids=sorted(module_ids))


@router.put("/me/modules", response_model=TenantModulesResponse)
def replace_tenant_modules(
    data: ReplaceTenantModulesRequest,
    context: TenantContext = Depends(get_owner_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Replace the modules enabled for the current tenant.

    - **Requires OWNER permissions**
    - Views and features of disabled modules are hidden for every user
    """
    service = ModuleService(db, cache)
    module_ids = service.set_tenant_modules(
        context.tenant.id, context.user.id, set(data.module_ids)
    )
    return TenantModulesResponse(tenant_id=context.tenant.id, module_ids=sorted(module_ids))
