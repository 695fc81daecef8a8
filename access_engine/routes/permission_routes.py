from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from access_engine.database import get_db
from access_engine.dependencies import get_tenant_context, get_permission_cache
from access_engine.models.tenant_context import TenantContext
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.permission_resolver import PermissionResolver
from access_engine.schemas.permission_schemas import CurrentPermissionsResponse, DecisionResponse

router = APIRouter()


@router.get("/me", response_model=CurrentPermissionsResponse)
def get_current_permissions(
    context: TenantContext = Depends(get_tenant_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Effective permissions of the caller in the current tenant.

    Only visible views and allowed feature actions are listed; anything
    absent is denied.
    """
    resolver = PermissionResolver(db, cache)
    resolved = resolver.resolve_all(context.tenant.id, context.user.id)
    return {**resolved.to_payload(), "fail_closed": resolved.fail_closed}


@router.get("/me/features/{feature_id}/{action}", response_model=DecisionResponse)
def check_feature_action(
    feature_id: str,
    action: str,
    context: TenantContext = Depends(get_tenant_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """Decision (allowed + scope) for one feature action of the caller"""
    resolver = PermissionResolver(db, cache)
    decision = resolver.resolve_feature(context.tenant.id, context.user.id, feature_id, action)
    return DecisionResponse(
        feature_id=feature_id,
        action=action,
        allowed=decision.allowed,
        scope=decision.scope,
        fail_closed=decision.fail_closed,
    )
