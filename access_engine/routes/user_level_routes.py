from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from access_engine.database import get_db
from access_engine.dependencies import get_admin_context, get_permission_cache
from access_engine.models.permission_state import PermissionState
from access_engine.models.tenant_context import TenantContext
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.user_level_service import UserLevelService
from access_engine.schemas.user_level_schemas import (
    UserLevelCreate,
    UserLevelUpdate,
    UserLevelResponse,
    ReplaceViewPermissionsRequest,
    UpdateViewPermissionRequest,
    ViewPermissionResponse,
    ReplaceFeaturePermissionsRequest,
    UpdateFeaturePermissionRequest,
    FeaturePermissionResponse,
)

router = APIRouter()


@router.get("", response_model=list[UserLevelResponse])
def list_user_levels(
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """List all user levels of the current tenant"""
    service = UserLevelService(db, cache)
    return service.list_user_levels(context.tenant.id, context.user.id)


@router.post("", response_model=UserLevelResponse, status_code=status.HTTP_201_CREATED)
def create_user_level(
    data: UserLevelCreate,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Create a user level.

    - **Requires ADMIN or OWNER permissions**
    - Name must be unique within the tenant (409 otherwise)
    """
    service = UserLevelService(db, cache)
    return service.create_user_level(
        context.tenant.id, context.user.id, data.name, data.description
    )


@router.get("/{user_level_id}", response_model=UserLevelResponse)
def get_user_level(
    user_level_id: int,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """Get one user level"""
    service = UserLevelService(db, cache)
    return service.get_user_level(context.tenant.id, context.user.id, user_level_id)


@router.patch("/{user_level_id}", response_model=UserLevelResponse)
def update_user_level(
    user_level_id: int,
    data: UserLevelUpdate,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """Rename or re-describe a user level"""
    service = UserLevelService(db, cache)
    return service.update_user_level(
        context.tenant.id, context.user.id, user_level_id, data.name, data.description
    )


@router.delete("/{user_level_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_level(
    user_level_id: int,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Delete a user level.

    - Rejected with 409 while any user holds the level
    """
    service = UserLevelService(db, cache)
    service.delete_user_level(context.tenant.id, context.user.id, user_level_id)


@router.get("/{user_level_id}/views", response_model=list[ViewPermissionResponse])
def get_view_permissions(
    user_level_id: int,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """Explicit view decisions of a level (views not listed inherit)"""
    service = UserLevelService(db, cache)
    return service.get_view_permissions(context.tenant.id, context.user.id, user_level_id)


@router.put("/{user_level_id}/views", response_model=list[ViewPermissionResponse])
def replace_view_permissions(
    user_level_id: int,
    data: ReplaceViewPermissionsRequest,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Replace the view matrix of a level.

    - Affected users see the change on their next request
    """
    service = UserLevelService(db, cache)
    service.set_view_permissions(
        context.tenant.id,
        context.user.id,
        user_level_id,
        data.to_matrix(),
    )
    return service.get_view_permissions(context.tenant.id, context.user.id, user_level_id)


@router.patch("/{user_level_id}/views/{view_id}", response_model=ViewPermissionResponse)
def update_view_permission(
    user_level_id: int,
    view_id: str,
    data: UpdateViewPermissionRequest,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Change one view decision of a level.

    - Other views of the level keep their decisions
    - state "inherit" removes the explicit decision
    """
    service = UserLevelService(db, cache)
    row = service.update_view_permission(
        context.tenant.id, context.user.id, user_level_id, view_id, data.state
    )
    if row is None:
        return ViewPermissionResponse(view_id=view_id, state=PermissionState.INHERIT)
    return row


@router.get("/{user_level_id}/features", response_model=list[FeaturePermissionResponse])
def get_feature_permissions(
    user_level_id: int,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """Explicit feature decisions of a level"""
    service = UserLevelService(db, cache)
    return service.get_feature_permissions(context.tenant.id, context.user.id, user_level_id)


@router.put("/{user_level_id}/features", response_model=list[FeaturePermissionResponse])
def replace_feature_permissions(
    user_level_id: int,
    data: ReplaceFeaturePermissionsRequest,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Replace the feature matrix of a level.

    - scope is required with state "allow" and forbidden otherwise
    - action must be a standard feature action (Create, Read, Update, ...)
    """
    service = UserLevelService(db, cache)
    service.set_feature_permissions(
        context.tenant.id,
        context.user.id,
        user_level_id,
        data.to_matrix(),
    )
    return service.get_feature_permissions(context.tenant.id, context.user.id, user_level_id)


@router.patch(
    "/{user_level_id}/features/{feature_id}/{action}", response_model=FeaturePermissionResponse
)
def update_feature_permission(
    user_level_id: int,
    feature_id: str,
    action: str,
    data: UpdateFeaturePermissionRequest,
    context: TenantContext = Depends(get_admin_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """Change the decision for one feature action of a level"""
    service = UserLevelService(db, cache)
    row = service.update_feature_permission(
        context.tenant.id,
        context.user.id,
        user_level_id,
        feature_id,
        action,
        data.state,
        data.scope,
    )
    if row is None:
        return FeaturePermissionResponse(
            feature_id=feature_id, action=action, state=PermissionState.INHERIT, scope=None
        )
    return row
