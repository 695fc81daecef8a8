from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from access_engine.database import get_db
from access_engine.dependencies import (
    get_tenant_context,
    get_permission_cache,
    get_navigation_cache,
)
from access_engine.models.tenant_context import TenantContext
from access_engine.services.navigation_service import (
    NOT_MODIFIED,
    NavigationCache,
    NavigationService,
)
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.nav_trail_service import NavTrailService
from access_engine.services.permission_resolver import PermissionResolver
from access_engine.schemas.permission_schemas import NavigationResponse
from access_engine.schemas.nav_trail_schemas import NavTrailResponse, TrackNavigationRequest

router = APIRouter()


def _parse_etag(header: Optional[str]) -> Optional[str]:
    """Strip quotes and weak marker from an If-None-Match value"""
    if not header:
        return None
    value = header.split(",")[0].strip()
    if value.startswith("W/"):
        value = value[2:]
    return value.strip('"') or None


@router.get(
    "",
    response_model=NavigationResponse,
    responses={304: {"description": "Navigation unchanged since the supplied ETag"}},
)
def get_navigation(
    if_none_match: Optional[str] = Header(None),
    context: TenantContext = Depends(get_tenant_context),
    cache: PermissionCache = Depends(get_permission_cache),
    nav_cache: NavigationCache = Depends(get_navigation_cache),
    db: Session = Depends(get_db),
):
    """
    Permission-filtered navigation menu.

    - Returns an ETag derived from the caller's effective permissions
    - Send it back in If-None-Match to get 304 Not Modified
    """
    service = NavigationService(db, PermissionResolver(db, cache), nav_cache)
    result = service.get_navigation(
        context.tenant.id, context.user.id, if_match_etag=_parse_etag(if_none_match)
    )
    if result is NOT_MODIFIED:
        return Response(
            status_code=status.HTTP_304_NOT_MODIFIED,
            headers={"ETag": f'"{_parse_etag(if_none_match)}"'},
        )
    return JSONResponse(content=result.body, headers={"ETag": f'"{result.etag}"'})


@router.get("/trail", response_model=NavTrailResponse)
def get_trail(
    session_id: str = Query(..., min_length=1, max_length=128),
    context: TenantContext = Depends(get_tenant_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Breadcrumb trail of a browser session and the caller's recent views.

    - Views the caller can no longer see are left out
    """
    service = NavTrailService(db, PermissionResolver(db, cache))
    return service.get_trail(context.tenant.id, context.user.id, session_id)


@router.post("/trail", response_model=NavTrailResponse, status_code=status.HTTP_201_CREATED)
def track_navigation(
    data: TrackNavigationRequest,
    context: TenantContext = Depends(get_tenant_context),
    cache: PermissionCache = Depends(get_permission_cache),
    db: Session = Depends(get_db),
):
    """
    Record a visit to a view.

    - **403** if the view is not visible to the caller
    - Returns the session's updated trail
    """
    service = NavTrailService(db, PermissionResolver(db, cache))
    return service.track_navigation(
        context.tenant.id, context.user.id, data.session_id, data.view_id, data.url
    )
