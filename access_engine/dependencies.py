from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from access_engine.core.security import decode_jwt, tenant_id_from_claims
from access_engine.core.exceptions import UnauthorizedException, ForbiddenException
from access_engine.database import get_db
from access_engine.repositories.user_repository import UserRepository
from access_engine.repositories.tenant_membership_repository import TenantMembershipRepository
from access_engine.models.user import User
from access_engine.models.tenant_context import TenantContext
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.navigation_service import NavigationCache

security = HTTPBearer()


def _unauthorized(exc: UnauthorizedException) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=str(exc),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    FastAPI dependency decoding the bearer token once per request.

    Raises:
        HTTPException 401: If token invalid, expired or missing required claims
    """
    try:
        return decode_jwt(credentials.credentials)
    except UnauthorizedException as e:
        raise _unauthorized(e)


async def get_current_user(
    claims: dict = Depends(get_token_claims), db: Session = Depends(get_db)
) -> User:
    """
    FastAPI dependency returning the caller's User.

    The row is auto-created from the 'sub' claim on the first request, so
    the auth provider stays the only place users are registered.
    """
    return UserRepository(db).get_or_create_by_auth_id(claims["sub"])


async def get_tenant_context(
    claims: dict = Depends(get_token_claims),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TenantContext:
    """
    FastAPI dependency resolving the acting tenant from the 'tenant_id' claim.

    Raises:
        HTTPException 401: If the claim is missing or malformed
        ForbiddenException: If the user is not a member of that tenant
    """
    try:
        tenant_id = tenant_id_from_claims(claims)
    except UnauthorizedException as e:
        raise _unauthorized(e)

    membership = TenantMembershipRepository(db).get_with_tenant(user.id, tenant_id)
    if membership is None:
        raise ForbiddenException("Not a member of this tenant")

    return TenantContext(user=user, tenant=membership.tenant, role=membership.role)


async def get_admin_context(
    context: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    """Tenant context restricted to ADMIN or OWNER"""
    if not context.can_administer():
        raise ForbiddenException("Only admins and owners can administer permissions")
    return context


async def get_owner_context(
    context: TenantContext = Depends(get_tenant_context),
) -> TenantContext:
    """Tenant context restricted to OWNER"""
    if not context.can_manage_modules():
        raise ForbiddenException("Only owner can change enabled modules")
    return context


def get_permission_cache(request: Request) -> PermissionCache:
    """The application's permission cache (override in tests)"""
    return request.app.state.permission_cache


def get_navigation_cache(request: Request) -> NavigationCache:
    """The application's navigation cache (override in tests)"""
    return request.app.state.navigation_cache
