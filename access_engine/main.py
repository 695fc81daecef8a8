import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from access_engine.config import settings
from access_engine.core.exceptions import (
    UnauthorizedException,
    NotFoundException,
    ForbiddenException,
    ConflictException,
    ValidationException,
    StoreUnavailableException,
)
from access_engine.routes import (
    permission_routes,
    navigation_routes,
    user_level_routes,
    assignment_routes,
    module_routes,
    audit_routes,
)
from access_engine.services.navigation_service import NavigationCache
from access_engine.services.permission_cache import PermissionCache

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,  # Disable in production
    redoc_url="/redoc" if settings.DEBUG else None,
)

# Engine caches live for the process and are handed to services via dependencies
app.state.permission_cache = PermissionCache(
    ttl_seconds=settings.PERMISSION_CACHE_TTL_SECONDS,
    stripes=settings.PERMISSION_CACHE_STRIPES,
)
app.state.navigation_cache = NavigationCache(max_entries=settings.NAVIGATION_CACHE_MAX_ENTRIES)

# CORS middleware
cors_origins = settings.cors_origins_list
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag"],
    )


# Exception handlers
@app.exception_handler(UnauthorizedException)
async def unauthorized_exception_handler(request: Request, exc: UnauthorizedException):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException):
    # CrossTenantAccessException lands here too and must look identical
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ForbiddenException)
async def forbidden_exception_handler(request: Request, exc: ForbiddenException):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(ConflictException)
async def conflict_exception_handler(request: Request, exc: ConflictException):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(ValidationException)
async def validation_exception_handler(request: Request, exc: ValidationException):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(StoreUnavailableException)
async def store_unavailable_exception_handler(request: Request, exc: StoreUnavailableException):
    logger.error("Request failed, permission store unavailable: %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)}
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


# Root endpoint
@app.get("/")
async def root():
    return {
        "message": "Access Engine API",
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
    }


# Include routers
app.include_router(permission_routes.router, prefix="/api/permissions", tags=["Permissions"])
app.include_router(navigation_routes.router, prefix="/api/navigation", tags=["Navigation"])
app.include_router(user_level_routes.router, prefix="/api/user-levels", tags=["User Levels"])
app.include_router(assignment_routes.router, prefix="/api/users", tags=["Assignments"])
app.include_router(module_routes.router, prefix="/api/tenants", tags=["Tenant Modules"])
app.include_router(audit_routes.router, prefix="/api/audit-log", tags=["Audit Log"])
