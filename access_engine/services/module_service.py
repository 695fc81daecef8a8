import logging

from sqlalchemy.orm import Session

from access_engine.core.exceptions import ValidationException
from access_engine.models.audit_log import AuditAction, AuditEntityType
from access_engine.repositories.catalog_repository import CatalogRepository
from access_engine.services.audit_service import AuditService
from access_engine.services.permission_cache import PermissionCache
from access_engine.services.tenant_guard import TenantGuard
from access_engine.services.unit_of_work import atomic, store_errors

logger = logging.getLogger(__name__)


class ModuleService:
    """
    Service layer for the modules a tenant has enabled.

    Module gating can only hide views and features, so changing the
    enabled set invalidates every cached permission set of the tenant.
    """

    def __init__(self, db: Session, cache: PermissionCache, audit: AuditService | None = None):
        self.db = db
        self.cache = cache
        self.guard = TenantGuard(db)
        self.audit = audit or AuditService(db)
        self.catalog_repo = CatalogRepository(db)

    def get_tenant_modules(self, tenant_id: int, actor_user_id: int) -> set[str]:
        self.guard.ensure_user(tenant_id, actor_user_id)
        with store_errors():
            return self.catalog_repo.get_enabled_module_ids(tenant_id)

    def set_tenant_modules(
        self, tenant_id: int, actor_user_id: int, module_ids: set[str]
    ) -> set[str]:
        """
        Replace the tenant's enabled modules.

        Raises:
            ValidationException: If a module id is not in the catalog
        """
        self.guard.ensure_user(tenant_id, actor_user_id)
        module_ids = set(module_ids)
        with store_errors():
            unknown = module_ids - self.catalog_repo.get_existing_module_ids(module_ids)
        if unknown:
            raise ValidationException(f"Unknown module(s): {', '.join(sorted(unknown))}")

        self.cache.invalidate_tenant(tenant_id)
        try:
            with atomic(self.db):
                before = self.catalog_repo.get_enabled_module_ids(tenant_id)
                self.catalog_repo.replace_tenant_modules(tenant_id, module_ids)
                self.audit.record(
                    tenant_id,
                    actor_user_id,
                    AuditEntityType.TENANT_MODULES,
                    tenant_id,
                    AuditAction.UPDATE,
                    before_state={"module_ids": sorted(before)},
                    after_state={"module_ids": sorted(module_ids)},
                )
        finally:
            self.cache.invalidate_tenant(tenant_id)

        logger.info("Tenant modules replaced: tenant=%s modules=%s", tenant_id, sorted(module_ids))
        return module_ids
