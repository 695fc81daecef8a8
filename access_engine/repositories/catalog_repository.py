"""Read access to the global catalog: views, features, modules and menus."""

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from access_engine.models.view import View
from access_engine.models.feature import Feature
from access_engine.models.module import Module, TenantModule, module_views, module_features
from access_engine.models.menu import MenuItem


class CatalogRepository:
    """Repository for catalog lookups and module gating inputs"""

    def __init__(self, db: Session):
        self.db = db

    def get_existing_view_ids(self, view_ids: set[str]) -> set[str]:
        """Return the subset of view_ids present in the catalog"""
        if not view_ids:
            return set()
        rows = self.db.query(View.id).filter(View.id.in_(view_ids)).all()
        return {row.id for row in rows}

    def get_existing_feature_ids(self, feature_ids: set[str]) -> set[str]:
        """Return the subset of feature_ids present in the catalog"""
        if not feature_ids:
            return set()
        rows = self.db.query(Feature.id).filter(Feature.id.in_(feature_ids)).all()
        return {row.id for row in rows}

    def get_existing_module_ids(self, module_ids: set[str]) -> set[str]:
        """Return the subset of module_ids present in the catalog"""
        if not module_ids:
            return set()
        rows = self.db.query(Module.id).filter(Module.id.in_(module_ids)).all()
        return {row.id for row in rows}

    def get_view_urls(self) -> dict[str, str]:
        """Map every view id to its URL"""
        return {row.id: row.url for row in self.db.query(View.id, View.url).all()}

    def get_enabled_module_ids(self, tenant_id: int) -> set[str]:
        """Modules enabled for the tenant"""
        rows = (
            self.db.query(TenantModule.module_id)
            .filter(TenantModule.tenant_id == tenant_id)
            .all()
        )
        return {row.module_id for row in rows}

    def get_gated_view_ids(self, tenant_id: int) -> set[str]:
        """
        Views hidden from the tenant by module gating.

        A view is gated when it belongs to at least one module and none
        of its modules is enabled for the tenant.
        """
        enabled = select(TenantModule.module_id).where(TenantModule.tenant_id == tenant_id)
        in_any_module = {
            row.view_id for row in self.db.execute(select(module_views.c.view_id).distinct())
        }
        reachable = {
            row.view_id
            for row in self.db.execute(
                select(module_views.c.view_id).where(module_views.c.module_id.in_(enabled))
            )
        }
        return in_any_module - reachable

    def get_gated_feature_ids(self, tenant_id: int) -> set[str]:
        """Features hidden from the tenant by module gating (same rule as views)"""
        enabled = select(TenantModule.module_id).where(TenantModule.tenant_id == tenant_id)
        in_any_module = {
            row.feature_id
            for row in self.db.execute(select(module_features.c.feature_id).distinct())
        }
        reachable = {
            row.feature_id
            for row in self.db.execute(
                select(module_features.c.feature_id).where(module_features.c.module_id.in_(enabled))
            )
        }
        return in_any_module - reachable

    def replace_tenant_modules(self, tenant_id: int, module_ids: set[str]) -> None:
        """
        Replace the tenant's enabled modules without committing.
        Caller responsible for commit.
        """
        self.db.query(TenantModule).filter(TenantModule.tenant_id == tenant_id).delete(
            synchronize_session="fetch"
        )
        self.db.add_all(
            TenantModule(tenant_id=tenant_id, module_id=module_id)
            for module_id in sorted(module_ids)
        )
        self.db.flush()

    def get_menu_items(self, tenant_id: int) -> list[MenuItem]:
        """
        Global and tenant-specific menu items with their sub-items,
        ordered by sequence index.
        """
        return (
            self.db.query(MenuItem)
            .options(selectinload(MenuItem.sub_items))
            .filter(or_(MenuItem.tenant_id.is_(None), MenuItem.tenant_id == tenant_id))
            .order_by(MenuItem.sequence_index, MenuItem.id)
            .all()
        )
