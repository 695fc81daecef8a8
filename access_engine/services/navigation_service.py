"""
Permission-filtered navigation with content-addressed caching.

The ETag of a navigation body is the content hash of the resolved
permission set it was built from, so it is stable across recomputations
and shared by every user of a tenant who holds identical permissions.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.orm import Session

from access_engine.models.resolved_permissions import ResolvedPermissionSet
from access_engine.repositories.catalog_repository import CatalogRepository
from access_engine.services.permission_resolver import PermissionResolver
from access_engine.services.unit_of_work import store_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationResult:
    etag: str
    body: dict


class _NotModified:
    """Marker returned when the caller's ETag is still current."""

    def __repr__(self) -> str:
        return "NOT_MODIFIED"


NOT_MODIFIED = _NotModified()


class NavigationCache:
    """Bounded LRU map of etag -> navigation body."""

    def __init__(self, max_entries: int = 1024):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._bodies: "OrderedDict[str, dict]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, etag: str) -> Optional[dict]:
        with self._lock:
            body = self._bodies.get(etag)
            if body is not None:
                self._bodies.move_to_end(etag)
            return body

    def put(self, etag: str, body: dict) -> None:
        with self._lock:
            self._bodies[etag] = body
            self._bodies.move_to_end(etag)
            while len(self._bodies) > self.max_entries:
                self._bodies.popitem(last=False)

    def clear(self) -> None:
        """Drop all bodies (after menu catalog changes)"""
        with self._lock:
            self._bodies.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._bodies)


class NavigationService:
    """Service projecting resolved permissions into the navigation menu"""

    def __init__(self, db: Session, resolver: PermissionResolver, nav_cache: NavigationCache):
        self.db = db
        self.resolver = resolver
        self.nav_cache = nav_cache
        self.catalog_repo = CatalogRepository(db)

    def get_navigation(
        self, tenant_id: int, user_id: int, if_match_etag: Optional[str] = None
    ) -> Union[NavigationResult, _NotModified]:
        """
        Get the user's navigation, or NOT_MODIFIED if if_match_etag is current.

        Raises:
            NotFoundException: If the user is unknown or outside the tenant
        """
        resolved = self.resolver.resolve_all(tenant_id, user_id)
        etag = resolved.etag

        if if_match_etag is not None and if_match_etag == etag:
            return NOT_MODIFIED

        body = self.nav_cache.get(etag)
        if body is None:
            body = self._build_body(resolved)
            logger.debug("Navigation built: tenant=%s user=%s etag=%s", tenant_id, user_id, etag)
            if not resolved.fail_closed:
                self.nav_cache.put(etag, body)
        return NavigationResult(etag=etag, body=body)

    def _build_body(self, resolved: ResolvedPermissionSet) -> dict:
        with store_errors():
            menu_items = self.catalog_repo.get_menu_items(resolved.tenant_id)
            view_urls = self.catalog_repo.get_view_urls()

        def visible(view_id: Optional[str], feature_id: Optional[str]) -> bool:
            if view_id is not None:
                return resolved.can_view(view_id)
            if feature_id is not None:
                return resolved.allows_feature(feature_id)
            return False

        menu = []
        for item in menu_items:
            sub_items = [
                {
                    "id": sub.id,
                    "label": sub.label,
                    "url": view_urls.get(sub.view_id) if sub.view_id else None,
                }
                for sub in item.sub_items
                if sub.tenant_id in (None, resolved.tenant_id)
                and visible(sub.view_id, sub.feature_id)
            ]
            if not visible(item.view_id, item.feature_id) and not sub_items:
                continue
            # A parent kept only for its children must not link to its own hidden view
            own_url = view_urls.get(item.view_id) if item.view_id and resolved.can_view(item.view_id) else None
            menu.append(
                {
                    "id": item.id,
                    "label": item.label,
                    "icon": item.icon,
                    "url": own_url,
                    "is_entrypoint": item.is_entrypoint,
                    "sub_items": sub_items,
                }
            )

        entrypoint = next(
            (entry["url"] for entry in menu if entry["is_entrypoint"] and entry["url"]),
            None,
        )
        return {"menu": menu, "entrypoint": entrypoint}
