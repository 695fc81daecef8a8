"""Breadcrumb trail and recently visited views."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from access_engine.config import settings
from access_engine.core.exceptions import (
    ForbiddenException,
    StoreUnavailableException,
    ValidationException,
)
from access_engine.models.nav_trail import NavTrailEntry
from access_engine.repositories.nav_trail_repository import NavTrailRepository
from access_engine.services.permission_resolver import PermissionResolver
from access_engine.services.unit_of_work import atomic, store_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrailStep:
    depth: int
    view_id: str
    label: str
    url: str


@dataclass(frozen=True)
class RecentVisit:
    view_id: str
    label: str
    url: str
    visited_at: datetime


@dataclass
class NavTrail:
    trail: list[TrailStep] = field(default_factory=list)
    recents: list[RecentVisit] = field(default_factory=list)


def build_trail(entries: Iterable[NavTrailEntry]) -> list[NavTrailEntry]:
    """
    Replay a session's visits (oldest first) into a breadcrumb stack.

    Visiting a view already on the stack goes back to it: everything above
    it is dropped and the new visit takes its place.
    """
    stack: list[NavTrailEntry] = []
    for entry in entries:
        for index, step in enumerate(stack):
            if step.view_id == entry.view_id:
                del stack[index:]
                break
        stack.append(entry)
    return stack


def clean_url(url: str) -> str:
    """
    Keep only an in-app path and its query string.

    Raises:
        ValidationException: If the URL is not a relative path
    """
    url = url.strip().split("#", 1)[0]
    if not url.startswith("/") or url.startswith("//"):
        raise ValidationException("Trail URL must be an in-app path starting with '/'")
    return url


class NavTrailService:
    """
    Records visits and projects them into a trail and recents.

    Only views the user may currently see are recorded, and both the trail
    and recents are filtered against current permissions when read, so a
    revoked view disappears from them on the next request.
    """

    def __init__(
        self,
        db: Session,
        resolver: PermissionResolver,
        max_entries: Optional[int] = None,
        recents_limit: Optional[int] = None,
    ):
        self.db = db
        self.resolver = resolver
        self.repo = NavTrailRepository(db, max_entries or settings.NAV_TRAIL_MAX_ENTRIES)
        self.recents_limit = recents_limit or settings.NAV_RECENTS_LIMIT

    def track_navigation(
        self, tenant_id: int, user_id: int, session_id: str, view_id: str, url: str
    ) -> NavTrail:
        """
        Record a visit and return the session's updated trail.

        Raises:
            NotFoundException: If the user is unknown or outside the tenant
            ForbiddenException: If the view is not visible to the user
            StoreUnavailableException: If permissions could not be resolved
            ValidationException: If the URL is not an in-app path
        """
        if not session_id.strip():
            raise ValidationException("Session id is required")
        url = clean_url(url)
        resolved = self.resolver.resolve_all(tenant_id, user_id)
        if resolved.fail_closed:
            raise StoreUnavailableException("Permission store unavailable")
        if view_id not in resolved.views:
            raise ForbiddenException("View is not available")

        with atomic(self.db):
            stack = build_trail(self.repo.get_session_entries(tenant_id, user_id, session_id))
            # Revisiting a view on the stack lands on its position, anything else goes on top
            depth = next(
                (index for index, step in enumerate(stack) if step.view_id == view_id), len(stack)
            )
            self.repo.append(
                NavTrailEntry(
                    tenant_id=tenant_id,
                    user_id=user_id,
                    session_id=session_id,
                    depth=depth,
                    view_id=view_id,
                    url=url,
                )
            )

        logger.debug(
            "Navigation tracked: tenant=%s user=%s view=%s depth=%s", tenant_id, user_id, view_id, depth
        )
        return self._project(tenant_id, user_id, session_id, resolved.views)

    def get_trail(self, tenant_id: int, user_id: int, session_id: str) -> NavTrail:
        """
        Trail of one session plus the user's recent views.

        Raises:
            NotFoundException: If the user is unknown or outside the tenant
        """
        resolved = self.resolver.resolve_all(tenant_id, user_id)
        return self._project(tenant_id, user_id, session_id, resolved.views)

    def _project(
        self, tenant_id: int, user_id: int, session_id: str, visible: frozenset[str]
    ) -> NavTrail:
        with store_errors():
            session_visits = self.repo.get_session_entries(tenant_id, user_id, session_id)
            user_visits = self.repo.get_user_entries(tenant_id, user_id)

            steps = [entry for entry in build_trail(session_visits) if entry.view_id in visible]
            trail = [
                TrailStep(depth=depth, view_id=entry.view_id, label=entry.view.name, url=entry.url)
                for depth, entry in enumerate(steps)
            ]

            recents: list[RecentVisit] = []
            seen: set[str] = set()
            for entry in user_visits:
                if entry.view_id in seen or entry.view_id not in visible:
                    continue
                seen.add(entry.view_id)
                recents.append(
                    RecentVisit(
                        view_id=entry.view_id,
                        label=entry.view.name,
                        url=entry.url,
                        visited_at=entry.created_at,
                    )
                )
                if len(recents) >= self.recents_limit:
                    break

        return NavTrail(trail=trail, recents=recents)
