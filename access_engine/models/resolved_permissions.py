"""Derived permission results. Never persisted."""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from typing import Mapping, Optional

from access_engine.models.base import utcnow
from access_engine.models.permission_state import ActionScope


FeatureKey = tuple[str, str]  # (feature_id, action)


@dataclass(frozen=True)
class Decision:
    """
    Outcome of a single feature-action check.

    Attributes:
        allowed: Whether the action may be performed
        scope: Breadth of the grant; None whenever allowed is False
        fail_closed: True when the store could not be read and the
            decision is a forced deny rather than a real one
    """

    allowed: bool
    scope: Optional[ActionScope] = None
    fail_closed: bool = False


@dataclass(frozen=True)
class ResolvedPermissionSet:
    """
    Effective permissions of one user in one tenant.

    views holds every visible view id; features maps every allowed
    (feature_id, action) pair to its effective scope. Anything absent
    is denied.
    """

    tenant_id: int
    user_id: int
    views: frozenset[str] = frozenset()
    features: Mapping[FeatureKey, ActionScope] = field(default_factory=dict)
    user_level_ids: frozenset[int] = frozenset()
    computed_at: datetime = field(default_factory=utcnow)
    fail_closed: bool = False

    @classmethod
    def denied(cls, tenant_id: int, user_id: int, fail_closed: bool = False) -> "ResolvedPermissionSet":
        """The empty result: nothing visible, nothing allowed."""
        return cls(tenant_id=tenant_id, user_id=user_id, fail_closed=fail_closed)

    def can_view(self, view_id: str) -> bool:
        return view_id in self.views

    def decision(self, feature_id: str, action: str) -> Decision:
        scope = self.features.get((feature_id, action))
        if scope is None:
            return Decision(allowed=False, fail_closed=self.fail_closed)
        return Decision(allowed=True, scope=scope)

    def allows_feature(self, feature_id: str) -> bool:
        """True if any action of the feature is allowed."""
        return any(key[0] == feature_id for key in self.features)

    @cached_property
    def etag(self) -> str:
        """
        Content hash of the decisions.

        Depends only on the tenant and the decisions themselves, so two
        users (or two computations) with identical permissions share it.
        """
        canonical = json.dumps(
            {
                "tenant_id": self.tenant_id,
                "views": sorted(self.views),
                "features": sorted(
                    [feature_id, action, scope.value]
                    for (feature_id, action), scope in self.features.items()
                ),
            },
            separators=(",", ":"),
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def to_payload(self) -> dict:
        """Shape used by the current-permissions API: view -> bool, feature -> action -> grant."""
        features: dict[str, dict[str, dict]] = {}
        for (feature_id, action), scope in sorted(self.features.items()):
            features.setdefault(feature_id, {})[action] = {"allowed": True, "scope": scope.value}
        return {
            "views": {view_id: True for view_id in sorted(self.views)},
            "features": features,
        }
