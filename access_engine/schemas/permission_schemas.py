from pydantic import BaseModel
from typing import Optional

from access_engine.models.permission_state import ActionScope


class FeatureGrant(BaseModel):
    """Effective grant for one feature action"""

    allowed: bool
    scope: ActionScope


class CurrentPermissionsResponse(BaseModel):
    """Effective permissions of the caller in the current tenant"""

    views: dict[str, bool]  # view_id -> allowed (only visible views listed)
    features: dict[str, dict[str, FeatureGrant]]  # feature_id -> action -> grant
    fail_closed: bool = False


class DecisionResponse(BaseModel):
    """Decision for one feature action"""

    feature_id: str
    action: str
    allowed: bool
    scope: Optional[ActionScope] = None
    fail_closed: bool = False


class NavigationSubItem(BaseModel):
    id: str
    label: str
    url: Optional[str]


class NavigationMenuItem(BaseModel):
    id: str
    label: str
    icon: Optional[str] = None
    url: Optional[str]
    is_entrypoint: bool
    sub_items: list[NavigationSubItem] = []


class NavigationResponse(BaseModel):
    """Permission-filtered menu"""

    menu: list[NavigationMenuItem]
    entrypoint: Optional[str]  # First allowed entrypoint URL
