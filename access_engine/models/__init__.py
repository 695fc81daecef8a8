"""ORM models. Importing this package registers every table on Base.metadata."""

from access_engine.models.base import Base, TimestampMixin
from access_engine.models.tenant import Tenant
from access_engine.models.user import User
from access_engine.models.tenant_membership import TenantMembership, TenantRole
from access_engine.models.view import View
from access_engine.models.feature import Feature
from access_engine.models.module import Module, TenantModule, module_views, module_features
from access_engine.models.menu import MenuItem, SubMenuItem
from access_engine.models.user_level import UserLevel
from access_engine.models.level_permission import (
    UserLevelViewPermission,
    UserLevelFeaturePermission,
)
from access_engine.models.user_level_assignment import UserLevelAssignment
from access_engine.models.audit_log import AuditLogEntry, AuditEntityType, AuditAction
from access_engine.models.nav_trail import NavTrailEntry

__all__ = [
    "Base",
    "TimestampMixin",
    "Tenant",
    "User",
    "TenantMembership",
    "TenantRole",
    "View",
    "Feature",
    "Module",
    "TenantModule",
    "module_views",
    "module_features",
    "MenuItem",
    "SubMenuItem",
    "UserLevel",
    "UserLevelViewPermission",
    "UserLevelFeaturePermission",
    "UserLevelAssignment",
    "AuditLogEntry",
    "AuditEntityType",
    "AuditAction",
    "NavTrailEntry",
]
