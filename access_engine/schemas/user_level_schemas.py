from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

from access_engine.core.exceptions import ValidationException
from access_engine.models.permission_state import ActionScope, PermissionState


class UserLevelCreate(BaseModel):
    """Schema for creating a user level"""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class UserLevelUpdate(BaseModel):
    """Schema for updating a user level"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class UserLevelResponse(BaseModel):
    """Schema for user level response"""

    model_config = {"from_attributes": True}

    id: int
    tenant_id: int
    name: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime


class ViewPermissionInput(BaseModel):
    view_id: str = Field(..., min_length=1)
    state: PermissionState


class ReplaceViewPermissionsRequest(BaseModel):
    """Full view matrix of a level; views not listed become inherit"""

    views: list[ViewPermissionInput]

    def to_matrix(self) -> dict[str, PermissionState]:
        """view_id -> state; a view listed twice is rejected"""
        matrix: dict[str, PermissionState] = {}
        for entry in self.views:
            if entry.view_id in matrix:
                raise ValidationException(f"View '{entry.view_id}' listed more than once")
            matrix[entry.view_id] = entry.state
        return matrix


class UpdateViewPermissionRequest(BaseModel):
    """One view decision; inherit removes the explicit row"""

    state: PermissionState


class ViewPermissionResponse(BaseModel):
    model_config = {"from_attributes": True}

    view_id: str
    state: PermissionState


class FeaturePermissionInput(BaseModel):
    feature_id: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1, description="e.g. Create, Update, Delete")
    state: PermissionState
    scope: Optional[ActionScope] = Field(None, description="Required when state is allow")


class ReplaceFeaturePermissionsRequest(BaseModel):
    """Full feature matrix of a level; actions not listed become inherit"""

    features: list[FeaturePermissionInput]

    def to_matrix(self) -> dict[tuple[str, str], tuple[PermissionState, Optional[ActionScope]]]:
        """(feature_id, action) -> (state, scope); a pair listed twice is rejected"""
        matrix = {}
        for entry in self.features:
            key = (entry.feature_id, entry.action)
            if key in matrix:
                raise ValidationException(
                    f"Feature '{entry.feature_id}' action '{entry.action}' listed more than once"
                )
            matrix[key] = (entry.state, entry.scope)
        return matrix


class UpdateFeaturePermissionRequest(BaseModel):
    """One feature action decision; scope only with allow"""

    state: PermissionState
    scope: Optional[ActionScope] = None


class FeaturePermissionResponse(BaseModel):
    model_config = {"from_attributes": True}

    feature_id: str
    action: str
    state: PermissionState
    scope: Optional[ActionScope]
