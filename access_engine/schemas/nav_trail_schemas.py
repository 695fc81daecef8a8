from datetime import datetime
from pydantic import BaseModel, Field


class TrackNavigationRequest(BaseModel):
    """Schema for recording a visit"""

    view_id: str = Field(..., min_length=1, max_length=100)
    url: str = Field(..., min_length=1, max_length=2048, description="In-app path and query")
    session_id: str = Field(..., min_length=1, max_length=128, description="One per browser tab")


class TrailStepResponse(BaseModel):
    model_config = {"from_attributes": True}

    depth: int
    view_id: str
    label: str
    url: str


class RecentVisitResponse(BaseModel):
    model_config = {"from_attributes": True}

    view_id: str
    label: str
    url: str
    visited_at: datetime


class NavTrailResponse(BaseModel):
    """Breadcrumbs of the session plus the user's recently visited views"""

    model_config = {"from_attributes": True}

    trail: list[TrailStepResponse]
    recents: list[RecentVisitResponse]
