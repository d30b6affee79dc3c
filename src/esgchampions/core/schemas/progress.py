"""Activity and resume point schemas."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.activity import ActivityType


class ActivityCreate(BaseModel):
    """Schema for recording champion activity."""
    activity_type: ActivityType = Field(..., description="Kind of activity")
    panel_id: Optional[int] = None
    indicator_id: Optional[int] = None
    review_id: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None

    model_config = ConfigDict(use_enum_values=True)


class ResumePoint(BaseModel):
    """Where a champion left off."""
    panel_id: int
    panel_name: str
    indicator_id: Optional[int] = None
    indicator_name: Optional[str] = None
