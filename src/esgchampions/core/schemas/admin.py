"""Admin schemas."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AdminActionResponse(BaseModel):
    """Schema for audit log entries."""
    id: int
    admin_id: int
    action_type: str
    target_type: str
    target_id: str
    details: Optional[dict[str, Any]]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreditAdjustment(BaseModel):
    """Schema for an explicit admin credit correction."""
    delta: int = Field(..., description="Credits to add (negative to deduct)")
    reason: str = Field(..., min_length=1, description="Why the balance is corrected")


class PlatformStats(BaseModel):
    """Schema for admin dashboard statistics."""
    total_reviews: int
    pending_reviews: int
    total_submissions: int
    pending_submissions: int
    approved_submissions: int
    rejected_submissions: int
    total_champions: int
    total_panels: int
    total_indicators: int


class AdminGrant(BaseModel):
    """Schema for granting or revoking moderator rights."""
    is_admin: bool = Field(..., description="Whether the champion should be an admin")


class ReviewDeletion(BaseModel):
    """Schema for soft-deleting a review."""
    reason: Optional[str] = Field(None, description="Why the review was removed")
