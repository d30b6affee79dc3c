"""Review comment schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for commenting on a review."""
    content: str = Field(..., min_length=1, description="Comment text")
    parent_id: Optional[int] = Field(None, description="Comment being replied to")


class CommentResponse(BaseModel):
    """A comment and its replies, oldest first."""
    id: int
    review_id: int
    champion_id: int
    parent_id: Optional[int]
    content: str
    credits_awarded: int
    created_at: datetime
    replies: list["CommentResponse"] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
