"""Submission, indicator review and single review schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.submission import Importance, SubmissionStatus
from .panel import IndicatorResponse
from .progress import ResumePoint


class IndicatorReviewInput(BaseModel):
    """A champion's judgment of one indicator."""
    indicator_id: int = Field(..., description="Indicator being reviewed")
    importance: Optional[Importance] = Field(None, description="Important / not important")
    rating: Optional[int] = Field(None, ge=1, le=5, description="Clarity rating (1-5)")
    rationale: Optional[str] = Field(None, description="Free-text rationale")
    tags: list[str] = Field(default_factory=list, description="Structured tags")
    sdgs: list[int] = Field(default_factory=list, description="Related SDG numbers")
    suggested_tier: Optional[str] = Field(None, max_length=50)
    cost_to_collect: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)


class IndicatorReviewResponse(BaseModel):
    """Schema for indicator review response."""
    id: int
    submission_id: int
    indicator_id: int
    champion_id: int
    importance: Optional[str]
    rating: Optional[int]
    rationale: Optional[str]
    tags: Optional[list[str]]
    sdgs: Optional[list[int]]
    suggested_tier: Optional[str]
    cost_to_collect: Optional[str]
    notes: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionCreate(BaseModel):
    """Schema for opening a submission."""
    draft: bool = Field(default=False, description="Create as draft instead of pending")


class IndicatorReviewBatch(BaseModel):
    """Schema for attaching indicator reviews to a submission."""
    reviews: list[IndicatorReviewInput] = Field(..., description="Indicator reviews to attach")


class PanelReviewCreate(BaseModel):
    """Schema for creating a submission and its reviews in one step."""
    reviews: list[IndicatorReviewInput] = Field(..., description="Indicator reviews")


class SubmissionResponse(BaseModel):
    """Schema for submission response."""
    id: int
    champion_id: int
    panel_id: int
    status: SubmissionStatus
    admin_notes: Optional[str]
    reviewed_by: Optional[int]
    reviewed_at: Optional[datetime]
    submitted_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionWithReviews(SubmissionResponse):
    """Submission together with its indicator reviews."""
    panel_name: Optional[str] = None
    reviews: list[IndicatorReviewResponse] = Field(default_factory=list)


class ModerationRequest(BaseModel):
    """Admin comment or rejection reason."""
    comment: Optional[str] = Field(None, description="Admin comment or rejection reason")


class ReviewCreate(BaseModel):
    """Schema for a single-indicator review."""
    indicator_id: int = Field(..., description="Indicator being reviewed")
    content: str = Field(..., min_length=1, description="Review text")
    rating: Optional[int] = Field(None, ge=1, le=5, description="Rating (1-5)")


class ReviewResponse(BaseModel):
    """Schema for single review response."""
    id: int
    champion_id: int
    indicator_id: int
    panel_id: int
    content: str
    rating: Optional[int]
    status: str
    feedback: Optional[str]
    reviewed_by: Optional[int]
    reviewed_at: Optional[datetime]
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewWithVotes(ReviewResponse):
    """Single review with its vote counts."""
    upvotes: int = 0
    downvotes: int = 0
    score: int = 0
    comment_count: int = 0


class IndicatorWithReviews(IndicatorResponse):
    """Indicator together with its visible single reviews."""
    review_count: int = 0
    reviews: list[ReviewWithVotes] = Field(default_factory=list)


class DashboardStats(BaseModel):
    """Champion dashboard summary."""
    champion_id: int
    credits: int
    total_submissions: int
    pending_submissions: int
    approved_submissions: int
    rejected_submissions: int
    pending_reviews: int
    accepted_reviews_count: int
    recent_submissions: list[SubmissionResponse]
    resume_point: Optional[ResumePoint]
