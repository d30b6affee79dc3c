"""Pydantic schemas for API validation and serialization."""
from .admin import (
    AdminActionResponse,
    AdminGrant,
    CreditAdjustment,
    PlatformStats,
    ReviewDeletion,
)
from .champion import ChampionCreate, ChampionResponse, LeaderboardEntry
from .comment import CommentCreate, CommentResponse
from .notification import NotificationView, UnreadCount
from .panel import (
    IndicatorCreate,
    IndicatorMove,
    IndicatorResponse,
    IndicatorUpdate,
    PanelCreate,
    PanelResponse,
    PanelUpdate,
    PanelWithIndicators,
)
from .progress import ActivityCreate, ResumePoint
from .score import CreditKind, LedgerEntry, Score, ScoreBreakdown
from .submission import (
    DashboardStats,
    IndicatorReviewBatch,
    IndicatorReviewInput,
    IndicatorReviewResponse,
    IndicatorWithReviews,
    ModerationRequest,
    PanelReviewCreate,
    ReviewCreate,
    ReviewResponse,
    ReviewWithVotes,
    SubmissionCreate,
    SubmissionResponse,
    SubmissionWithReviews,
)
from .vote import VoteCreate, VoteTally

__all__ = [
    # Champion schemas
    "ChampionCreate",
    "ChampionResponse",
    "LeaderboardEntry",
    # Catalog schemas
    "PanelCreate",
    "PanelResponse",
    "PanelWithIndicators",
    "PanelUpdate",
    "IndicatorCreate",
    "IndicatorResponse",
    "IndicatorUpdate",
    "IndicatorMove",
    # Submission schemas
    "SubmissionCreate",
    "SubmissionResponse",
    "SubmissionWithReviews",
    "IndicatorReviewInput",
    "IndicatorReviewBatch",
    "IndicatorReviewResponse",
    "PanelReviewCreate",
    "ModerationRequest",
    "ReviewCreate",
    "ReviewResponse",
    "ReviewWithVotes",
    "IndicatorWithReviews",
    "DashboardStats",
    # Comment schemas
    "CommentCreate",
    "CommentResponse",
    # Progress schemas
    "ActivityCreate",
    "ResumePoint",
    # Score schemas
    "CreditKind",
    "LedgerEntry",
    "ScoreBreakdown",
    "Score",
    # Notification schemas
    "NotificationView",
    "UnreadCount",
    # Vote schemas
    "VoteCreate",
    "VoteTally",
    # Admin schemas
    "AdminActionResponse",
    "AdminGrant",
    "CreditAdjustment",
    "ReviewDeletion",
    "PlatformStats",
]
