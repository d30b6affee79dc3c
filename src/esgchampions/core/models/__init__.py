"""Core data models for champions, panels, submissions and moderation."""
# Import all models to ensure relationships work correctly
from .champion import Champion
from .panel import Indicator, Panel
from .submission import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    Importance,
    IndicatorReview,
    ReviewSubmission,
    SubmissionStatus,
)
from .review import AcceptedReview, Review, ReviewStatus
from .comment import ReviewComment
from .vote import Vote, VoteTarget, VoteType
from .activity import RESUMABLE_ACTIVITY, ActivityEvent, ActivityType
from .notification import Notification, NotificationType
from .admin_action import AdminAction, AdminActionType

__all__ = [
    # Champion models
    "Champion",
    # Reference data
    "Panel",
    "Indicator",
    # Submission models
    "ReviewSubmission",
    "IndicatorReview",
    "SubmissionStatus",
    "Importance",
    "OPEN_STATUSES",
    "TERMINAL_STATUSES",
    # Single review models
    "Review",
    "ReviewStatus",
    "AcceptedReview",
    "ReviewComment",
    # Votes
    "Vote",
    "VoteTarget",
    "VoteType",
    # Activity
    "ActivityEvent",
    "ActivityType",
    "RESUMABLE_ACTIVITY",
    # Notifications
    "Notification",
    "NotificationType",
    # Audit
    "AdminAction",
    "AdminActionType",
]
