"""ESG Champions - review submission and moderation workflow engine.

Invited domain experts rate sustainability indicators and submit panel
reviews; moderators approve or reject them, awarding credits exactly once.
"""
__version__ = "0.1.0"

from .core.config.settings import ChampionsConfig, get_config, init_config
from .core.errors import (
    ChampionsError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    StoreUnavailableError,
    ValidationError,
)
from .core.identity import IdentityProvider, LocalIdentityProvider, Principal, SessionEvent
from .core.storage.database import Database, get_db, init_db
from .core.models import (
    AcceptedReview,
    ActivityEvent,
    ActivityType,
    AdminAction,
    Champion,
    Indicator,
    IndicatorReview,
    Notification,
    NotificationType,
    Panel,
    Review,
    ReviewComment,
    ReviewStatus,
    ReviewSubmission,
    SubmissionStatus,
    Vote,
)
from .core.services import (
    Catalog,
    CreditLedger,
    DiscussionService,
    ModerationEngine,
    NotificationCenter,
    ProgressTracker,
    ReadStateCache,
    SubmissionManager,
    VoteService,
)

__all__ = [
    "__version__",
    # Config
    "ChampionsConfig",
    "get_config",
    "init_config",
    # Errors
    "ChampionsError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InvalidStateError",
    "PermissionDeniedError",
    "StoreUnavailableError",
    # Identity
    "IdentityProvider",
    "LocalIdentityProvider",
    "Principal",
    "SessionEvent",
    # Database
    "Database",
    "get_db",
    "init_db",
    # Models
    "Champion",
    "Panel",
    "Indicator",
    "ReviewSubmission",
    "IndicatorReview",
    "SubmissionStatus",
    "Review",
    "ReviewStatus",
    "AcceptedReview",
    "Vote",
    "ActivityEvent",
    "ActivityType",
    "Notification",
    "NotificationType",
    "AdminAction",
    "ReviewComment",
    # Services
    "Catalog",
    "DiscussionService",
    "CreditLedger",
    "ProgressTracker",
    "SubmissionManager",
    "ModerationEngine",
    "NotificationCenter",
    "ReadStateCache",
    "VoteService",
]
