"""Workflow services. Each public call opens its own session and commits once."""
from .catalog import Catalog
from .discussion import DiscussionService
from .export import approved_review_rows, render_csv
from .ledger import CreditLedger, ledger_entries
from .moderation import ModerationEngine
from .notifications import (
    DemoSource,
    NotificationCenter,
    NotificationSource,
    PersistedSource,
    ReadStateCache,
    notify,
    select_notifications,
)
from .progress import ProgressTracker
from .submissions import SubmissionManager
from .votes import VoteService

__all__ = [
    "Catalog",
    "DiscussionService",
    "CreditLedger",
    "ledger_entries",
    "ProgressTracker",
    "SubmissionManager",
    "ModerationEngine",
    "NotificationSource",
    "PersistedSource",
    "DemoSource",
    "ReadStateCache",
    "NotificationCenter",
    "notify",
    "select_notifications",
    "VoteService",
    "approved_review_rows",
    "render_csv",
]
