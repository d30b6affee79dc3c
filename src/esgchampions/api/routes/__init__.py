"""API route modules."""
from . import catalog, discussion, moderation, notifications, progress, scores, submissions, votes

__all__ = [
    "catalog",
    "submissions",
    "discussion",
    "moderation",
    "notifications",
    "progress",
    "scores",
    "votes",
]
