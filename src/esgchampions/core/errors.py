"""Error taxonomy for the review and moderation workflow.

Every error raised by the engine derives from ChampionsError so callers can
handle the whole family in one place. The REST layer maps each subclass to an
HTTP status code.
"""
from typing import Any, Optional


class ChampionsError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ChampionsError):
    """Malformed or incomplete input that the user can correct."""


class NotFoundError(ChampionsError):
    """A referenced submission, review, champion or notification does not exist.

    Attributes:
        entity: Kind of entity that was looked up (e.g. "submission").
        entity_id: Identifier that was not found.
    """

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found: {entity_id}")


class ConflictError(ChampionsError):
    """A non-terminal submission already exists for the champion and panel.

    Attributes:
        existing_id: ID of the draft or pending submission to resume instead.
    """

    def __init__(self, message: str, existing_id: Optional[int] = None) -> None:
        self.existing_id = existing_id
        super().__init__(message)


class InvalidStateError(ChampionsError):
    """A state transition was attempted on a target that is not in the expected state.

    Moderation raises this when the status-gated update affects no rows. The
    outcome the caller asked for is usually already true, so it is a benign
    no-op rather than a failure.

    Attributes:
        current: The target as currently stored, if it could be loaded.
        expected: The status the transition required.
    """

    def __init__(
        self,
        message: str,
        current: Any = None,
        expected: Optional[str] = None,
    ) -> None:
        self.current = current
        self.expected = expected
        super().__init__(message)


class PermissionDeniedError(ChampionsError):
    """The acting champion lacks the privileges the operation requires."""


class StoreUnavailableError(ChampionsError):
    """The backing store failed transiently; the caller may retry."""


__all__ = [
    "ChampionsError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InvalidStateError",
    "PermissionDeniedError",
    "StoreUnavailableError",
]
