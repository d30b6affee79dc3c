"""Identity collaborator interface.

The engine only needs the current principal and to hear about sign-in and
sign-out. Authentication itself lives outside this package.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """An authenticated champion."""
    id: int
    email: Optional[str] = None
    email_confirmed: bool = True
    is_admin: bool = False


class SessionEvent(str, Enum):
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


SessionCallback = Callable[[SessionEvent, Optional[Principal]], None]


class IdentityProvider(ABC):
    """Source of the current principal and session lifecycle events."""

    @abstractmethod
    def get_current_principal(self) -> Optional[Principal]:
        """Return the signed-in principal, or None."""

    @abstractmethod
    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Register a callback for session events.

        Returns:
            A function that unregisters the callback
        """


class LocalIdentityProvider(IdentityProvider):
    """In-process identity provider driven by explicit sign-in/sign-out calls."""

    def __init__(self) -> None:
        self._principal: Optional[Principal] = None
        self._callbacks: list[SessionCallback] = []

    def get_current_principal(self) -> Optional[Principal]:
        return self._principal

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def sign_in(self, principal: Principal) -> None:
        if self._principal is not None and self._principal != principal:
            self.sign_out()
        self._principal = principal
        self._emit(SessionEvent.SIGNED_IN, principal)

    def sign_out(self, principal: Optional[Principal] = None) -> None:
        """End a session; defaults to the current principal's."""
        if principal is None or principal == self._principal:
            principal = self._principal
            self._principal = None
        self._emit(SessionEvent.SIGNED_OUT, principal)

    def _emit(self, event: SessionEvent, principal: Optional[Principal]) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event, principal)
            except Exception as e:
                logger.error(f"Session callback failed for {event.value}: {e}")
