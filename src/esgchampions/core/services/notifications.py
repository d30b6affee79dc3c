"""Notification dispatch and read-state reconciliation.

Two sources feed the notification list: persisted rows and a fixed demo set
shown to champions who have nothing persisted yet. They are never
interleaved: any persisted notification suppresses the demo set entirely.

Read state is monotonic. Ids marked read during a session are remembered in
a ReadStateCache, and that cache wins over a stale "unread" coming back from
the store.
"""
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config.settings import ChampionsConfig, get_config
from ..errors import NotFoundError, StoreUnavailableError, ValidationError
from ..identity import IdentityProvider, Principal, SessionEvent
from ..models import Notification, NotificationType
from ..schemas.notification import NotificationView
from ..storage.database import Database
from ..storage.repositories import NotificationRepository

logger = logging.getLogger(__name__)

DEMO_PREFIX = "demo-"


class NotificationSource(ABC):
    """A stream of notifications for one champion."""

    @abstractmethod
    async def fetch(self, champion_id: int) -> list[NotificationView]:
        """Return notifications newest first."""


class PersistedSource(NotificationSource):
    """Notifications stored in the database."""

    def __init__(self, db: Database, limit: int = 20):
        self.db = db
        self.limit = limit

    async def fetch(self, champion_id: int) -> list[NotificationView]:
        async with self.db.session() as session:
            rows = await NotificationRepository(session).list(
                order_by="created_at",
                descending=True,
                limit=self.limit,
                champion_id=champion_id,
            )
        return [to_view(row) for row in rows]


class DemoSource(NotificationSource):
    """Fixed sample notifications for accounts with nothing to show yet."""

    def __init__(self, now: Optional[datetime] = None):
        self._now = now

    async def fetch(self, champion_id: int) -> list[NotificationView]:
        now = self._now or datetime.now(timezone.utc)
        return [
            NotificationView(
                id=f"{DEMO_PREFIX}001",
                champion_id=champion_id,
                type=NotificationType.REVIEW_ACCEPTED.value,
                title="Review Approved!",
                message='Your review for "Climate & GHG Emissions" panel has been approved!',
                data={
                    "panel_name": "Climate & GHG Emissions",
                    "admin_comment": "Great work! Your analysis was thorough and well-structured.",
                },
                created_at=now - timedelta(minutes=30),
                demo=True,
            ),
            NotificationView(
                id=f"{DEMO_PREFIX}002",
                champion_id=champion_id,
                type=NotificationType.CREDITS_AWARDED.value,
                title="Credits Earned!",
                message='You earned 10 credits for your approved review of "Climate & GHG Emissions".',
                data={"credits": 10, "panel_name": "Climate & GHG Emissions"},
                created_at=now - timedelta(hours=1),
                demo=True,
            ),
            NotificationView(
                id=f"{DEMO_PREFIX}003",
                champion_id=champion_id,
                type=NotificationType.PEER_JOINED.value,
                title="Your Peer Joined!",
                message="John Doe accepted your invitation and joined the platform!",
                data={"new_user_name": "John Doe"},
                created_at=now - timedelta(hours=2),
                demo=True,
            ),
            NotificationView(
                id=f"{DEMO_PREFIX}004",
                champion_id=champion_id,
                type=NotificationType.NEW_PANEL.value,
                title="New Panel Available!",
                message=(
                    'A new "Data Privacy & Cybersecurity" panel is now available for review. '
                    "Start reviewing to earn credits!"
                ),
                data={"panel_name": "Data Privacy & Cybersecurity"},
                read=True,
                created_at=now - timedelta(days=1),
                demo=True,
            ),
        ]


def select_notifications(
    persisted: list[NotificationView], demo: list[NotificationView]
) -> list[NotificationView]:
    """Persisted notifications win whenever there are any."""
    return list(persisted) if persisted else list(demo)


def is_demo_id(notification_id: int | str) -> bool:
    return isinstance(notification_id, str) and notification_id.startswith(DEMO_PREFIX)


def to_view(notification: Notification) -> NotificationView:
    return NotificationView(
        id=str(notification.id),
        champion_id=notification.champion_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        link=notification.link,
        data=notification.data,
        read=notification.is_read,
        created_at=notification.created_at,
    )


class ReadStateCache:
    """Per-session memory of notifications a champion has read.

    Keyed by (champion id, notification id) because demo ids are shared by
    every champion. Each champion keeps at most ``max_ids`` ids; the oldest
    marks are dropped first. Ids the store already reports read are pruned
    by ``forget``, since the stored flag only ever moves from unread to read.
    """

    def __init__(self, max_ids: int = 500) -> None:
        if max_ids < 1:
            raise ValueError("max_ids must be at least 1")
        self.max_ids = max_ids
        self._read: dict[int, OrderedDict[str, None]] = {}
        self._lock = Lock()

    def mark(self, champion_id: int, notification_id: int | str) -> None:
        with self._lock:
            ids = self._read.setdefault(champion_id, OrderedDict())
            ids[str(notification_id)] = None
            ids.move_to_end(str(notification_id))
            while len(ids) > self.max_ids:
                ids.popitem(last=False)

    def forget(self, champion_id: int, notification_ids: Iterable[int | str]) -> None:
        """Drop ids that no longer need a local override."""
        with self._lock:
            ids = self._read.get(champion_id)
            if ids is None:
                return
            for notification_id in notification_ids:
                ids.pop(str(notification_id), None)
            if not ids:
                del self._read[champion_id]

    def is_read(self, champion_id: int, notification_id: int | str) -> bool:
        with self._lock:
            return str(notification_id) in self._read.get(champion_id, ())

    def size(self, champion_id: Optional[int] = None) -> int:
        with self._lock:
            if champion_id is not None:
                return len(self._read.get(champion_id, ()))
            return sum(len(ids) for ids in self._read.values())

    def apply(self, champion_id: int, notifications: list[NotificationView]) -> list[NotificationView]:
        """Overlay local read state; never turns a read notification unread."""
        with self._lock:
            read_ids = set(self._read.get(champion_id, ()))
        return [
            n.model_copy(update={"read": True}) if not n.read and n.id in read_ids else n
            for n in notifications
        ]

    def clear(self, champion_id: Optional[int] = None) -> None:
        with self._lock:
            if champion_id is None:
                self._read.clear()
            else:
                self._read.pop(champion_id, None)

    def bind(self, identity: IdentityProvider):
        """Forget a champion's local read state when they sign out.

        Returns:
            The unsubscribe function from the identity provider
        """

        def on_change(event: SessionEvent, principal: Optional[Principal]) -> None:
            if event == SessionEvent.SIGNED_OUT and principal is not None:
                self.clear(principal.id)

        return identity.on_session_change(on_change)


class NotificationCenter:
    """Merged, read-state-consistent view over both notification sources."""

    def __init__(
        self,
        db: Database,
        read_state: Optional[ReadStateCache] = None,
        config: Optional[ChampionsConfig] = None,
        persisted: Optional[NotificationSource] = None,
        demo: Optional[NotificationSource] = None,
    ):
        self.db = db
        self.config = config or get_config()
        self.read_state = read_state or ReadStateCache()
        self.persisted = persisted or PersistedSource(db, limit=self.config.notification_limit)
        self.demo = demo or DemoSource()

    async def list(self, champion_id: int) -> list[NotificationView]:
        """Notifications for a champion, newest first.

        A failing store degrades to an empty list. The demo set is only shown
        when the store positively reports nothing persisted, so an outage never
        replaces real notifications with samples.
        """
        try:
            persisted = await self.persisted.fetch(champion_id)
        except (SQLAlchemyError, StoreUnavailableError) as e:
            logger.warning(f"Could not load notifications for champion {champion_id}: {e}")
            return self.read_state.apply(champion_id, [])

        self.read_state.forget(champion_id, [n.id for n in persisted if n.read])

        demo: list[NotificationView] = []
        if not persisted and self.config.demo_notifications:
            demo = await self.demo.fetch(champion_id)

        return self.read_state.apply(champion_id, select_notifications(persisted, demo))

    async def unread_count(self, champion_id: int) -> int:
        """Unread notifications in exactly the list ``list()`` returns."""
        notifications = await self.list(champion_id)
        return sum(1 for n in notifications if not n.read)

    async def mark_read(
        self, notification_id: int | str, champion_id: Optional[int] = None
    ) -> None:
        """Mark one notification read. Repeating the call is a no-op.

        Args:
            notification_id: Persisted id, or a demo id
            champion_id: Owner; required for demo ids

        Raises:
            ValidationError: If a demo id is given without a champion
            NotFoundError: If a persisted id does not exist (or belongs to
                another champion)
        """
        if is_demo_id(notification_id):
            if champion_id is None:
                raise ValidationError("champion_id is required to mark a demo notification read")
            self.read_state.mark(champion_id, notification_id)
            return

        try:
            row_id = int(notification_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid notification id: {notification_id}")

        if champion_id is not None and self.read_state.is_read(champion_id, row_id):
            return

        try:
            async with self.db.session() as session:
                notifications = NotificationRepository(session)
                notification = await notifications.get(row_id)
                if notification is None or (
                    champion_id is not None and notification.champion_id != champion_id
                ):
                    raise NotFoundError("notification", notification_id)

                owner = notification.champion_id
                await notifications.compare_and_set(
                    row_id, "is_read", False, is_read=True, read_at=_now()
                )
                await session.commit()
        except StoreUnavailableError as e:
            if champion_id is None:
                raise
            # Keep the local read state even if the store write failed
            logger.warning(f"Could not persist read state of notification {row_id}: {e}")
            owner = champion_id

        self.read_state.mark(owner, row_id)

    async def mark_all_read(self, champion_id: int) -> int:
        """Mark every notification of a champion read, demo ones included.

        Returns:
            Number of persisted rows that changed
        """
        changed = 0
        try:
            async with self.db.session() as session:
                changed = await NotificationRepository(session).mark_all_read(
                    champion_id, read_at=_now()
                )
                await session.commit()
        except StoreUnavailableError as e:
            logger.warning(f"Could not persist mark-all-read for champion {champion_id}: {e}")

        for notification in await self.list(champion_id):
            if not notification.read:
                self.read_state.mark(champion_id, notification.id)
        return changed


async def notify(
    session: AsyncSession,
    champion_id: int,
    notification_type: NotificationType,
    title: str,
    message: str,
    data: Optional[dict[str, Any]] = None,
    link: Optional[str] = None,
) -> Notification:
    """Enqueue a notification inside the caller's transaction."""
    return await NotificationRepository(session).create(
        Notification(
            champion_id=champion_id,
            type=notification_type.value,
            title=title,
            message=message,
            data=data,
            link=link,
            is_read=False,
        )
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)
