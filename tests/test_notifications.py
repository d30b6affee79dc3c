"""Tests for notification listing, demo fallback and read state."""
from datetime import datetime, timezone

import pytest
from sqlalchemy import update

from esgchampions.core.config.settings import ChampionsConfig
from esgchampions.core.errors import NotFoundError, StoreUnavailableError, ValidationError
from esgchampions.core.identity import LocalIdentityProvider, Principal
from esgchampions.core.models import Notification, NotificationType
from esgchampions.core.schemas.notification import NotificationView
from esgchampions.core.services import NotificationCenter, ReadStateCache, notify
from esgchampions.core.services.notifications import NotificationSource, select_notifications


class FailingSource(NotificationSource):
    async def fetch(self, champion_id: int) -> list[NotificationView]:
        raise StoreUnavailableError("database is locked")


def view(notification_id: str, read: bool = False) -> NotificationView:
    return NotificationView(
        id=notification_id,
        type=NotificationType.NEW_PANEL.value,
        title="New Panel Available!",
        message="A new panel is available",
        read=read,
        created_at=datetime.now(timezone.utc),
    )


async def add_notification(db, champion_id: int, title: str = "Credits Earned!") -> int:
    async with db.session() as session:
        notification = await notify(
            session,
            champion_id,
            NotificationType.CREDITS_AWARDED,
            title=title,
            message="You earned 10 credits",
            data={"credits": 10},
        )
        await session.commit()
        return notification.id


def test_select_notifications_prefers_persisted():
    persisted = [view("7")]
    demo = [view("demo-001"), view("demo-002")]

    assert [n.id for n in select_notifications(persisted, demo)] == ["7"]
    assert [n.id for n in select_notifications([], demo)] == ["demo-001", "demo-002"]
    assert select_notifications([], []) == []


@pytest.mark.asyncio
async def test_demo_fallback(center, seed):
    """A champion with nothing persisted sees the demo set."""
    notifications = await center.list(seed.alice.id)

    assert [n.id for n in notifications] == ["demo-001", "demo-002", "demo-003", "demo-004"]
    assert all(n.demo for n in notifications)
    assert notifications[3].read is True
    assert await center.unread_count(seed.alice.id) == 3


@pytest.mark.asyncio
async def test_mark_demo_read(center, seed):
    await center.mark_read("demo-001", champion_id=seed.alice.id)
    assert await center.unread_count(seed.alice.id) == 2

    # Idempotent
    await center.mark_read("demo-001", champion_id=seed.alice.id)
    assert await center.unread_count(seed.alice.id) == 2

    notifications = {n.id: n for n in await center.list(seed.alice.id)}
    assert notifications["demo-001"].read is True
    assert notifications["demo-002"].read is False

    # Demo ids are shared, read state is not
    assert await center.unread_count(seed.bob.id) == 3


@pytest.mark.asyncio
async def test_mark_demo_read_requires_champion(center, seed):
    with pytest.raises(ValidationError):
        await center.mark_read("demo-001")


@pytest.mark.asyncio
async def test_mark_read_invalid_id(center, seed):
    with pytest.raises(ValidationError):
        await center.mark_read("not-a-number", champion_id=seed.alice.id)


@pytest.mark.asyncio
async def test_persisted_replaces_demo_after_approval(center, manager, engine, seed, make_reviews):
    submission = await manager.submit_panel_review(
        seed.alice.id, seed.panel.id, make_reviews(seed.indicators)
    )
    await engine.approve(submission.id, seed.admin.id)

    notifications = await center.list(seed.alice.id)

    assert len(notifications) == 1
    assert notifications[0].demo is False
    assert notifications[0].type == NotificationType.REVIEW_ACCEPTED.value
    assert notifications[0].title == "Review Approved!"
    assert await center.unread_count(seed.alice.id) == 1


@pytest.mark.asyncio
async def test_mark_persisted_read(center, db, seed):
    first = await add_notification(db, seed.alice.id)
    await add_notification(db, seed.alice.id, title="Second")
    assert await center.unread_count(seed.alice.id) == 2

    await center.mark_read(first, champion_id=seed.alice.id)
    await center.mark_read(str(first), champion_id=seed.alice.id)

    assert await center.unread_count(seed.alice.id) == 1
    async with db.session() as session:
        stored = await session.get(Notification, first)
    assert stored.is_read is True
    assert stored.read_at is not None


@pytest.mark.asyncio
async def test_read_state_is_monotonic(center, db, seed):
    """A stale unread row from the store cannot undo a local read."""
    notification_id = await add_notification(db, seed.alice.id)
    await center.mark_read(notification_id, champion_id=seed.alice.id)

    async with db.session() as session:
        await session.execute(
            update(Notification).where(Notification.id == notification_id).values(is_read=False)
        )
        await session.commit()

    notifications = await center.list(seed.alice.id)
    assert notifications[0].read is True
    assert await center.unread_count(seed.alice.id) == 0


@pytest.mark.asyncio
async def test_sign_out_clears_read_state(db, config, seed):
    identity = LocalIdentityProvider()
    read_state = ReadStateCache()
    read_state.bind(identity)
    center = NotificationCenter(db, read_state, config)

    alice = Principal(id=seed.alice.id, email=seed.alice.email)
    identity.sign_in(alice)
    await center.mark_read("demo-001", champion_id=seed.alice.id)
    await center.mark_read("demo-002", champion_id=seed.bob.id)
    assert await center.unread_count(seed.alice.id) == 2

    identity.sign_out()

    assert identity.get_current_principal() is None
    assert await center.unread_count(seed.alice.id) == 3
    assert await center.unread_count(seed.bob.id) == 2


@pytest.mark.asyncio
async def test_mark_read_unknown_notification(center, db, seed):
    with pytest.raises(NotFoundError):
        await center.mark_read(9999, champion_id=seed.alice.id)

    bobs = await add_notification(db, seed.bob.id)
    with pytest.raises(NotFoundError):
        await center.mark_read(bobs, champion_id=seed.alice.id)

    async with db.session() as session:
        stored = await session.get(Notification, bobs)
    assert stored.is_read is False


@pytest.mark.asyncio
async def test_mark_all_read(center, db, seed):
    await add_notification(db, seed.alice.id)
    await add_notification(db, seed.alice.id, title="Second")
    await add_notification(db, seed.bob.id)

    changed = await center.mark_all_read(seed.alice.id)

    assert changed == 2
    assert await center.unread_count(seed.alice.id) == 0
    assert await center.unread_count(seed.bob.id) == 1


@pytest.mark.asyncio
async def test_mark_all_read_demo(center, seed):
    assert await center.mark_all_read(seed.alice.id) == 0
    assert await center.unread_count(seed.alice.id) == 0


@pytest.mark.asyncio
async def test_store_failure_shows_nothing(db, config, read_state, seed):
    """An outage never substitutes the demo set for the real list."""
    center = NotificationCenter(db, read_state, config, persisted=FailingSource())

    assert await center.list(seed.alice.id) == []
    assert await center.unread_count(seed.alice.id) == 0


@pytest.mark.asyncio
async def test_store_failure_never_shows_demo_to_champion_with_notifications(
    db, config, read_state, seed
):
    await add_notification(db, seed.alice.id)
    center = NotificationCenter(db, read_state, config)
    assert [n.demo for n in await center.list(seed.alice.id)] == [False]

    center.persisted = FailingSource()

    assert await center.list(seed.alice.id) == []


def test_read_state_keeps_newest_ids():
    read_state = ReadStateCache(max_ids=3)
    for notification_id in range(1, 6):
        read_state.mark(1, notification_id)
    read_state.mark(2, "demo-001")

    assert read_state.size(1) == 3
    assert not read_state.is_read(1, 1)
    assert not read_state.is_read(1, 2)
    assert read_state.is_read(1, 5)
    assert read_state.size() == 4

    # Re-marking refreshes an id so it is not the next one dropped
    read_state.mark(1, 3)
    read_state.mark(1, 6)
    assert read_state.is_read(1, 3)
    assert not read_state.is_read(1, 4)

    with pytest.raises(ValueError):
        ReadStateCache(max_ids=0)


@pytest.mark.asyncio
async def test_store_confirmed_reads_are_pruned(center, db, seed):
    notification_ids = [await add_notification(db, seed.alice.id) for _ in range(3)]
    for notification_id in notification_ids:
        await center.mark_read(notification_id, champion_id=seed.alice.id)
    assert center.read_state.size(seed.alice.id) == 3

    notifications = await center.list(seed.alice.id)

    assert all(n.read for n in notifications)
    assert center.read_state.size(seed.alice.id) == 0
    assert center.read_state.size() == 0


@pytest.mark.asyncio
async def test_mark_all_read_keeps_cache_small(center, db, seed):
    for _ in range(5):
        await add_notification(db, seed.alice.id)

    await center.mark_all_read(seed.alice.id)

    assert await center.unread_count(seed.alice.id) == 0
    assert center.read_state.size(seed.alice.id) == 0


@pytest.mark.asyncio
async def test_demo_disabled(db, tmp_path, read_state, seed):
    config = ChampionsConfig(db_path=str(tmp_path / "unused.db"), demo_notifications=False)
    center = NotificationCenter(db, read_state, config)

    assert await center.list(seed.alice.id) == []
    assert await center.unread_count(seed.alice.id) == 0
