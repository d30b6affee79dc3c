"""Tests for activity recording and the resume point."""
import pytest

from esgchampions.core.errors import ValidationError
from esgchampions.core.models import ActivityType


@pytest.mark.asyncio
async def test_no_resume_point_without_activity(tracker, seed):
    assert await tracker.get_resume_point(seed.alice.id) is None


@pytest.mark.asyncio
async def test_resume_point_is_latest_view(tracker, seed):
    await tracker.record_activity(seed.alice.id, ActivityType.VIEW_PANEL, panel_id=seed.panel.id)
    await tracker.record_activity(
        seed.alice.id,
        ActivityType.VIEW_INDICATOR,
        panel_id=seed.panel.id,
        indicator_id=seed.indicators[1].id,
    )

    point = await tracker.get_resume_point(seed.alice.id)

    assert point.panel_id == seed.panel.id
    assert point.panel_name == "Climate & GHG Emissions"
    assert point.indicator_id == seed.indicators[1].id
    assert point.indicator_name == "Scope 2 emissions"


@pytest.mark.asyncio
async def test_resume_point_skips_finished_panels(tracker, manager, engine, seed, make_reviews):
    """Panels with an approved or rejected submission are no longer resumable."""
    await tracker.record_activity(
        seed.alice.id, ActivityType.VIEW_PANEL, panel_id=seed.other_panel.id
    )
    await tracker.record_activity(
        seed.alice.id,
        ActivityType.VIEW_INDICATOR,
        panel_id=seed.panel.id,
        indicator_id=seed.indicators[0].id,
    )
    assert (await tracker.get_resume_point(seed.alice.id)).panel_id == seed.panel.id

    submission = await manager.submit_panel_review(
        seed.alice.id, seed.panel.id, make_reviews(seed.indicators)
    )
    # Pending still counts as in progress
    assert (await tracker.get_resume_point(seed.alice.id)).panel_id == seed.panel.id

    await engine.approve(submission.id, seed.admin.id)

    point = await tracker.get_resume_point(seed.alice.id)
    assert point.panel_id == seed.other_panel.id
    assert point.indicator_id is None


@pytest.mark.asyncio
async def test_resume_point_ignores_other_activity(tracker, votes, manager, seed):
    review = await manager.submit_review(seed.alice.id, seed.indicators[0].id, "Useful metric")
    await votes.vote("review", review.id, seed.bob.id, "upvote")

    assert await tracker.get_resume_point(seed.alice.id) is None
    assert await tracker.get_resume_point(seed.bob.id) is None


@pytest.mark.asyncio
async def test_resume_point_is_per_champion(tracker, seed):
    await tracker.record_activity(seed.bob.id, ActivityType.VIEW_PANEL, panel_id=seed.panel.id)

    assert await tracker.get_resume_point(seed.alice.id) is None
    assert (await tracker.get_resume_point(seed.bob.id)).panel_id == seed.panel.id


@pytest.mark.asyncio
async def test_record_activity_accepts_string_type(tracker, seed):
    event = await tracker.record_activity(
        seed.alice.id, "view_panel", panel_id=seed.panel.id, metadata={"source": "panels-page"}
    )

    assert event is not None
    assert event.activity_type == "view_panel"
    assert event.meta_data == {"source": "panels-page"}


@pytest.mark.asyncio
async def test_record_activity_rejects_unknown_type(tracker, seed):
    with pytest.raises(ValidationError):
        await tracker.record_activity(seed.alice.id, "download_report")


@pytest.mark.asyncio
async def test_record_activity_swallows_store_errors(tracker, seed):
    """A failed write is logged and reported as None instead of raising."""
    event = await tracker.record_activity(9999, ActivityType.VIEW_PANEL, panel_id=seed.panel.id)

    assert event is None
