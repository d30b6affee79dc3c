"""Tests for repository pattern implementations."""
import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from esgchampions.core.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from esgchampions.core.models import (
    AdminActionType,
    Champion,
    Indicator,
    IndicatorReview,
    Panel,
    ReviewSubmission,
    SubmissionStatus,
)
from esgchampions.core.schemas import (
    ChampionCreate,
    IndicatorCreate,
    IndicatorUpdate,
    PanelCreate,
    PanelUpdate,
)
from esgchampions.core.services import Catalog
from esgchampions.core.storage.database import Database
from esgchampions.core.storage.repositories import (
    ChampionRepository,
    IndicatorReviewRepository,
    SubmissionRepository,
)


@pytest.fixture
async def session(db: Database):
    """Create test session."""
    async with db.session() as session:
        yield session


@pytest.fixture
async def champion(session: AsyncSession):
    """A champion with no credits."""
    return await ChampionRepository(session).create(
        Champion(email="carol@example.com", full_name="Carol Reed", credits=0)
    )


@pytest.fixture
async def panel(session: AsyncSession):
    """An empty panel."""
    panel = Panel(name="Water & Effluents", category="environmental", is_active=True)
    session.add(panel)
    await session.flush()
    return panel


@pytest.fixture
async def indicator(session: AsyncSession, panel: Panel):
    indicator = Indicator(panel_id=panel.id, code="W-1", name="Water withdrawal", is_active=True)
    session.add(indicator)
    await session.flush()
    return indicator


@pytest.fixture
def submission_repo(session: AsyncSession):
    """Create submission repository."""
    return SubmissionRepository(session)


@pytest.mark.asyncio
async def test_compare_and_set(submission_repo, champion, panel):
    """Test that a status-gated update applies exactly once."""
    submission = await submission_repo.create(
        ReviewSubmission(
            champion_id=champion.id, panel_id=panel.id, status=SubmissionStatus.PENDING.value
        )
    )

    first = await submission_repo.compare_and_set(
        submission.id, "status", "pending", status="approved", admin_notes="ok"
    )
    second = await submission_repo.compare_and_set(
        submission.id, "status", "pending", status="rejected"
    )

    assert first == 1
    assert second == 0
    stored = await submission_repo.get(submission.id)
    assert stored.status == "approved"
    assert stored.admin_notes == "ok"


@pytest.mark.asyncio
async def test_compare_and_set_missing_row(submission_repo):
    assert await submission_repo.compare_and_set(9999, "status", "pending", status="approved") == 0


@pytest.mark.asyncio
async def test_increment_credits(session, champion):
    """Test atomic credit increments."""
    champions = ChampionRepository(session)

    assert await champions.increment_credits(champion.id, 30) == 1
    assert await champions.increment_credits(champion.id, -5) == 1
    assert await champions.increment_credits(9999, 10) == 0

    stored = await champions.get(champion.id)
    assert stored.credits == 25


@pytest.mark.asyncio
async def test_one_open_submission_per_panel(session, submission_repo, champion, panel):
    """Test that the partial unique index allows only one draft or pending submission."""
    await submission_repo.create(
        ReviewSubmission(champion_id=champion.id, panel_id=panel.id, status="approved")
    )
    await submission_repo.create(
        ReviewSubmission(champion_id=champion.id, panel_id=panel.id, status="pending")
    )

    with pytest.raises(IntegrityError):
        await submission_repo.create(
            ReviewSubmission(champion_id=champion.id, panel_id=panel.id, status="draft")
        )


@pytest.mark.asyncio
async def test_find_open_and_terminal_panels(submission_repo, champion, panel):
    assert await submission_repo.find_open(champion.id, panel.id) is None

    done = await submission_repo.create(
        ReviewSubmission(champion_id=champion.id, panel_id=panel.id, status="rejected")
    )
    open_one = await submission_repo.create(
        ReviewSubmission(champion_id=champion.id, panel_id=panel.id, status="draft")
    )

    assert (await submission_repo.find_open(champion.id, panel.id)).id == open_one.id
    assert await submission_repo.terminal_panel_ids(champion.id) == {panel.id}
    assert done.id != open_one.id


@pytest.mark.asyncio
async def test_indicator_reviews_are_read_only(session, submission_repo, champion, panel, indicator):
    """Test that indicator reviews cannot be modified once stored."""
    submission = await submission_repo.create(
        ReviewSubmission(champion_id=champion.id, panel_id=panel.id, status="pending")
    )
    reviews = IndicatorReviewRepository(session)
    review = await reviews.create(
        IndicatorReview(
            submission_id=submission.id,
            indicator_id=indicator.id,
            champion_id=champion.id,
            importance="important",
            rating=3,
        )
    )

    with pytest.raises(NotImplementedError):
        await reviews.update(review.id, rating=5)

    review.rating = 5
    with pytest.raises(InvalidStateError):
        await session.flush()


@pytest.mark.asyncio
async def test_register_champion_normalises_email(db):
    catalog = Catalog(db)

    champion = await catalog.register_champion(
        ChampionCreate(email="  Dana@Example.COM ", full_name="Dana Fox")
    )
    assert champion.email == "dana@example.com"
    assert champion.credits == 0

    with pytest.raises(ConflictError) as exc_info:
        await catalog.register_champion(ChampionCreate(email="dana@example.com", full_name="Dana"))
    assert exc_info.value.existing_id == champion.id


@pytest.mark.asyncio
async def test_list_panels_counts_indicators(db, seed):
    catalog = Catalog(db)

    panels = await catalog.list_panels()
    assert [p.name for p in panels] == ["Climate & GHG Emissions", "Human Rights"]
    assert [p.indicator_count for p in panels] == [3, 3]

    social = await catalog.list_panels(category="social")
    assert [p.name for p in social] == ["Human Rights"]

    detail = await catalog.get_panel_with_indicators(seed.panel.id)
    assert [i.code for i in detail.indicators] == ["E1-1", "E1-2", "E1-3"]


@pytest.mark.asyncio
async def test_platform_stats(db, seed, manager, engine, make_reviews):
    submission = await manager.submit_panel_review(
        seed.alice.id, seed.panel.id, make_reviews(seed.indicators)
    )
    await engine.approve(submission.id, seed.admin.id)
    await manager.create_submission(seed.bob.id, seed.panel.id)

    stats = await Catalog(db).platform_stats()

    assert stats.total_champions == 3
    assert stats.total_panels == 2
    assert stats.total_indicators == 6
    assert stats.total_submissions == 2
    assert stats.pending_submissions == 1
    assert stats.approved_submissions == 1
    assert stats.rejected_submissions == 0


@pytest.mark.asyncio
async def test_register_champion_is_never_admin_by_default(db):
    catalog = Catalog(db)

    champion = await catalog.register_champion(
        ChampionCreate.model_validate(
            {"email": "eve@example.com", "full_name": "Eve", "is_admin": True}
        )
    )
    assert champion.is_admin is False

    admin = await catalog.register_champion(
        ChampionCreate(email="root@example.com", full_name="Root"), is_admin=True
    )
    assert admin.is_admin is True


@pytest.mark.asyncio
async def test_update_and_deactivate_panel(db, seed, engine):
    catalog = Catalog(db)

    panel = await catalog.update_panel(
        seed.panel.id, seed.admin.id, PanelUpdate(description="GHG Protocol scopes", order_index=5)
    )
    assert panel.description == "GHG Protocol scopes"
    assert panel.order_index == 5
    assert panel.name == "Climate & GHG Emissions"

    with pytest.raises(ConflictError):
        await catalog.update_panel(seed.panel.id, seed.admin.id, PanelUpdate(name="Human Rights"))
    with pytest.raises(ValidationError):
        await catalog.update_panel(seed.panel.id, seed.admin.id, PanelUpdate())
    with pytest.raises(PermissionDeniedError):
        await catalog.update_panel(seed.panel.id, seed.alice.id, PanelUpdate(order_index=0))
    with pytest.raises(NotFoundError):
        await catalog.deactivate_panel(9999, seed.admin.id)

    await catalog.deactivate_panel(seed.other_panel.id, seed.admin.id)

    assert [p.name for p in await catalog.list_panels()] == ["Climate & GHG Emissions"]
    assert len(await catalog.list_panels(include_inactive=True)) == 2

    actions = await engine.list_actions()
    assert [a.action_type for a in actions] == [
        AdminActionType.DEACTIVATE_PANEL.value,
        AdminActionType.UPDATE_PANEL.value,
    ]
    assert actions[1].details == {"description": "GHG Protocol scopes", "order_index": 5}


@pytest.mark.asyncio
async def test_update_deactivate_and_move_indicator(db, seed, engine):
    catalog = Catalog(db)
    indicator = seed.indicators[0]

    updated = await catalog.update_indicator(
        indicator.id, seed.admin.id, IndicatorUpdate(name="Direct emissions")
    )
    assert updated.name == "Direct emissions"
    assert updated.code == "E1-1"

    moved = await catalog.move_indicator(indicator.id, seed.admin.id, seed.other_panel.id)
    assert moved.panel_id == seed.other_panel.id
    with pytest.raises(ValidationError):
        await catalog.move_indicator(indicator.id, seed.admin.id, seed.other_panel.id)
    with pytest.raises(NotFoundError):
        await catalog.move_indicator(indicator.id, seed.admin.id, 9999)

    await catalog.deactivate_indicator(seed.indicators[1].id, seed.admin.id)

    detail = await catalog.get_panel_with_indicators(seed.panel.id)
    assert [i.code for i in detail.indicators] == ["E1-3"]
    other = await catalog.get_panel_with_indicators(seed.other_panel.id)
    assert "E1-1" in [i.code for i in other.indicators]

    actions = await engine.list_actions()
    assert [a.action_type for a in actions] == [
        AdminActionType.DEACTIVATE_INDICATOR.value,
        AdminActionType.MOVE_INDICATOR.value,
        AdminActionType.UPDATE_INDICATOR.value,
    ]
    assert actions[1].details == {"old_panel_id": seed.panel.id, "new_panel_id": seed.other_panel.id}


@pytest.mark.asyncio
async def test_create_with_admin_is_audited(db, seed, engine):
    catalog = Catalog(db)

    panel = await catalog.create_panel(
        PanelCreate(name="Water & Effluents", category="environmental"), admin_id=seed.admin.id
    )
    await catalog.create_indicator(
        IndicatorCreate(panel_id=panel.id, code="W-1", name="Water withdrawal"),
        admin_id=seed.admin.id,
    )
    with pytest.raises(PermissionDeniedError):
        await catalog.create_panel(PanelCreate(name="Biodiversity"), admin_id=seed.bob.id)

    actions = await engine.list_actions()
    assert [a.action_type for a in actions] == [
        AdminActionType.CREATE_INDICATOR.value,
        AdminActionType.CREATE_PANEL.value,
    ]
