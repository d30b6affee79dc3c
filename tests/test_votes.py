"""Tests for peer votes."""
import pytest

from esgchampions.core.errors import NotFoundError, ValidationError
from esgchampions.core.models import ActivityType, VoteTarget
from esgchampions.core.storage.repositories import ActivityRepository, ChampionRepository, VoteRepository


@pytest.fixture
async def review(manager, seed):
    return await manager.submit_review(seed.alice.id, seed.indicators[0].id, "Clear and measurable")


@pytest.mark.asyncio
async def test_vote_and_tally(votes, seed, review):
    vote = await votes.vote("review", review.id, seed.bob.id, "upvote")

    assert vote.vote_type == "upvote"
    tally = await votes.tally(VoteTarget.REVIEW, review.id)
    assert tally.upvotes == 1
    assert tally.downvotes == 0
    assert tally.score == 1


@pytest.mark.asyncio
async def test_revote_overwrites(votes, db, seed, review):
    first = await votes.vote("review", review.id, seed.bob.id, "upvote")
    second = await votes.vote("review", review.id, seed.bob.id, "downvote")

    assert second.id == first.id
    tally = await votes.tally("review", review.id)
    assert (tally.upvotes, tally.downvotes) == (0, 1)

    async with db.session() as session:
        assert await VoteRepository(session).count(target_id=review.id) == 1
        logged = await ActivityRepository(session).count(
            champion_id=seed.bob.id, activity_type=ActivityType.VOTE.value
        )
    assert logged == 2


@pytest.mark.asyncio
async def test_cannot_vote_on_own_work(votes, seed, review):
    with pytest.raises(ValidationError):
        await votes.vote("review", review.id, seed.alice.id, "upvote")


@pytest.mark.asyncio
async def test_vote_validation(votes, seed, review):
    with pytest.raises(ValidationError):
        await votes.vote("comment", review.id, seed.bob.id, "upvote")
    with pytest.raises(ValidationError):
        await votes.vote("review", review.id, seed.bob.id, "sideways")
    with pytest.raises(NotFoundError):
        await votes.vote("submission", 9999, seed.bob.id, "upvote")


@pytest.mark.asyncio
async def test_remove_vote(votes, seed, review):
    await votes.vote("review", review.id, seed.bob.id, "upvote")

    assert await votes.remove_vote("review", review.id, seed.bob.id) is True
    assert await votes.remove_vote("review", review.id, seed.bob.id) is False
    assert (await votes.tally("review", review.id)).upvotes == 0


@pytest.mark.asyncio
async def test_votes_do_not_change_credits(votes, db, seed, review):
    await votes.vote("review", review.id, seed.bob.id, "upvote")
    await votes.vote("review", review.id, seed.admin.id, "upvote")

    async with db.session() as session:
        alice = await ChampionRepository(session).get(seed.alice.id)
        upvotes = await VoteRepository(session).upvotes_received(seed.alice.id)
    assert alice.credits == 0
    assert upvotes == 2
