"""Tests for the credit ledger: scores, breakdown and ranking."""
import logging

import pytest

from esgchampions.core.errors import NotFoundError
from esgchampions.core.schemas.score import CreditKind
from esgchampions.core.services.ledger import ledger_entries


def test_credit_delta(ledger):
    assert ledger.credit_delta(0) == 0
    assert ledger.credit_delta(3) == 30
    with pytest.raises(ValueError):
        ledger.credit_delta(-1)


def test_ledger_entries_sum_to_total():
    entries = ledger_entries(total=42, review_credits=30, vote_credits=4)

    assert [e.kind for e in entries] == [CreditKind.REVIEW, CreditKind.VOTE, CreditKind.PARTICIPATION]
    assert sum(e.amount for e in entries) == 42
    assert entries[2].amount == 8


@pytest.mark.asyncio
async def test_score_after_approval(ledger, engine, manager, seed, make_reviews):
    submission = await manager.submit_panel_review(
        seed.alice.id, seed.panel.id, make_reviews(seed.indicators)
    )
    await engine.approve(submission.id, seed.admin.id)

    score = await ledger.compute_score(seed.alice.id)

    assert score.total == 30
    assert score.breakdown.reviews == 30
    assert score.breakdown.votes == 0
    assert score.breakdown.participation == 0
    assert score.breakdown.total == score.total
    assert score.rank == 1


@pytest.mark.asyncio
async def test_score_reconciles_with_votes_and_adjustments(
    ledger, engine, manager, votes, seed, make_reviews
):
    """reviews + votes + participation always equals the stored balance."""
    submission = await manager.submit_panel_review(
        seed.alice.id, seed.panel.id, make_reviews(seed.indicators)
    )
    await engine.approve(submission.id, seed.admin.id)
    await votes.vote("submission", submission.id, seed.bob.id, "upvote")
    await engine.adjust_credits(seed.alice.id, seed.admin.id, 7, "Community call")

    score = await ledger.compute_score(seed.alice.id)

    assert score.total == 37
    assert score.breakdown.reviews == 30
    assert score.breakdown.votes == 2
    assert score.breakdown.participation == 5
    assert score.breakdown.total == score.total
    assert sum(e.amount for e in score.entries) == score.total


@pytest.mark.asyncio
async def test_vote_credits_alone_are_not_drift(ledger, engine, manager, votes, seed, make_reviews, caplog):
    """Vote credits above the non-review balance show up as negative participation."""
    submission = await manager.submit_panel_review(
        seed.alice.id, seed.panel.id, make_reviews(seed.indicators[:1])
    )
    await engine.approve(submission.id, seed.admin.id)
    await votes.vote("submission", submission.id, seed.bob.id, "upvote")

    with caplog.at_level(logging.DEBUG, logger="esgchampions.core.services.ledger"):
        score = await ledger.compute_score(seed.alice.id)

    assert score.total == 10
    assert score.breakdown.participation == -2
    assert score.breakdown.total == score.total
    assert "Ledger drift" not in caplog.text
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


@pytest.mark.asyncio
async def test_balance_below_review_credits_is_drift(ledger, engine, manager, seed, make_reviews, caplog):
    submission = await manager.submit_panel_review(
        seed.alice.id, seed.panel.id, make_reviews(seed.indicators)
    )
    await engine.approve(submission.id, seed.admin.id)
    await engine.adjust_credits(seed.alice.id, seed.admin.id, -12, "Duplicate award")

    with caplog.at_level(logging.WARNING, logger="esgchampions.core.services.ledger"):
        score = await ledger.compute_score(seed.alice.id)

    assert score.total == 18
    assert score.breakdown.reviews == 30
    assert score.breakdown.participation == -12
    assert score.breakdown.total == score.total
    assert "Ledger drift" in caplog.text


@pytest.mark.asyncio
async def test_compute_score_unknown_champion(ledger, seed):
    with pytest.raises(NotFoundError):
        await ledger.compute_score(9999)


@pytest.mark.asyncio
async def test_rank_ties_broken_by_registration_order(ledger, seed):
    """With equal credits, the earlier account ranks higher."""
    assert await ledger.rank(seed.alice.id) == 1
    assert await ledger.rank(seed.bob.id) == 2
    assert await ledger.rank(seed.admin.id) == 3
    assert await ledger.rank(9999) is None


@pytest.mark.asyncio
async def test_rank_and_leaderboard(ledger, engine, seed):
    await engine.adjust_credits(seed.bob.id, seed.admin.id, 20, "Pilot reviewer")
    await engine.adjust_credits(seed.alice.id, seed.admin.id, 10, "Pilot reviewer")

    assert await ledger.rank(seed.bob.id) == 1
    assert await ledger.rank(seed.alice.id) == 2

    board = await ledger.leaderboard()
    assert [(e.rank, e.champion_id, e.credits) for e in board] == [
        (1, seed.bob.id, 20),
        (2, seed.alice.id, 10),
        (3, seed.admin.id, 0),
    ]
    assert all(e.accepted_reviews_count == 0 for e in board)

    assert len(await ledger.leaderboard(limit=1)) == 1
