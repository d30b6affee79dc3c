"""Credit and scoring ledger.

The champion's stored credit balance is authoritative. The breakdown shown
next to it is recomputed from the accepted-reviews ledger and votes, with the
remainder reported as participation. Participation is a plain residual and is
never clamped. Upvotes are attributed in the breakdown but never added to the
balance, so a negative residual is normal for champions with few
non-review credits. Only a balance below the credited review work is drift.
"""
import logging
from typing import Optional

from ..config.settings import ChampionsConfig, get_config
from ..errors import NotFoundError
from ..schemas.champion import LeaderboardEntry
from ..schemas.score import CreditKind, LedgerEntry, Score, ScoreBreakdown
from ..storage.database import Database
from ..storage.repositories import (
    AcceptedReviewRepository,
    ChampionRepository,
    VoteRepository,
)

logger = logging.getLogger(__name__)


class CreditLedger:
    """Read-only credit computations over a champion's accepted work and votes."""

    def __init__(self, db: Database, config: Optional[ChampionsConfig] = None):
        self.db = db
        self.config = config or get_config()

    def credit_delta(self, review_count: int) -> int:
        """Credits earned for ``review_count`` accepted indicator reviews."""
        if review_count < 0:
            raise ValueError("review_count must be non-negative")
        return self.config.review_credit * review_count

    async def compute_score(self, champion_id: int) -> Score:
        """Compute a champion's score and its breakdown.

        Raises:
            NotFoundError: If the champion does not exist
        """
        async with self.db.session() as session:
            champion = await ChampionRepository(session).get(champion_id)
            if champion is None:
                raise NotFoundError("champion", champion_id)

            review_credits = await AcceptedReviewRepository(session).credits_for(champion_id)
            upvotes = await VoteRepository(session).upvotes_received(champion_id)
            rank = await ChampionRepository(session).rank_of(champion)

        entries = ledger_entries(
            total=champion.credits,
            review_credits=review_credits,
            vote_credits=upvotes * self.config.upvote_credit,
        )
        breakdown = ScoreBreakdown.from_entries(entries)
        if champion.credits < review_credits:
            logger.warning(
                f"Ledger drift for champion {champion_id}: balance {champion.credits} is below "
                f"the {review_credits} credits of accepted reviews"
            )
        elif breakdown.participation < 0:
            logger.debug(
                f"Champion {champion_id}: vote credits ({breakdown.votes}) exceed "
                f"non-review balance; participation is {breakdown.participation}"
            )

        return Score(
            champion_id=champion_id,
            total=champion.credits,
            breakdown=breakdown,
            entries=entries,
            rank=rank,
        )

    async def rank(self, champion_id: int) -> Optional[int]:
        """1-based leaderboard position, or None for an unknown champion."""
        async with self.db.session() as session:
            champions = ChampionRepository(session)
            champion = await champions.get(champion_id)
            if champion is None:
                return None
            return await champions.rank_of(champion)

    async def leaderboard(self, limit: Optional[int] = None) -> list[LeaderboardEntry]:
        """Champions ordered by credits, earlier accounts first on ties."""
        limit = limit or self.config.leaderboard_limit
        async with self.db.session() as session:
            champions = await ChampionRepository(session).leaderboard(limit)
            accepted = await AcceptedReviewRepository(session).counts_by_champion(
                [c.id for c in champions]
            )

        return [
            LeaderboardEntry(
                rank=position,
                champion_id=champion.id,
                full_name=champion.full_name,
                company=champion.company,
                credits=champion.credits,
                accepted_reviews_count=accepted.get(champion.id, 0),
            )
            for position, champion in enumerate(champions, start=1)
        ]


def ledger_entries(total: int, review_credits: int, vote_credits: int) -> list[LedgerEntry]:
    """Split ``total`` into tagged entries whose amounts sum to ``total``."""
    return [
        LedgerEntry(kind=CreditKind.REVIEW, amount=review_credits),
        LedgerEntry(kind=CreditKind.VOTE, amount=vote_credits),
        LedgerEntry(kind=CreditKind.PARTICIPATION, amount=total - review_credits - vote_credits),
    ]
