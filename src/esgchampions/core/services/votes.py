"""Peer votes on single reviews and panel submissions."""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ..errors import NotFoundError, ValidationError
from ..models import ActivityType, Vote, VoteTarget, VoteType
from ..schemas.vote import VoteTally
from ..storage.database import Database
from ..storage.repositories import ReviewRepository, SubmissionRepository, VoteRepository
from .progress import ProgressTracker

logger = logging.getLogger(__name__)


class VoteService:
    """One vote per champion and target; voting again overwrites.

    Votes feed the score breakdown but never change the credit balance.
    """

    def __init__(self, db: Database, tracker: Optional[ProgressTracker] = None):
        self.db = db
        self.tracker = tracker or ProgressTracker(db)

    async def vote(
        self,
        target_type: VoteTarget | str,
        target_id: int,
        champion_id: int,
        vote_type: VoteType | str,
    ) -> Vote:
        """Cast or change a vote.

        Raises:
            ValidationError: On an unknown target or vote type, or a vote on
                the champion's own work
            NotFoundError: If the target does not exist
        """
        target_type = _parse(VoteTarget, target_type, "vote target")
        vote_type = _parse(VoteType, vote_type, "vote type")

        try:
            vote = await self._upsert(target_type, target_id, champion_id, vote_type)
        except IntegrityError:
            # A concurrent first vote by the same champion won the insert; overwrite it
            vote = await self._upsert(target_type, target_id, champion_id, vote_type)

        await self.tracker.record_activity(
            champion_id,
            ActivityType.VOTE,
            metadata={
                "target_type": target_type.value,
                "target_id": target_id,
                "vote_type": vote_type.value,
            },
        )
        return vote

    async def remove_vote(
        self, target_type: VoteTarget | str, target_id: int, champion_id: int
    ) -> bool:
        """Returns True if a vote was removed."""
        target_type = _parse(VoteTarget, target_type, "vote target")
        async with self.db.session() as session:
            votes = VoteRepository(session)
            vote = await votes.find(target_type.value, target_id, champion_id)
            if vote is None:
                return False
            await votes.delete(vote.id)
            await session.commit()
        return True

    async def tally(self, target_type: VoteTarget | str, target_id: int) -> VoteTally:
        target_type = _parse(VoteTarget, target_type, "vote target")
        async with self.db.session() as session:
            result = await session.execute(
                select(Vote.vote_type, func.count(Vote.id))
                .where(Vote.target_type == target_type.value, Vote.target_id == target_id)
                .group_by(Vote.vote_type)
            )
            counts = dict(result.all())

        return VoteTally(
            target_type=target_type,
            target_id=target_id,
            upvotes=counts.get(VoteType.UPVOTE.value, 0),
            downvotes=counts.get(VoteType.DOWNVOTE.value, 0),
        )

    async def _upsert(
        self, target_type: VoteTarget, target_id: int, champion_id: int, vote_type: VoteType
    ) -> Vote:
        async with self.db.session() as session:
            owner_id = await self._owner_of(session, target_type, target_id)
            if owner_id == champion_id:
                raise ValidationError("Champions cannot vote on their own work")

            votes = VoteRepository(session)
            existing = await votes.find(target_type.value, target_id, champion_id)
            if existing is None:
                vote = await votes.create(
                    Vote(
                        target_type=target_type.value,
                        target_id=target_id,
                        champion_id=champion_id,
                        vote_type=vote_type.value,
                    )
                )
            else:
                vote = await votes.update(existing.id, vote_type=vote_type.value)
            await session.commit()
            return vote

    async def _owner_of(self, session, target_type: VoteTarget, target_id: int) -> int:
        if target_type == VoteTarget.REVIEW:
            target = await ReviewRepository(session).get(target_id)
        else:
            target = await SubmissionRepository(session).get(target_id)
        if target is None or getattr(target, "is_deleted", False):
            raise NotFoundError(target_type.value, target_id)
        return target.champion_id


def _parse(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {label}: {value}")
