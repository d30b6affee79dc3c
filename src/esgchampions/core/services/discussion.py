"""Peer discussion around single-indicator reviews: threaded comments and
per-indicator review listings with vote counts."""
import logging
from typing import Optional

from sqlalchemy import func, select

from ..config.settings import ChampionsConfig, get_config
from ..errors import NotFoundError, ValidationError
from ..models import ActivityType, ReviewComment, VoteTarget, VoteType
from ..schemas.comment import CommentResponse
from ..schemas.panel import IndicatorResponse
from ..schemas.submission import IndicatorWithReviews, ReviewResponse, ReviewWithVotes
from ..storage.database import Database
from ..storage.repositories import (
    ChampionRepository,
    IndicatorRepository,
    ReviewCommentRepository,
    ReviewRepository,
    VoteRepository,
)
from .progress import ProgressTracker

logger = logging.getLogger(__name__)


class DiscussionService:
    """Comments on reviews, and the reviews of an indicator with their votes.

    Deleted reviews are hidden: they cannot be commented on and are left out
    of listings.
    """

    def __init__(
        self,
        db: Database,
        tracker: Optional[ProgressTracker] = None,
        config: Optional[ChampionsConfig] = None,
    ):
        self.db = db
        self.tracker = tracker or ProgressTracker(db)
        self.config = config or get_config()

    async def add_comment(
        self,
        review_id: int,
        champion_id: int,
        content: str,
        parent_id: Optional[int] = None,
    ) -> ReviewComment:
        """Comment on a review, or reply to an existing comment on it.

        Commenting on another champion's review earns ``comment_credit``
        credits; comments on one's own review earn nothing.

        Raises:
            ValidationError: On empty content, or a parent comment that
                belongs to a different review
            NotFoundError: If the review, champion or parent comment does not
                exist, or the review was deleted
        """
        if not content or not content.strip():
            raise ValidationError("Comment content must not be empty")

        async with self.db.session() as session:
            champions = ChampionRepository(session)
            if await champions.get(champion_id) is None:
                raise NotFoundError("champion", champion_id)
            review = await ReviewRepository(session).get(review_id)
            if review is None or review.is_deleted:
                raise NotFoundError("review", review_id)

            comments = ReviewCommentRepository(session)
            if parent_id is not None:
                parent = await comments.get(parent_id)
                if parent is None:
                    raise NotFoundError("comment", parent_id)
                if parent.review_id != review_id:
                    raise ValidationError(
                        f"Comment {parent_id} belongs to review {parent.review_id}, not {review_id}"
                    )

            credits = self.config.comment_credit if review.champion_id != champion_id else 0
            comment = await comments.create(
                ReviewComment(
                    review_id=review_id,
                    champion_id=champion_id,
                    parent_id=parent_id,
                    content=content.strip(),
                    credits_awarded=credits,
                )
            )
            if credits:
                await champions.increment_credits(champion_id, credits)
            await session.commit()

        logger.info(
            f"Champion {champion_id} commented on review {review_id}"
            + (f" (+{credits} credits)" if credits else "")
        )
        await self.tracker.record_activity(
            champion_id,
            ActivityType.COMMENT,
            panel_id=review.panel_id,
            indicator_id=review.indicator_id,
            review_id=review_id,
            metadata={"comment_id": comment.id, "parent_id": parent_id},
        )
        return comment

    async def list_comments(self, review_id: int) -> list[CommentResponse]:
        """Top-level comments oldest first, each with its replies nested.

        Raises:
            NotFoundError: If the review does not exist or was deleted
        """
        async with self.db.session() as session:
            review = await ReviewRepository(session).get(review_id)
            if review is None or review.is_deleted:
                raise NotFoundError("review", review_id)
            rows = await ReviewCommentRepository(session).for_review(review_id)

        return build_threads(rows)

    async def indicator_with_reviews(self, indicator_id: int) -> IndicatorWithReviews:
        """An indicator with its visible reviews, vote counts and comment counts.

        Raises:
            NotFoundError: If the indicator does not exist
        """
        async with self.db.session() as session:
            indicator = await IndicatorRepository(session).get(indicator_id)
            if indicator is None:
                raise NotFoundError("indicator", indicator_id)
            reviews = await ReviewRepository(session).for_indicator(indicator_id)
            review_ids = [r.id for r in reviews]
            tallies = await VoteRepository(session).tallies(VoteTarget.REVIEW.value, review_ids)
            comment_counts: dict[int, int] = {}
            if review_ids:
                result = await session.execute(
                    select(ReviewComment.review_id, func.count(ReviewComment.id))
                    .where(ReviewComment.review_id.in_(review_ids))
                    .group_by(ReviewComment.review_id)
                )
                comment_counts = dict(result.all())

        items = []
        for review in reviews:
            counts = tallies.get(review.id, {})
            upvotes = counts.get(VoteType.UPVOTE.value, 0)
            downvotes = counts.get(VoteType.DOWNVOTE.value, 0)
            items.append(
                ReviewWithVotes(
                    **ReviewResponse.model_validate(review).model_dump(),
                    upvotes=upvotes,
                    downvotes=downvotes,
                    score=upvotes - downvotes,
                    comment_count=comment_counts.get(review.id, 0),
                )
            )

        return IndicatorWithReviews(
            **IndicatorResponse.model_validate(indicator).model_dump(),
            review_count=len(items),
            reviews=items,
        )


def build_threads(rows: list[ReviewComment]) -> list[CommentResponse]:
    """Nest replies under their parents. ``rows`` must be oldest first."""
    nodes = {
        row.id: CommentResponse.model_validate(row) for row in rows
    }
    roots = []
    for row in rows:
        node = nodes[row.id]
        parent = nodes.get(row.parent_id) if row.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots
