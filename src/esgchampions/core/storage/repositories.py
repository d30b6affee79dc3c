"""Repository pattern over async SQLAlchemy sessions.

Repositories are thin: they never commit. The service that opened the session
decides when the unit of work ends.
"""
from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
    AcceptedReview,
    ActivityEvent,
    AdminAction,
    Champion,
    Indicator,
    IndicatorReview,
    Notification,
    Panel,
    Review,
    ReviewComment,
    ReviewStatus,
    ReviewSubmission,
    Vote,
    VoteTarget,
    VoteType,
)
from ..models.submission import OPEN_STATUSES, TERMINAL_STATUSES
from .database import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Generic select/insert/update/delete access for one model."""

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, obj: ModelT) -> ModelT:
        """Insert a row and flush so generated values are populated."""
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def create_many(self, objs: Iterable[ModelT]) -> list[ModelT]:
        """Insert several rows in one flush."""
        objs = list(objs)
        self.session.add_all(objs)
        await self.session.flush()
        for obj in objs:
            await self.session.refresh(obj)
        return objs

    async def get(self, obj_id: int) -> Optional[ModelT]:
        return await self.session.get(self.model, obj_id)

    async def list(
        self,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
        **filters: Any,
    ) -> list[ModelT]:
        """List rows matching equality filters.

        Args:
            order_by: Column name to order by. Rows are tie-broken by id in
                the same direction.
            descending: Order newest/largest first
            limit: Maximum number of rows
            offset: Rows to skip
            **filters: Column equality predicates

        Returns:
            List of model instances
        """
        query = self._filtered(select(self.model), filters)

        if order_by:
            column = getattr(self.model, order_by)
            id_column = self.model.id
            if descending:
                query = query.order_by(column.desc(), id_column.desc())
            else:
                query = query.order_by(column.asc(), id_column.asc())

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, **filters: Any) -> int:
        query = self._filtered(select(func.count()).select_from(self.model), filters)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def update(self, obj_id: int, **values: Any) -> Optional[ModelT]:
        """Unconditionally update a row (last writer wins)."""
        obj = await self.get(obj_id)
        if obj is None:
            return None
        for key, value in values.items():
            setattr(obj, key, value)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def compare_and_set(
        self,
        obj_id: int,
        field: str,
        expected: Any,
        **values: Any,
    ) -> int:
        """Update a row only if ``field`` still holds ``expected``.

        Issued as a single ``UPDATE ... WHERE id = :id AND field = :expected``
        so the check and the write are atomic at the store.

        Returns:
            Number of rows affected (0 or 1)
        """
        stmt = (
            update(self.model)
            .where(self.model.id == obj_id, getattr(self.model, field) == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        affected = result.rowcount or 0
        if affected:
            # Reload so later reads in this session see the new values
            await self.session.get(self.model, obj_id, populate_existing=True)
        return affected

    def detach(self, obj: ModelT) -> ModelT:
        """Remove ``obj`` from the session so a rollback does not expire it."""
        self.session.expunge(obj)
        return obj

    async def delete(self, obj_id: int) -> bool:
        result = await self.session.execute(
            delete(self.model).where(self.model.id == obj_id)
        )
        return bool(result.rowcount)

    def _filtered(self, query: Select, filters: dict[str, Any]) -> Select:
        for key, value in filters.items():
            query = query.where(getattr(self.model, key) == value)
        return query


class ChampionRepository(Repository[Champion]):
    model = Champion

    async def get_by_email(self, email: str) -> Optional[Champion]:
        result = await self.session.execute(select(Champion).where(Champion.email == email))
        return result.scalar_one_or_none()

    async def increment_credits(self, champion_id: int, delta: int) -> int:
        """Atomically add ``delta`` to the credit balance.

        The only write path for ``Champion.credits``. Executed as
        ``credits = credits + :delta`` so concurrent awards never overwrite
        each other.

        Returns:
            Number of rows affected
        """
        stmt = (
            update(Champion)
            .where(Champion.id == champion_id)
            .values(credits=Champion.credits + delta)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.get(Champion, champion_id, populate_existing=True)
        return result.rowcount or 0

    async def leaderboard(self, limit: Optional[int] = None) -> list[Champion]:
        """Champions by credits descending, earlier accounts first on ties."""
        query = select(Champion).order_by(Champion.credits.desc(), Champion.id.asc())
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def rank_of(self, champion: Champion) -> int:
        """1-based leaderboard position of ``champion``."""
        ahead = await self.session.execute(
            select(func.count()).select_from(Champion).where(
                or_(
                    Champion.credits > champion.credits,
                    (Champion.credits == champion.credits) & (Champion.id < champion.id),
                )
            )
        )
        return ahead.scalar_one() + 1


class PanelRepository(Repository[Panel]):
    model = Panel

    async def indicator_counts(self) -> dict[int, int]:
        result = await self.session.execute(
            select(Indicator.panel_id, func.count(Indicator.id))
            .where(Indicator.is_active.is_(True))
            .group_by(Indicator.panel_id)
        )
        return {panel_id: count for panel_id, count in result.all()}


class IndicatorRepository(Repository[Indicator]):
    model = Indicator

    async def get_many(self, indicator_ids: Sequence[int]) -> dict[int, Indicator]:
        if not indicator_ids:
            return {}
        result = await self.session.execute(
            select(Indicator).where(Indicator.id.in_(list(indicator_ids)))
        )
        return {indicator.id: indicator for indicator in result.scalars().all()}


class SubmissionRepository(Repository[ReviewSubmission]):
    model = ReviewSubmission

    async def find_open(self, champion_id: int, panel_id: int) -> Optional[ReviewSubmission]:
        """The draft or pending submission for the pair, if any."""
        result = await self.session.execute(
            select(ReviewSubmission).where(
                ReviewSubmission.champion_id == champion_id,
                ReviewSubmission.panel_id == panel_id,
                ReviewSubmission.status.in_(OPEN_STATUSES),
            )
        )
        return result.scalars().first()

    async def terminal_panel_ids(self, champion_id: int) -> set[int]:
        result = await self.session.execute(
            select(ReviewSubmission.panel_id).where(
                ReviewSubmission.champion_id == champion_id,
                ReviewSubmission.status.in_(TERMINAL_STATUSES),
            )
        )
        return set(result.scalars().all())


class IndicatorReviewRepository(Repository[IndicatorReview]):
    """Indicator reviews are insert-only; ``update`` is deliberately unsupported."""

    model = IndicatorReview

    async def update(self, obj_id: int, **values: Any) -> Optional[IndicatorReview]:
        raise NotImplementedError("Indicator reviews are read-only once submitted")

    async def for_submission(self, submission_id: int) -> list[IndicatorReview]:
        return await self.list(order_by="id", submission_id=submission_id)

    async def for_submissions(self, submission_ids: Sequence[int]) -> list[IndicatorReview]:
        if not submission_ids:
            return []
        result = await self.session.execute(
            select(IndicatorReview)
            .where(IndicatorReview.submission_id.in_(list(submission_ids)))
            .order_by(IndicatorReview.submission_id, IndicatorReview.id)
        )
        return list(result.scalars().all())


class ReviewRepository(Repository[Review]):
    model = Review

    async def for_indicator(self, indicator_id: int) -> list[Review]:
        """Reviews of an indicator, oldest first. Deleted reviews are left out."""
        result = await self.session.execute(
            select(Review)
            .where(
                Review.indicator_id == indicator_id,
                Review.is_deleted.is_(False),
                Review.status != ReviewStatus.DELETED.value,
            )
            .order_by(Review.created_at.asc(), Review.id.asc())
        )
        return list(result.scalars().all())


class ReviewCommentRepository(Repository[ReviewComment]):
    model = ReviewComment

    async def for_review(self, review_id: int) -> list[ReviewComment]:
        return await self.list(order_by="created_at", review_id=review_id)


class AcceptedReviewRepository(Repository[AcceptedReview]):
    model = AcceptedReview

    async def credits_for(self, champion_id: int) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.sum(AcceptedReview.credits_awarded), 0)).where(
                AcceptedReview.champion_id == champion_id
            )
        )
        return int(result.scalar_one())

    async def counts_by_champion(self, champion_ids: Sequence[int]) -> dict[int, int]:
        if not champion_ids:
            return {}
        result = await self.session.execute(
            select(AcceptedReview.champion_id, func.count(AcceptedReview.id))
            .where(AcceptedReview.champion_id.in_(list(champion_ids)))
            .group_by(AcceptedReview.champion_id)
        )
        return {champion_id: count for champion_id, count in result.all()}


class VoteRepository(Repository[Vote]):
    model = Vote

    async def find(self, target_type: str, target_id: int, champion_id: int) -> Optional[Vote]:
        result = await self.session.execute(
            select(Vote).where(
                Vote.target_type == target_type,
                Vote.target_id == target_id,
                Vote.champion_id == champion_id,
            )
        )
        return result.scalar_one_or_none()

    async def tallies(self, target_type: str, target_ids: Sequence[int]) -> dict[int, dict[str, int]]:
        """Vote counts per target id, keyed by vote type."""
        if not target_ids:
            return {}
        result = await self.session.execute(
            select(Vote.target_id, Vote.vote_type, func.count(Vote.id))
            .where(Vote.target_type == target_type, Vote.target_id.in_(list(target_ids)))
            .group_by(Vote.target_id, Vote.vote_type)
        )
        counts: dict[int, dict[str, int]] = {}
        for target_id, vote_type, count in result.all():
            counts.setdefault(target_id, {})[vote_type] = count
        return counts

    async def upvotes_received(self, champion_id: int) -> int:
        """Upvotes cast on the champion's single reviews and submissions."""
        own_reviews = select(Review.id).where(Review.champion_id == champion_id)
        own_submissions = select(ReviewSubmission.id).where(
            ReviewSubmission.champion_id == champion_id
        )
        result = await self.session.execute(
            select(func.count(Vote.id)).where(
                Vote.vote_type == VoteType.UPVOTE.value,
                or_(
                    (Vote.target_type == VoteTarget.REVIEW.value) & Vote.target_id.in_(own_reviews),
                    (Vote.target_type == VoteTarget.SUBMISSION.value)
                    & Vote.target_id.in_(own_submissions),
                ),
            )
        )
        return result.scalar_one()


class ActivityRepository(Repository[ActivityEvent]):
    model = ActivityEvent


class NotificationRepository(Repository[Notification]):
    model = Notification

    async def mark_all_read(self, champion_id: int, **values: Any) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(Notification.champion_id == champion_id, Notification.is_read.is_(False))
            .values(is_read=True, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


class AdminActionRepository(Repository[AdminAction]):
    model = AdminAction
