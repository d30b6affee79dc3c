"""Submission lifecycle: opening submissions and attaching indicator reviews."""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..identity import Principal
from ..models import (
    AcceptedReview,
    ActivityType,
    IndicatorReview,
    Review,
    ReviewStatus,
    ReviewSubmission,
    SubmissionStatus,
)
from ..schemas.submission import (
    DashboardStats,
    IndicatorReviewInput,
    IndicatorReviewResponse,
    SubmissionResponse,
    SubmissionWithReviews,
)
from ..storage.database import Database
from ..storage.repositories import (
    AcceptedReviewRepository,
    ChampionRepository,
    IndicatorRepository,
    IndicatorReviewRepository,
    PanelRepository,
    ReviewRepository,
    SubmissionRepository,
)
from .progress import ProgressTracker

logger = logging.getLogger(__name__)

RECENT_SUBMISSIONS = 5


class SubmissionManager:
    """Creates submissions and attaches indicator reviews to them.

    Terminal transitions (approve/reject) are not handled here; they belong to
    the ModerationEngine.
    """

    def __init__(self, db: Database, tracker: Optional[ProgressTracker] = None):
        self.db = db
        self.tracker = tracker or ProgressTracker(db)

    async def create_submission(
        self, champion_id: int, panel_id: int, draft: bool = False
    ) -> ReviewSubmission:
        """Open a new submission for a champion and panel.

        Args:
            champion_id: Submitting champion
            panel_id: Panel under review
            draft: Create in ``draft`` instead of ``pending``

        Returns:
            The new submission

        Raises:
            ConflictError: If a draft or pending submission already exists for
                the pair; ``existing_id`` points at it
            NotFoundError: If the champion or panel does not exist
        """
        try:
            async with self.db.session() as session:
                submission = await self._open(session, champion_id, panel_id, draft)
                await session.commit()
        except IntegrityError:
            # Lost a race against a concurrent create for the same pair
            existing = await self._find_open(champion_id, panel_id)
            raise ConflictError(
                f"Champion {champion_id} already has an open submission for panel {panel_id}",
                existing_id=existing.id if existing else None,
            )

        logger.info(
            f"Opened submission {submission.id} ({submission.status}) "
            f"for champion {champion_id}, panel {panel_id}"
        )
        return submission

    async def submit_draft(self, submission_id: int, champion_id: int) -> ReviewSubmission:
        """Move a draft to ``pending`` so it enters the moderation queue.

        Raises:
            NotFoundError: If the submission does not exist
            ValidationError: If the submission belongs to another champion
            InvalidStateError: If the submission is not a draft
        """
        async with self.db.session() as session:
            submissions = SubmissionRepository(session)
            submission = await self._owned(submissions, submission_id, champion_id)

            affected = await submissions.compare_and_set(
                submission_id,
                "status",
                SubmissionStatus.DRAFT.value,
                status=SubmissionStatus.PENDING.value,
                submitted_at=_now(),
            )
            if not affected:
                raise InvalidStateError(
                    f"Submission {submission_id} is not a draft",
                    current=submissions.detach(submission),
                    expected=SubmissionStatus.DRAFT.value,
                )
            await session.commit()
            return submission

    async def attach_indicator_reviews(
        self,
        submission_id: int,
        champion_id: int,
        reviews: Sequence[IndicatorReviewInput],
    ) -> list[IndicatorReview]:
        """Attach a batch of indicator reviews to an open submission.

        The batch is inserted in one transaction: if any entry is invalid,
        nothing is written.

        Raises:
            NotFoundError: If the submission does not exist
            ValidationError: On an empty batch, an indicator outside the panel,
                a duplicate indicator, or a submission owned by someone else
            InvalidStateError: If the submission is already approved or rejected
        """
        async with self.db.session() as session:
            submissions = SubmissionRepository(session)
            submission = await self._owned(submissions, submission_id, champion_id)
            if SubmissionStatus(submission.status).is_terminal:
                raise InvalidStateError(
                    f"Submission {submission_id} is {submission.status} and can no longer change",
                    current=submissions.detach(submission),
                )

            created = await self._insert_reviews(session, submission, reviews)
            await session.commit()

        await self._record_reviews(champion_id, submission.panel_id, created)
        return created

    async def submit_panel_review(
        self,
        champion_id: int,
        panel_id: int,
        reviews: Sequence[IndicatorReviewInput],
        draft: bool = False,
    ) -> SubmissionWithReviews:
        """Create a submission together with all of its indicator reviews.

        Either the submission and every review are stored, or nothing is.
        """
        try:
            async with self.db.session() as session:
                submission = await self._open(session, champion_id, panel_id, draft)
                created = await self._insert_reviews(session, submission, reviews)
                panel = await PanelRepository(session).get(panel_id)
                await session.commit()
        except IntegrityError:
            existing = await self._find_open(champion_id, panel_id)
            raise ConflictError(
                f"Champion {champion_id} already has an open submission for panel {panel_id}",
                existing_id=existing.id if existing else None,
            )

        logger.info(
            f"Champion {champion_id} submitted {len(created)} indicator reviews "
            f"for panel {panel_id} (submission {submission.id})"
        )
        await self._record_reviews(champion_id, panel_id, created)
        return _with_reviews(submission, panel.name if panel else None, created)

    async def get_submission_with_reviews(
        self, submission_id: int, viewer: Optional[Principal] = None
    ) -> SubmissionWithReviews:
        """Load a submission and its indicator reviews.

        Args:
            submission_id: Submission to load
            viewer: Caller; when given, must own the submission or be an admin

        Raises:
            NotFoundError: If the submission does not exist
            PermissionDeniedError: If ``viewer`` may not see it
        """
        async with self.db.session() as session:
            submission = await SubmissionRepository(session).get(submission_id)
            if submission is None:
                raise NotFoundError("submission", submission_id)
            if (
                viewer is not None
                and not viewer.is_admin
                and submission.champion_id != viewer.id
            ):
                raise PermissionDeniedError(
                    f"Submission {submission_id} belongs to another champion"
                )
            reviews = await IndicatorReviewRepository(session).for_submission(submission_id)
            panel = await PanelRepository(session).get(submission.panel_id)

        return _with_reviews(submission, panel.name if panel else None, reviews)

    async def list_for_champion(self, champion_id: int) -> list[ReviewSubmission]:
        async with self.db.session() as session:
            return await SubmissionRepository(session).list(
                order_by="created_at", descending=True, champion_id=champion_id
            )

    async def list_for_admin(
        self, status: Optional[SubmissionStatus | str] = None, limit: Optional[int] = None
    ) -> list[ReviewSubmission]:
        """All submissions newest first, optionally filtered by status."""
        filters = {}
        if status is not None:
            try:
                filters["status"] = SubmissionStatus(status).value
            except ValueError:
                raise ValidationError(f"Unknown submission status: {status}")

        async with self.db.session() as session:
            return await SubmissionRepository(session).list(
                order_by="created_at", descending=True, limit=limit, **filters
            )

    async def submit_review(
        self,
        champion_id: int,
        indicator_id: int,
        content: str,
        rating: Optional[int] = None,
    ) -> Review:
        """Submit a single-indicator review for moderation."""
        if not content or not content.strip():
            raise ValidationError("Review content must not be empty")
        if rating is not None and not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        async with self.db.session() as session:
            if await ChampionRepository(session).get(champion_id) is None:
                raise NotFoundError("champion", champion_id)
            indicator = await IndicatorRepository(session).get(indicator_id)
            if indicator is None:
                raise NotFoundError("indicator", indicator_id)

            review = await ReviewRepository(session).create(
                Review(
                    champion_id=champion_id,
                    indicator_id=indicator_id,
                    panel_id=indicator.panel_id,
                    content=content.strip(),
                    rating=rating,
                    status=ReviewStatus.PENDING.value,
                )
            )
            await session.commit()

        await self.tracker.record_activity(
            champion_id,
            ActivityType.SUBMIT_REVIEW,
            panel_id=review.panel_id,
            indicator_id=indicator_id,
            review_id=review.id,
        )
        return review

    async def accepted_indicator_ids(self, champion_id: int, panel_id: int) -> set[int]:
        """Indicators of a panel the champion already earned credits for."""
        async with self.db.session() as session:
            result = await session.execute(
                select(AcceptedReview.indicator_id).where(
                    AcceptedReview.champion_id == champion_id,
                    AcceptedReview.panel_id == panel_id,
                )
            )
            return set(result.scalars().all())

    async def dashboard(self, champion_id: int) -> DashboardStats:
        """Champion dashboard: submission counts, credits and resume point.

        Raises:
            NotFoundError: If the champion does not exist
        """
        async with self.db.session() as session:
            champion = await ChampionRepository(session).get(champion_id)
            if champion is None:
                raise NotFoundError("champion", champion_id)

            submissions = SubmissionRepository(session)
            counts = {
                status: await submissions.count(champion_id=champion_id, status=status.value)
                for status in SubmissionStatus
            }
            recent = await submissions.list(
                order_by="created_at",
                descending=True,
                limit=RECENT_SUBMISSIONS,
                champion_id=champion_id,
            )
            pending_reviews = await ReviewRepository(session).count(
                champion_id=champion_id, status=ReviewStatus.PENDING.value
            )
            accepted = await AcceptedReviewRepository(session).count(champion_id=champion_id)

        resume_point = await self.tracker.get_resume_point(champion_id)

        return DashboardStats(
            champion_id=champion_id,
            credits=champion.credits,
            total_submissions=sum(counts.values()),
            pending_submissions=counts[SubmissionStatus.PENDING],
            approved_submissions=counts[SubmissionStatus.APPROVED],
            rejected_submissions=counts[SubmissionStatus.REJECTED],
            pending_reviews=pending_reviews,
            accepted_reviews_count=accepted,
            recent_submissions=[SubmissionResponse.model_validate(s) for s in recent],
            resume_point=resume_point,
        )

    async def _open(
        self, session: AsyncSession, champion_id: int, panel_id: int, draft: bool
    ) -> ReviewSubmission:
        if await ChampionRepository(session).get(champion_id) is None:
            raise NotFoundError("champion", champion_id)
        if await PanelRepository(session).get(panel_id) is None:
            raise NotFoundError("panel", panel_id)

        submissions = SubmissionRepository(session)
        existing = await submissions.find_open(champion_id, panel_id)
        if existing is not None:
            raise ConflictError(
                f"Champion {champion_id} already has a {existing.status} submission "
                f"for panel {panel_id}",
                existing_id=existing.id,
            )

        status = SubmissionStatus.DRAFT if draft else SubmissionStatus.PENDING
        return await submissions.create(
            ReviewSubmission(
                champion_id=champion_id,
                panel_id=panel_id,
                status=status.value,
                submitted_at=None if draft else _now(),
            )
        )

    async def _insert_reviews(
        self,
        session: AsyncSession,
        submission: ReviewSubmission,
        reviews: Sequence[IndicatorReviewInput],
    ) -> list[IndicatorReview]:
        if not reviews:
            raise ValidationError("At least one indicator review is required")

        indicator_ids = [r.indicator_id for r in reviews]
        if len(set(indicator_ids)) != len(indicator_ids):
            raise ValidationError("Each indicator may only be reviewed once per submission")

        indicators = await IndicatorRepository(session).get_many(indicator_ids)
        outside = [
            i for i in indicator_ids
            if i not in indicators or indicators[i].panel_id != submission.panel_id
        ]
        if outside:
            raise ValidationError(
                f"Indicators {outside} do not belong to panel {submission.panel_id}"
            )

        repo = IndicatorReviewRepository(session)
        already = {r.indicator_id for r in await repo.for_submission(submission.id)}
        repeated = [i for i in indicator_ids if i in already]
        if repeated:
            raise ValidationError(
                f"Indicators {repeated} are already reviewed in submission {submission.id}"
            )

        return await repo.create_many(
            IndicatorReview(
                submission_id=submission.id,
                indicator_id=r.indicator_id,
                champion_id=submission.champion_id,
                importance=r.importance,
                rating=r.rating,
                rationale=r.rationale,
                tags=r.tags,
                sdgs=r.sdgs,
                suggested_tier=r.suggested_tier,
                cost_to_collect=r.cost_to_collect,
                notes=r.notes,
            )
            for r in reviews
        )

    async def _owned(
        self, submissions: SubmissionRepository, submission_id: int, champion_id: int
    ) -> ReviewSubmission:
        submission = await submissions.get(submission_id)
        if submission is None:
            raise NotFoundError("submission", submission_id)
        if submission.champion_id != champion_id:
            raise ValidationError(
                f"Submission {submission_id} does not belong to champion {champion_id}"
            )
        return submission

    async def _find_open(self, champion_id: int, panel_id: int) -> Optional[ReviewSubmission]:
        async with self.db.session() as session:
            return await SubmissionRepository(session).find_open(champion_id, panel_id)

    async def _record_reviews(
        self, champion_id: int, panel_id: int, created: Sequence[IndicatorReview]
    ) -> None:
        for review in created:
            await self.tracker.record_activity(
                champion_id,
                ActivityType.REVIEW_INDICATOR,
                panel_id=panel_id,
                indicator_id=review.indicator_id,
                metadata={"submission_id": review.submission_id},
            )


def _with_reviews(
    submission: ReviewSubmission,
    panel_name: Optional[str],
    reviews: Sequence[IndicatorReview],
) -> SubmissionWithReviews:
    return SubmissionWithReviews(
        **SubmissionResponse.model_validate(submission).model_dump(),
        panel_name=panel_name,
        reviews=[IndicatorReviewResponse.model_validate(r) for r in reviews],
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)
