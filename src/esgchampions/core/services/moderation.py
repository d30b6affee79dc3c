"""Moderation engine: the only path from pending to approved or rejected.

Every decision is a status-gated conditional update. Only the caller whose
update changes the row goes on to award credits, write the audit record and
notify the champion, all inside the same transaction. A caller that loses
the race (or repeats a decision) gets InvalidStateError and nothing is
written.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config.settings import ChampionsConfig, get_config
from ..errors import InvalidStateError, NotFoundError, ValidationError
from ..models import (
    AcceptedReview,
    AdminAction,
    AdminActionType,
    Champion,
    NotificationType,
    Review,
    ReviewStatus,
    ReviewSubmission,
    SubmissionStatus,
)
from ..storage.database import Database
from ..storage.repositories import (
    AcceptedReviewRepository,
    AdminActionRepository,
    ChampionRepository,
    IndicatorRepository,
    IndicatorReviewRepository,
    PanelRepository,
    ReviewRepository,
    SubmissionRepository,
)
from .audit import record_action, require_admin
from .ledger import CreditLedger
from .notifications import notify

logger = logging.getLogger(__name__)


class ModerationEngine:
    """Approves and rejects submissions and single reviews.

    Every decision checks the stored admin flag of ``admin_id`` and writes one
    audit row per effective decision.
    """

    def __init__(
        self,
        db: Database,
        ledger: Optional[CreditLedger] = None,
        config: Optional[ChampionsConfig] = None,
    ):
        self.db = db
        self.config = config or get_config()
        self.ledger = ledger or CreditLedger(db, self.config)

    async def approve(
        self, submission_id: int, admin_id: int, comment: Optional[str] = None
    ) -> ReviewSubmission:
        """Approve a pending submission and award its credits exactly once.

        Args:
            submission_id: Submission to approve
            admin_id: Moderator making the decision
            comment: Optional feedback for the champion

        Returns:
            The approved submission

        Raises:
            NotFoundError: If the submission or admin does not exist
            PermissionDeniedError: If ``admin_id`` is not an admin
            InvalidStateError: If the submission is not pending; ``current``
                holds it as stored
        """
        try:
            async with self.db.session() as session:
                await require_admin(session, admin_id)
                submission = await self._transition_submission(
                    session, submission_id, admin_id, SubmissionStatus.APPROVED, comment
                )

                reviews = await IndicatorReviewRepository(session).for_submission(submission_id)
                delta = self.ledger.credit_delta(len(reviews))
                await AcceptedReviewRepository(session).create_many(
                    AcceptedReview(
                        indicator_review_id=review.id,
                        champion_id=submission.champion_id,
                        indicator_id=review.indicator_id,
                        panel_id=submission.panel_id,
                        credits_awarded=self.config.review_credit,
                        accepted_by=admin_id,
                    )
                    for review in reviews
                )
                if delta:
                    await ChampionRepository(session).increment_credits(
                        submission.champion_id, delta
                    )

                panel = await PanelRepository(session).get(submission.panel_id)
                panel_name = panel.name if panel else "Panel"
                await record_action(
                    session,
                    admin_id,
                    AdminActionType.APPROVE_SUBMISSION,
                    "submission",
                    submission_id,
                    {"comment": comment, "credits_awarded": delta, "reviews": len(reviews)},
                )
                message = f'Your review for "{panel_name}" has been approved!'
                if comment:
                    message += f" Admin feedback: {comment}"
                await notify(
                    session,
                    submission.champion_id,
                    NotificationType.REVIEW_ACCEPTED,
                    "Review Approved!",
                    message,
                    data={
                        "submission_id": submission_id,
                        "panel_name": panel_name,
                        "admin_comment": comment,
                        "credits": delta,
                    },
                )
                await session.commit()
        except IntegrityError as e:
            raise InvalidStateError(
                f"Submission {submission_id} was already credited: {e.orig}"
            ) from e

        logger.info(
            f"Admin {admin_id} approved submission {submission_id}; "
            f"champion {submission.champion_id} awarded {delta} credits"
        )
        return submission

    async def reject(
        self, submission_id: int, admin_id: int, reason: Optional[str] = None
    ) -> ReviewSubmission:
        """Reject a pending submission. No credits are awarded.

        Raises:
            NotFoundError: If the submission or admin does not exist
            InvalidStateError: If the submission is not pending
        """
        async with self.db.session() as session:
            await require_admin(session, admin_id)
            submission = await self._transition_submission(
                session, submission_id, admin_id, SubmissionStatus.REJECTED, reason
            )

            panel = await PanelRepository(session).get(submission.panel_id)
            panel_name = panel.name if panel else "Panel"
            await record_action(
                session,
                admin_id,
                AdminActionType.REJECT_SUBMISSION,
                "submission",
                submission_id,
                {"reason": reason},
            )
            message = f'Your review for "{panel_name}" needs some changes.'
            message += f" Feedback: {reason}" if reason else " Please review and resubmit."
            await notify(
                session,
                submission.champion_id,
                NotificationType.REVIEW_REJECTED,
                "Review Requires Changes",
                message,
                data={
                    "submission_id": submission_id,
                    "panel_name": panel_name,
                    "rejection_reason": reason,
                },
            )
            await session.commit()

        logger.info(f"Admin {admin_id} rejected submission {submission_id}")
        return submission

    async def accept_review(
        self, review_id: int, admin_id: int, comment: Optional[str] = None
    ) -> Review:
        """Accept a pending single-indicator review and credit it once.

        Raises:
            NotFoundError: If the review or admin does not exist
            InvalidStateError: If the review is not pending or was already
                entered in the accepted-reviews ledger
        """
        try:
            async with self.db.session() as session:
                await require_admin(session, admin_id)
                review = await self._transition_review(
                    session, review_id, admin_id, ReviewStatus.APPROVED, comment
                )

                delta = self.ledger.credit_delta(1)
                await AcceptedReviewRepository(session).create(
                    AcceptedReview(
                        review_id=review.id,
                        champion_id=review.champion_id,
                        indicator_id=review.indicator_id,
                        panel_id=review.panel_id,
                        credits_awarded=delta,
                        accepted_by=admin_id,
                    )
                )
                await ChampionRepository(session).increment_credits(review.champion_id, delta)

                indicator = await IndicatorRepository(session).get(review.indicator_id)
                indicator_name = indicator.name if indicator else "Indicator"
                await record_action(
                    session,
                    admin_id,
                    AdminActionType.ACCEPT_REVIEW,
                    "review",
                    review_id,
                    {"comment": comment, "credits_awarded": delta},
                )
                await notify(
                    session,
                    review.champion_id,
                    NotificationType.REVIEW_ACCEPTED,
                    "Review Accepted!",
                    f'Your review of "{indicator_name}" was accepted. You earned {delta} credits.',
                    data={"review_id": review_id, "indicator_name": indicator_name, "credits": delta},
                )
                await session.commit()
        except IntegrityError as e:
            raise InvalidStateError(f"Review {review_id} was already credited") from e

        logger.info(
            f"Admin {admin_id} accepted review {review_id}; "
            f"champion {review.champion_id} awarded {delta} credits"
        )
        return review

    async def reject_review(
        self, review_id: int, admin_id: int, reason: Optional[str] = None
    ) -> Review:
        """Reject a pending single-indicator review."""
        async with self.db.session() as session:
            await require_admin(session, admin_id)
            review = await self._transition_review(
                session, review_id, admin_id, ReviewStatus.REJECTED, reason
            )

            indicator = await IndicatorRepository(session).get(review.indicator_id)
            indicator_name = indicator.name if indicator else "Indicator"
            await record_action(
                session, admin_id, AdminActionType.REJECT_REVIEW, "review", review_id,
                {"reason": reason},
            )
            message = f'Your review of "{indicator_name}" was not accepted.'
            if reason:
                message += f" Feedback: {reason}"
            await notify(
                session,
                review.champion_id,
                NotificationType.REVIEW_REJECTED,
                "Review Not Accepted",
                message,
                data={"review_id": review_id, "rejection_reason": reason},
            )
            await session.commit()

        logger.info(f"Admin {admin_id} rejected review {review_id}")
        return review

    async def adjust_credits(
        self, champion_id: int, admin_id: int, delta: int, reason: str
    ) -> Champion:
        """Explicit admin correction of a champion's balance.

        Raises:
            ValidationError: On a zero delta, a missing reason, or a deduction
                larger than the current balance
            NotFoundError: If the champion or admin does not exist
        """
        if delta == 0:
            raise ValidationError("Credit adjustment must be non-zero")
        if not reason or not reason.strip():
            raise ValidationError("A reason is required for credit adjustments")

        async with self.db.session() as session:
            await require_admin(session, admin_id)
            champions = ChampionRepository(session)
            champion = await champions.get(champion_id)
            if champion is None:
                raise NotFoundError("champion", champion_id)
            if champion.credits + delta < 0:
                raise ValidationError(
                    f"Cannot deduct {-delta} credits from a balance of {champion.credits}"
                )

            await champions.increment_credits(champion_id, delta)
            await record_action(
                session, admin_id, AdminActionType.ADJUST_CREDITS, "champion", champion_id,
                {"delta": delta, "reason": reason},
            )
            if delta > 0:
                await notify(
                    session,
                    champion_id,
                    NotificationType.CREDITS_AWARDED,
                    "Credits Earned!",
                    f"You earned {delta} credits. {reason}",
                    data={"credits": delta},
                )
            await session.commit()

        logger.info(
            f"Admin {admin_id} adjusted credits of champion {champion_id} by {delta}: {reason}"
        )
        return champion

    async def delete_review(
        self, review_id: int, admin_id: int, reason: Optional[str] = None
    ) -> Review:
        """Soft-delete a single-indicator review.

        The row stays for the audit trail with status ``deleted``. Credits
        already awarded for it are not revoked; use adjust_credits for that.

        Raises:
            NotFoundError: If the review or admin does not exist
            PermissionDeniedError: If ``admin_id`` is not an admin
            InvalidStateError: If the review is already deleted
        """
        async with self.db.session() as session:
            await require_admin(session, admin_id)
            reviews = ReviewRepository(session)
            review = await reviews.get(review_id)
            if review is None:
                raise NotFoundError("review", review_id)
            previous_status = review.status

            values: dict[str, Any] = {
                "is_deleted": True,
                "status": ReviewStatus.DELETED.value,
                "deleted_at": _now(),
                "deleted_by": admin_id,
            }
            if reason:
                values["feedback"] = reason
            affected = await reviews.compare_and_set(review_id, "is_deleted", False, **values)
            if not affected:
                raise InvalidStateError(
                    f"Review {review_id} is already deleted",
                    current=reviews.detach(review),
                    expected="not deleted",
                )

            await record_action(
                session, admin_id, AdminActionType.DELETE_REVIEW, "review", review_id,
                {"reason": reason, "previous_status": previous_status},
            )
            await session.commit()

        logger.info(f"Admin {admin_id} deleted review {review_id}")
        return review

    async def set_admin(self, champion_id: int, admin_id: int, is_admin: bool) -> Champion:
        """Grant or revoke moderator rights. The only way to change ``is_admin``.

        Raises:
            NotFoundError: If the champion or admin does not exist
            PermissionDeniedError: If ``admin_id`` is not an admin
            ValidationError: If an admin tries to revoke their own rights
            InvalidStateError: If the champion already has the requested role
        """
        if champion_id == admin_id and not is_admin:
            raise ValidationError("Admins cannot revoke their own admin rights")

        async with self.db.session() as session:
            await require_admin(session, admin_id)
            champions = ChampionRepository(session)
            affected = await champions.compare_and_set(
                champion_id, "is_admin", not is_admin, is_admin=is_admin
            )
            champion = await champions.get(champion_id)
            if champion is None:
                raise NotFoundError("champion", champion_id)
            if not affected:
                raise InvalidStateError(
                    f"Champion {champion_id} already has is_admin={is_admin}",
                    current=champions.detach(champion),
                )

            action = AdminActionType.GRANT_ADMIN if is_admin else AdminActionType.REVOKE_ADMIN
            await record_action(session, admin_id, action, "champion", champion_id, {})
            await session.commit()

        logger.info(
            f"Admin {admin_id} {'granted' if is_admin else 'revoked'} admin rights "
            f"{'to' if is_admin else 'from'} champion {champion_id}"
        )
        return champion

    async def list_actions(self, limit: int = 100) -> list[AdminAction]:
        """Audit log, newest first."""
        async with self.db.session() as session:
            return await AdminActionRepository(session).list(
                order_by="created_at", descending=True, limit=limit
            )

    async def _transition_submission(
        self,
        session: AsyncSession,
        submission_id: int,
        admin_id: int,
        target: SubmissionStatus,
        note: Optional[str],
    ) -> ReviewSubmission:
        submissions = SubmissionRepository(session)
        affected = await submissions.compare_and_set(
            submission_id,
            "status",
            SubmissionStatus.PENDING.value,
            status=target.value,
            admin_notes=note,
            reviewed_by=admin_id,
            reviewed_at=_now(),
        )
        submission = await submissions.get(submission_id)
        if submission is None:
            raise NotFoundError("submission", submission_id)
        if not affected:
            raise InvalidStateError(
                f"Submission {submission_id} is {submission.status}, not pending",
                current=submissions.detach(submission),
                expected=SubmissionStatus.PENDING.value,
            )
        return submission

    async def _transition_review(
        self,
        session: AsyncSession,
        review_id: int,
        admin_id: int,
        target: ReviewStatus,
        note: Optional[str],
    ) -> Review:
        reviews = ReviewRepository(session)
        affected = await reviews.compare_and_set(
            review_id,
            "status",
            ReviewStatus.PENDING.value,
            status=target.value,
            feedback=note,
            reviewed_by=admin_id,
            reviewed_at=_now(),
        )
        review = await reviews.get(review_id)
        if review is None:
            raise NotFoundError("review", review_id)
        if not affected:
            raise InvalidStateError(
                f"Review {review_id} is {review.status}, not pending",
                current=reviews.detach(review),
                expected=ReviewStatus.PENDING.value,
            )
        return review


def _now() -> datetime:
    return datetime.now(timezone.utc)
