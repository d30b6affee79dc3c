"""Progress tracking and "continue where you left off"."""
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreUnavailableError, ValidationError
from ..models import RESUMABLE_ACTIVITY, ActivityEvent, ActivityType
from ..schemas.progress import ResumePoint
from ..storage.database import Database
from ..storage.repositories import (
    ActivityRepository,
    IndicatorRepository,
    PanelRepository,
    SubmissionRepository,
)

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Records champion activity and derives the resume point from it.

    The resume point is not stored anywhere: it is recomputed from the
    activity log and submission history on every call.
    """

    def __init__(self, db: Database):
        self.db = db

    async def record_activity(
        self,
        champion_id: int,
        activity_type: ActivityType | str,
        panel_id: Optional[int] = None,
        indicator_id: Optional[int] = None,
        review_id: Optional[int] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Optional[ActivityEvent]:
        """Append an activity event.

        Store failures are logged and swallowed so activity logging never
        blocks the action it instruments.

        Returns:
            The stored event, or None if it could not be written

        Raises:
            ValidationError: If ``activity_type`` is not a known type
        """
        try:
            activity_type = ActivityType(activity_type)
        except ValueError:
            raise ValidationError(f"Unknown activity type: {activity_type}")

        try:
            async with self.db.session() as session:
                event = await ActivityRepository(session).create(
                    ActivityEvent(
                        champion_id=champion_id,
                        activity_type=activity_type.value,
                        panel_id=panel_id,
                        indicator_id=indicator_id,
                        review_id=review_id,
                        meta_data=metadata,
                    )
                )
                await session.commit()
                return event
        except (SQLAlchemyError, StoreUnavailableError) as e:
            logger.warning(
                f"Could not record {activity_type.value} activity for champion {champion_id}: {e}"
            )
            return None

    async def get_resume_point(self, champion_id: int) -> Optional[ResumePoint]:
        """Most recent viewed panel/indicator without a terminal submission.

        Returns:
            ResumePoint, or None if the champion has nothing left in progress
        """
        async with self.db.session() as session:
            finished = await SubmissionRepository(session).terminal_panel_ids(champion_id)

            result = await session.execute(
                select(ActivityEvent)
                .where(
                    ActivityEvent.champion_id == champion_id,
                    ActivityEvent.activity_type.in_(RESUMABLE_ACTIVITY),
                    ActivityEvent.panel_id.is_not(None),
                )
                .order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc())
            )
            panels = PanelRepository(session)
            indicators = IndicatorRepository(session)

            for event in result.scalars():
                if event.panel_id in finished:
                    continue

                panel = await panels.get(event.panel_id)
                if panel is None:
                    continue

                indicator = None
                if event.indicator_id is not None:
                    indicator = await indicators.get(event.indicator_id)

                return ResumePoint(
                    panel_id=panel.id,
                    panel_name=panel.name,
                    indicator_id=indicator.id if indicator else None,
                    indicator_name=indicator.name if indicator else None,
                )

        return None
