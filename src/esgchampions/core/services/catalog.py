"""Reference data: champions, panels and indicators, plus platform statistics."""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import AdminActionType, Champion, Indicator, Panel, ReviewStatus, SubmissionStatus
from ..schemas.admin import PlatformStats
from ..schemas.champion import ChampionCreate
from ..schemas.panel import (
    IndicatorCreate,
    IndicatorResponse,
    IndicatorUpdate,
    PanelCreate,
    PanelResponse,
    PanelUpdate,
    PanelWithIndicators,
)
from ..storage.database import Database
from ..storage.repositories import (
    ChampionRepository,
    IndicatorRepository,
    PanelRepository,
    ReviewRepository,
    SubmissionRepository,
)
from .audit import record_action, require_admin

logger = logging.getLogger(__name__)


class Catalog:
    """Registers champions and maintains panels and their indicators."""

    def __init__(self, db: Database):
        self.db = db

    async def register_champion(self, data: ChampionCreate, is_admin: bool = False) -> Champion:
        """Create a champion account.

        Self-registration always creates a regular champion. ``is_admin`` is
        for bootstrapping the first moderator from the command line; later
        grants go through ModerationEngine.set_admin.

        Raises:
            ConflictError: If the email is already registered
        """
        email = data.email.strip().lower()
        if "@" not in email:
            raise ValidationError(f"Invalid email address: {data.email}")

        try:
            async with self.db.session() as session:
                champions = ChampionRepository(session)
                existing = await champions.get_by_email(email)
                if existing is not None:
                    raise ConflictError(f"Email already registered: {email}", existing_id=existing.id)

                champion = await champions.create(
                    Champion(
                        email=email,
                        full_name=data.full_name.strip(),
                        company=data.company,
                        is_admin=is_admin,
                        credits=0,
                    )
                )
                await session.commit()
        except IntegrityError:
            raise ConflictError(f"Email already registered: {email}")

        logger.info(f"Registered champion {champion.id} ({email})")
        return champion

    async def get_champion(self, champion_id: int) -> Champion:
        async with self.db.session() as session:
            champion = await ChampionRepository(session).get(champion_id)
        if champion is None:
            raise NotFoundError("champion", champion_id)
        return champion

    async def list_champions(self) -> list[Champion]:
        async with self.db.session() as session:
            return await ChampionRepository(session).list(order_by="id")

    async def create_panel(self, data: PanelCreate, admin_id: Optional[int] = None) -> Panel:
        """Create a panel. When ``admin_id`` is given the caller is checked and audited."""
        try:
            async with self.db.session() as session:
                if admin_id is not None:
                    await require_admin(session, admin_id)
                panel = await PanelRepository(session).create(
                    Panel(
                        name=data.name,
                        category=data.category,
                        description=data.description,
                        primary_framework=data.primary_framework,
                        order_index=data.order_index,
                        is_active=True,
                    )
                )
                if admin_id is not None:
                    await record_action(
                        session, admin_id, AdminActionType.CREATE_PANEL, "panel", panel.id,
                        {"name": data.name},
                    )
                await session.commit()
        except IntegrityError:
            raise ConflictError(f"Panel already exists: {data.name}")
        return panel

    async def create_indicator(
        self, data: IndicatorCreate, admin_id: Optional[int] = None
    ) -> Indicator:
        async with self.db.session() as session:
            if admin_id is not None:
                await require_admin(session, admin_id)
            if await PanelRepository(session).get(data.panel_id) is None:
                raise NotFoundError("panel", data.panel_id)
            indicator = await IndicatorRepository(session).create(
                Indicator(
                    panel_id=data.panel_id,
                    code=data.code,
                    name=data.name,
                    description=data.description,
                    order_index=data.order_index,
                    is_active=True,
                )
            )
            if admin_id is not None:
                await record_action(
                    session, admin_id, AdminActionType.CREATE_INDICATOR, "indicator", indicator.id,
                    {"panel_id": data.panel_id, "name": data.name},
                )
            await session.commit()
        return indicator

    async def update_panel(self, panel_id: int, admin_id: int, updates: PanelUpdate) -> Panel:
        """Apply the fields present in ``updates`` and audit the change.

        Raises:
            NotFoundError: If the panel or admin does not exist
            PermissionDeniedError: If ``admin_id`` is not an admin
            ValidationError: If no field is given
            ConflictError: If the new name is taken
        """
        values = updates.model_dump(exclude_unset=True)
        if not values:
            raise ValidationError("No panel fields to update")

        try:
            async with self.db.session() as session:
                await require_admin(session, admin_id)
                panel = await PanelRepository(session).update(panel_id, **values)
                if panel is None:
                    raise NotFoundError("panel", panel_id)
                await record_action(
                    session, admin_id, AdminActionType.UPDATE_PANEL, "panel", panel_id, values
                )
                await session.commit()
        except IntegrityError:
            raise ConflictError(f"Panel already exists: {values.get('name')}")

        logger.info(f"Admin {admin_id} updated panel {panel_id}: {sorted(values)}")
        return panel

    async def deactivate_panel(self, panel_id: int, admin_id: int) -> Panel:
        """Hide a panel from listings. Its indicators and reviews are kept."""
        async with self.db.session() as session:
            await require_admin(session, admin_id)
            panel = await PanelRepository(session).update(panel_id, is_active=False)
            if panel is None:
                raise NotFoundError("panel", panel_id)
            await record_action(
                session, admin_id, AdminActionType.DEACTIVATE_PANEL, "panel", panel_id, {}
            )
            await session.commit()

        logger.info(f"Admin {admin_id} deactivated panel {panel_id}")
        return panel

    async def update_indicator(
        self, indicator_id: int, admin_id: int, updates: IndicatorUpdate
    ) -> Indicator:
        """Apply the fields present in ``updates`` and audit the change."""
        values = updates.model_dump(exclude_unset=True)
        if not values:
            raise ValidationError("No indicator fields to update")

        async with self.db.session() as session:
            await require_admin(session, admin_id)
            indicator = await IndicatorRepository(session).update(indicator_id, **values)
            if indicator is None:
                raise NotFoundError("indicator", indicator_id)
            await record_action(
                session, admin_id, AdminActionType.UPDATE_INDICATOR, "indicator", indicator_id,
                values,
            )
            await session.commit()

        logger.info(f"Admin {admin_id} updated indicator {indicator_id}: {sorted(values)}")
        return indicator

    async def deactivate_indicator(self, indicator_id: int, admin_id: int) -> Indicator:
        async with self.db.session() as session:
            await require_admin(session, admin_id)
            indicator = await IndicatorRepository(session).update(indicator_id, is_active=False)
            if indicator is None:
                raise NotFoundError("indicator", indicator_id)
            await record_action(
                session, admin_id, AdminActionType.DEACTIVATE_INDICATOR, "indicator",
                indicator_id, {},
            )
            await session.commit()

        logger.info(f"Admin {admin_id} deactivated indicator {indicator_id}")
        return indicator

    async def move_indicator(self, indicator_id: int, admin_id: int, panel_id: int) -> Indicator:
        """Move an indicator to another panel.

        Existing reviews keep the panel they were written under.

        Raises:
            NotFoundError: If the indicator, panel or admin does not exist
            PermissionDeniedError: If ``admin_id`` is not an admin
            ValidationError: If the indicator is already in that panel
        """
        async with self.db.session() as session:
            await require_admin(session, admin_id)
            indicators = IndicatorRepository(session)
            indicator = await indicators.get(indicator_id)
            if indicator is None:
                raise NotFoundError("indicator", indicator_id)
            if await PanelRepository(session).get(panel_id) is None:
                raise NotFoundError("panel", panel_id)
            if indicator.panel_id == panel_id:
                raise ValidationError(f"Indicator {indicator_id} is already in panel {panel_id}")

            old_panel_id = indicator.panel_id
            indicator = await indicators.update(indicator_id, panel_id=panel_id)
            await record_action(
                session, admin_id, AdminActionType.MOVE_INDICATOR, "indicator", indicator_id,
                {"old_panel_id": old_panel_id, "new_panel_id": panel_id},
            )
            await session.commit()

        logger.info(f"Admin {admin_id} moved indicator {indicator_id} to panel {panel_id}")
        return indicator

    async def list_panels(
        self, category: Optional[str] = None, include_inactive: bool = False
    ) -> list[PanelResponse]:
        """Panels in display order, with their active indicator counts.

        Deactivated panels are only listed with ``include_inactive``.
        """
        filters = {} if include_inactive else {"is_active": True}
        if category:
            filters["category"] = category

        async with self.db.session() as session:
            panels = PanelRepository(session)
            rows = await panels.list(order_by="order_index", **filters)
            counts = await panels.indicator_counts()

        return [
            PanelResponse.model_validate(panel).model_copy(
                update={"indicator_count": counts.get(panel.id, 0)}
            )
            for panel in rows
        ]

    async def get_panel_with_indicators(self, panel_id: int) -> PanelWithIndicators:
        """Raises NotFoundError if the panel does not exist."""
        async with self.db.session() as session:
            panel = await PanelRepository(session).get(panel_id)
            if panel is None:
                raise NotFoundError("panel", panel_id)
            indicators = await IndicatorRepository(session).list(
                order_by="order_index", panel_id=panel_id, is_active=True
            )

        return PanelWithIndicators(
            **PanelResponse.model_validate(panel).model_dump(exclude={"indicator_count"}),
            indicator_count=len(indicators),
            indicators=[IndicatorResponse.model_validate(i) for i in indicators],
        )

    async def platform_stats(self) -> PlatformStats:
        """Counts for the admin dashboard."""
        async with self.db.session() as session:
            submissions = SubmissionRepository(session)
            reviews = ReviewRepository(session)
            submission_counts = {
                status: await submissions.count(status=status.value)
                for status in SubmissionStatus
            }
            indicator_total = await session.execute(
                select(Indicator.id)
                .join(Panel, Panel.id == Indicator.panel_id)
                .where(Indicator.is_active.is_(True), Panel.is_active.is_(True))
            )
            return PlatformStats(
                total_reviews=await reviews.count(is_deleted=False),
                pending_reviews=await reviews.count(status=ReviewStatus.PENDING.value),
                total_submissions=sum(submission_counts.values()),
                pending_submissions=submission_counts[SubmissionStatus.PENDING],
                approved_submissions=submission_counts[SubmissionStatus.APPROVED],
                rejected_submissions=submission_counts[SubmissionStatus.REJECTED],
                total_champions=await ChampionRepository(session).count(),
                total_panels=await PanelRepository(session).count(is_active=True),
                total_indicators=len(indicator_total.all()),
            )
