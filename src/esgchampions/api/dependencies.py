"""FastAPI dependencies"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from ..core.config.settings import ChampionsConfig, get_config
from ..core.identity import Principal
from ..core.services import (
    Catalog,
    CreditLedger,
    DiscussionService,
    ModerationEngine,
    NotificationCenter,
    ProgressTracker,
    ReadStateCache,
    SubmissionManager,
    VoteService,
)
from ..core.storage.database import Database
from ..core.storage.repositories import ChampionRepository


def get_database(request: Request) -> Database:
    """Get the database attached to the running app."""
    return request.app.state.db


def get_app_config(request: Request) -> ChampionsConfig:
    return request.app.state.config or get_config()


def get_read_state(request: Request) -> ReadStateCache:
    return request.app.state.read_state


def get_catalog(db: Database = Depends(get_database)) -> Catalog:
    return Catalog(db)


def get_tracker(db: Database = Depends(get_database)) -> ProgressTracker:
    return ProgressTracker(db)


def get_ledger(
    db: Database = Depends(get_database),
    config: ChampionsConfig = Depends(get_app_config),
) -> CreditLedger:
    return CreditLedger(db, config)


def get_submission_manager(
    db: Database = Depends(get_database),
    tracker: ProgressTracker = Depends(get_tracker),
) -> SubmissionManager:
    return SubmissionManager(db, tracker)


def get_moderation_engine(
    db: Database = Depends(get_database),
    ledger: CreditLedger = Depends(get_ledger),
    config: ChampionsConfig = Depends(get_app_config),
) -> ModerationEngine:
    return ModerationEngine(db, ledger, config)


def get_notification_center(
    db: Database = Depends(get_database),
    read_state: ReadStateCache = Depends(get_read_state),
    config: ChampionsConfig = Depends(get_app_config),
) -> NotificationCenter:
    return NotificationCenter(db, read_state, config)


def get_vote_service(
    db: Database = Depends(get_database),
    tracker: ProgressTracker = Depends(get_tracker),
) -> VoteService:
    return VoteService(db, tracker)


def get_discussion_service(
    db: Database = Depends(get_database),
    tracker: ProgressTracker = Depends(get_tracker),
    config: ChampionsConfig = Depends(get_app_config),
) -> DiscussionService:
    return DiscussionService(db, tracker, config)


async def get_principal(
    x_champion_id: Optional[int] = Header(None),
    db: Database = Depends(get_database),
) -> Principal:
    """Resolve the calling champion from the X-Champion-Id header."""
    if x_champion_id is None:
        raise HTTPException(status_code=401, detail="Missing X-Champion-Id header")

    async with db.session() as session:
        champion = await ChampionRepository(session).get(x_champion_id)
    if champion is None:
        raise HTTPException(status_code=401, detail="Unknown champion")

    return Principal(
        id=champion.id,
        email=champion.email,
        email_confirmed=champion.email_confirmed,
        is_admin=champion.is_admin,
    )


async def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    """Only moderators may continue."""
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return principal
