"""Admin moderation, audit and export endpoints"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from ...core.errors import ChampionsError, InvalidStateError
from ...core.identity import Principal
from ...core.models import SubmissionStatus
from ...core.schemas.admin import (
    AdminActionResponse,
    AdminGrant,
    CreditAdjustment,
    PlatformStats,
    ReviewDeletion,
)
from ...core.schemas.champion import ChampionResponse
from ...core.schemas.panel import PanelResponse
from ...core.schemas.submission import ModerationRequest, ReviewResponse, SubmissionResponse
from ...core.services import (
    Catalog,
    ModerationEngine,
    SubmissionManager,
    approved_review_rows,
    render_csv,
)
from ...core.storage.database import Database
from ..dependencies import (
    get_catalog,
    get_database,
    get_moderation_engine,
    get_submission_manager,
    require_admin,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/submissions", response_model=list[SubmissionResponse])
async def list_submissions(
    status: Optional[SubmissionStatus] = Query(None, description="Filter by status"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    admin: Principal = Depends(require_admin),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Moderation queue, newest first."""
    return await manager.list_for_admin(status=status, limit=limit)


@router.post("/submissions/{submission_id}/approve", response_model=SubmissionResponse)
async def approve_submission(
    submission_id: int,
    moderation: Optional[ModerationRequest] = None,
    admin: Principal = Depends(require_admin),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    """Approve a pending submission and award credits.

    Approving a submission that is no longer pending changes nothing and
    returns it as stored.
    """
    comment = moderation.comment if moderation else None
    try:
        return await engine.approve(submission_id, admin.id, comment=comment)
    except InvalidStateError as e:
        if e.current is None:
            raise
        logger.info(f"Approve of submission {submission_id} ignored: {e.message}")
        return e.current
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error approving submission {submission_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/submissions/{submission_id}/reject", response_model=SubmissionResponse)
async def reject_submission(
    submission_id: int,
    moderation: Optional[ModerationRequest] = None,
    admin: Principal = Depends(require_admin),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    """Reject a pending submission."""
    reason = moderation.comment if moderation else None
    try:
        return await engine.reject(submission_id, admin.id, reason=reason)
    except InvalidStateError as e:
        if e.current is None:
            raise
        logger.info(f"Reject of submission {submission_id} ignored: {e.message}")
        return e.current
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error rejecting submission {submission_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/reviews/{review_id}/accept", response_model=ReviewResponse)
async def accept_review(
    review_id: int,
    moderation: Optional[ModerationRequest] = None,
    admin: Principal = Depends(require_admin),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    """Accept a single-indicator review and credit it."""
    try:
        return await engine.accept_review(
            review_id, admin.id, comment=moderation.comment if moderation else None
        )
    except InvalidStateError as e:
        if e.current is None:
            raise
        return e.current


@router.post("/reviews/{review_id}/reject", response_model=ReviewResponse)
async def reject_review(
    review_id: int,
    moderation: Optional[ModerationRequest] = None,
    admin: Principal = Depends(require_admin),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    """Reject a single-indicator review."""
    try:
        return await engine.reject_review(
            review_id, admin.id, reason=moderation.comment if moderation else None
        )
    except InvalidStateError as e:
        if e.current is None:
            raise
        return e.current


@router.post("/champions/{champion_id}/credits", response_model=ChampionResponse)
async def adjust_credits(
    champion_id: int,
    adjustment: CreditAdjustment,
    admin: Principal = Depends(require_admin),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    """Correct a champion's credit balance."""
    return await engine.adjust_credits(champion_id, admin.id, adjustment.delta, adjustment.reason)


@router.post("/reviews/{review_id}/delete", response_model=ReviewResponse)
async def delete_review(
    review_id: int,
    deletion: Optional[ReviewDeletion] = None,
    admin: Principal = Depends(require_admin),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    """Soft-delete a single-indicator review."""
    try:
        return await engine.delete_review(
            review_id, admin.id, reason=deletion.reason if deletion else None
        )
    except InvalidStateError as e:
        if e.current is None:
            raise
        return e.current


@router.post("/champions/{champion_id}/admin", response_model=ChampionResponse)
async def set_admin(
    champion_id: int,
    grant: AdminGrant,
    admin: Principal = Depends(require_admin),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    """Grant or revoke moderator rights. Repeating a grant returns the champion unchanged."""
    try:
        return await engine.set_admin(champion_id, admin.id, grant.is_admin)
    except InvalidStateError as e:
        if e.current is None:
            raise
        return e.current


@router.get("/panels", response_model=list[PanelResponse])
async def list_all_panels(
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    """All panels, deactivated ones included."""
    return await catalog.list_panels(include_inactive=True)


@router.get("/actions", response_model=list[AdminActionResponse])
async def list_actions(
    limit: int = Query(100, ge=1, le=1000),
    admin: Principal = Depends(require_admin),
    engine: ModerationEngine = Depends(get_moderation_engine),
):
    """Moderation audit log, newest first."""
    return await engine.list_actions(limit=limit)


@router.get("/stats", response_model=PlatformStats)
async def get_statistics(
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    """Get platform statistics."""
    try:
        return await catalog.platform_stats()
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error getting statistics: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/export")
async def export_approved_reviews(
    admin: Principal = Depends(require_admin),
    db: Database = Depends(get_database),
):
    """Download approved indicator reviews as CSV."""
    rows = await approved_review_rows(db)
    if not rows:
        raise HTTPException(status_code=404, detail="No approved reviews found to export")

    filename = f"approved-indicator-reviews-{date.today().isoformat()}.csv"
    return Response(
        content=render_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
