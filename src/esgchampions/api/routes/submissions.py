"""Submission and review endpoints"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ...core.errors import ChampionsError
from ...core.identity import Principal
from ...core.schemas.submission import (
    DashboardStats,
    IndicatorReviewBatch,
    IndicatorReviewResponse,
    PanelReviewCreate,
    ReviewCreate,
    ReviewResponse,
    SubmissionCreate,
    SubmissionResponse,
    SubmissionWithReviews,
)
from ...core.services import SubmissionManager
from ..dependencies import get_principal, get_submission_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/panels/{panel_id}/submissions", response_model=SubmissionResponse, status_code=201)
async def create_submission(
    panel_id: int,
    submission_data: SubmissionCreate,
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Open a submission for a panel.

    Returns 409 with ``existing_id`` if a draft or pending submission already
    exists for this panel.
    """
    try:
        return await manager.create_submission(principal.id, panel_id, draft=submission_data.draft)
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error creating submission: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/panels/{panel_id}/reviews", response_model=SubmissionWithReviews, status_code=201)
async def submit_panel_review(
    panel_id: int,
    review_data: PanelReviewCreate,
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Submit a panel review with all of its indicator reviews at once."""
    try:
        return await manager.submit_panel_review(principal.id, panel_id, review_data.reviews)
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error submitting panel review: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/panels/{panel_id}/accepted-indicators", response_model=list[int])
async def accepted_indicators(
    panel_id: int,
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Indicators of this panel the caller already earned credits for."""
    return sorted(await manager.accepted_indicator_ids(principal.id, panel_id))


@router.get("/submissions/mine", response_model=list[SubmissionResponse])
async def my_submissions(
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """The caller's submissions, newest first."""
    return await manager.list_for_champion(principal.id)


@router.get("/submissions/{submission_id}", response_model=SubmissionWithReviews)
async def get_submission(
    submission_id: int,
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Get a submission with its indicator reviews (owner or admin only)."""
    return await manager.get_submission_with_reviews(submission_id, viewer=principal)


@router.post("/submissions/{submission_id}/submit", response_model=SubmissionResponse)
async def submit_draft(
    submission_id: int,
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Send a draft submission to moderation."""
    return await manager.submit_draft(submission_id, principal.id)


@router.post(
    "/submissions/{submission_id}/indicator-reviews",
    response_model=list[IndicatorReviewResponse],
    status_code=201,
)
async def attach_indicator_reviews(
    submission_id: int,
    batch: IndicatorReviewBatch,
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Attach indicator reviews to an open submission. All or nothing."""
    try:
        return await manager.attach_indicator_reviews(submission_id, principal.id, batch.reviews)
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error attaching indicator reviews: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/reviews", response_model=ReviewResponse, status_code=201)
async def submit_review(
    review_data: ReviewCreate,
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Submit a single-indicator review."""
    try:
        return await manager.submit_review(
            principal.id, review_data.indicator_id, review_data.content, review_data.rating
        )
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error submitting review: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    principal: Principal = Depends(get_principal),
    manager: SubmissionManager = Depends(get_submission_manager),
):
    """Dashboard summary for the caller."""
    return await manager.dashboard(principal.id)
