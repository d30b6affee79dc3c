"""Review comment and indicator discussion endpoints"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ...core.errors import ChampionsError
from ...core.identity import Principal
from ...core.schemas.comment import CommentCreate, CommentResponse
from ...core.schemas.submission import IndicatorWithReviews
from ...core.services import DiscussionService
from ..dependencies import get_discussion_service, get_principal

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/indicators/{indicator_id}/reviews", response_model=IndicatorWithReviews)
async def indicator_reviews(
    indicator_id: int,
    discussion: DiscussionService = Depends(get_discussion_service),
):
    """An indicator with its reviews and their vote counts."""
    return await discussion.indicator_with_reviews(indicator_id)


@router.get("/reviews/{review_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    review_id: int,
    discussion: DiscussionService = Depends(get_discussion_service),
):
    """Comment threads on a review, oldest first."""
    return await discussion.list_comments(review_id)


@router.post("/reviews/{review_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    review_id: int,
    comment_data: CommentCreate,
    principal: Principal = Depends(get_principal),
    discussion: DiscussionService = Depends(get_discussion_service),
):
    """Comment on a review or reply to a comment."""
    try:
        return await discussion.add_comment(
            review_id, principal.id, comment_data.content, parent_id=comment_data.parent_id
        )
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error commenting on review {review_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
