"""Activity and resume endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends

from ...core.identity import Principal
from ...core.schemas.progress import ActivityCreate, ResumePoint
from ...core.services import ProgressTracker
from ..dependencies import get_principal, get_tracker

router = APIRouter()


@router.post("/activity", status_code=202)
async def record_activity(
    activity: ActivityCreate,
    principal: Principal = Depends(get_principal),
    tracker: ProgressTracker = Depends(get_tracker),
):
    """Record a view or other activity. Never fails on store errors."""
    event = await tracker.record_activity(
        principal.id,
        activity.activity_type,
        panel_id=activity.panel_id,
        indicator_id=activity.indicator_id,
        review_id=activity.review_id,
        metadata=activity.metadata,
    )
    return {"recorded": event is not None}


@router.get("/resume", response_model=Optional[ResumePoint])
async def resume_point(
    principal: Principal = Depends(get_principal),
    tracker: ProgressTracker = Depends(get_tracker),
):
    """Where the caller left off, or null."""
    return await tracker.get_resume_point(principal.id)
