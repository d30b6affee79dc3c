"""Vote endpoints"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ...core.errors import ChampionsError
from ...core.identity import Principal
from ...core.models import VoteTarget
from ...core.schemas.vote import VoteCreate, VoteTally
from ...core.services import VoteService
from ..dependencies import get_principal, get_vote_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/votes/{target_type}/{target_id}", response_model=VoteTally)
async def get_tally(
    target_type: VoteTarget,
    target_id: int,
    votes: VoteService = Depends(get_vote_service),
):
    """Vote counts for a review or submission."""
    return await votes.tally(target_type, target_id)


@router.put("/votes/{target_type}/{target_id}", response_model=VoteTally)
async def cast_vote(
    target_type: VoteTarget,
    target_id: int,
    vote_data: VoteCreate,
    principal: Principal = Depends(get_principal),
    votes: VoteService = Depends(get_vote_service),
):
    """Cast or change the caller's vote."""
    try:
        await votes.vote(target_type, target_id, principal.id, vote_data.vote_type)
        return await votes.tally(target_type, target_id)
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error casting vote on {target_type.value} {target_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/votes/{target_type}/{target_id}", response_model=VoteTally)
async def remove_vote(
    target_type: VoteTarget,
    target_id: int,
    principal: Principal = Depends(get_principal),
    votes: VoteService = Depends(get_vote_service),
):
    """Withdraw the caller's vote."""
    await votes.remove_vote(target_type, target_id, principal.id)
    return await votes.tally(target_type, target_id)
