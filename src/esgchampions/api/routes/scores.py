"""Score and ranking endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...core.schemas.champion import LeaderboardEntry
from ...core.schemas.score import Score
from ...core.services import CreditLedger
from ..dependencies import get_ledger

router = APIRouter()


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=500),
    ledger: CreditLedger = Depends(get_ledger),
):
    """Champions ranked by credits."""
    return await ledger.leaderboard(limit)


@router.get("/champions/{champion_id}/score", response_model=Score)
async def get_score(
    champion_id: int,
    ledger: CreditLedger = Depends(get_ledger),
):
    """Credit total with its review / vote / participation breakdown."""
    return await ledger.compute_score(champion_id)


@router.get("/champions/{champion_id}/rank")
async def get_rank(
    champion_id: int,
    ledger: CreditLedger = Depends(get_ledger),
):
    """1-based leaderboard position."""
    rank = await ledger.rank(champion_id)
    if rank is None:
        raise HTTPException(status_code=404, detail="Champion not found")
    return {"champion_id": champion_id, "rank": rank}
