"""Champion, panel and indicator endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...core.errors import ChampionsError
from ...core.identity import Principal
from ...core.schemas.champion import ChampionCreate, ChampionResponse
from ...core.schemas.panel import (
    IndicatorCreate,
    IndicatorMove,
    IndicatorResponse,
    IndicatorUpdate,
    PanelCreate,
    PanelResponse,
    PanelUpdate,
    PanelWithIndicators,
)
from ...core.services import Catalog
from ..dependencies import get_catalog, get_principal, require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/champions", response_model=ChampionResponse, status_code=201)
async def register_champion(
    champion_data: ChampionCreate,
    catalog: Catalog = Depends(get_catalog),
):
    """Register a new champion."""
    try:
        return await catalog.register_champion(champion_data)
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error registering champion: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/champions/me", response_model=ChampionResponse)
async def get_me(
    principal: Principal = Depends(get_principal),
    catalog: Catalog = Depends(get_catalog),
):
    """Get the calling champion's profile."""
    return await catalog.get_champion(principal.id)


@router.get("/champions/{champion_id}", response_model=ChampionResponse)
async def get_champion(
    champion_id: int,
    catalog: Catalog = Depends(get_catalog),
):
    """Get a champion by ID."""
    return await catalog.get_champion(champion_id)


@router.get("/panels", response_model=list[PanelResponse])
async def list_panels(
    category: Optional[str] = Query(None, description="Filter by category"),
    catalog: Catalog = Depends(get_catalog),
):
    """List active panels with their indicator counts."""
    return await catalog.list_panels(category=category)


@router.post("/panels", response_model=PanelResponse, status_code=201)
async def create_panel(
    panel_data: PanelCreate,
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    """Create a panel (admin only)."""
    try:
        return await catalog.create_panel(panel_data, admin_id=admin.id)
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error creating panel: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/panels/{panel_id}", response_model=PanelWithIndicators)
async def get_panel(
    panel_id: int,
    catalog: Catalog = Depends(get_catalog),
):
    """Get a panel with its active indicators."""
    return await catalog.get_panel_with_indicators(panel_id)


@router.post("/indicators", response_model=IndicatorResponse, status_code=201)
async def create_indicator(
    indicator_data: IndicatorCreate,
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    """Add an indicator to a panel (admin only)."""
    try:
        return await catalog.create_indicator(indicator_data, admin_id=admin.id)
    except (HTTPException, ChampionsError):
        raise
    except Exception as e:
        logger.error(f"Error creating indicator: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/panels/{panel_id}", response_model=PanelResponse)
async def update_panel(
    panel_id: int,
    updates: PanelUpdate,
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    """Edit a panel (admin only)."""
    return await catalog.update_panel(panel_id, admin.id, updates)


@router.post("/panels/{panel_id}/deactivate", response_model=PanelResponse)
async def deactivate_panel(
    panel_id: int,
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    """Hide a panel from listings (admin only)."""
    return await catalog.deactivate_panel(panel_id, admin.id)


@router.patch("/indicators/{indicator_id}", response_model=IndicatorResponse)
async def update_indicator(
    indicator_id: int,
    updates: IndicatorUpdate,
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    """Edit an indicator (admin only)."""
    return await catalog.update_indicator(indicator_id, admin.id, updates)


@router.post("/indicators/{indicator_id}/deactivate", response_model=IndicatorResponse)
async def deactivate_indicator(
    indicator_id: int,
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    return await catalog.deactivate_indicator(indicator_id, admin.id)


@router.post("/indicators/{indicator_id}/move", response_model=IndicatorResponse)
async def move_indicator(
    indicator_id: int,
    move: IndicatorMove,
    admin: Principal = Depends(require_admin),
    catalog: Catalog = Depends(get_catalog),
):
    """Move an indicator to another panel (admin only)."""
    return await catalog.move_indicator(indicator_id, admin.id, move.panel_id)
