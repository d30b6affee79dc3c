"""Notification endpoints"""
import logging

from fastapi import APIRouter, Depends, Request, Response

from ...core.identity import Principal
from ...core.schemas.notification import NotificationView, UnreadCount
from ...core.services import NotificationCenter
from ..dependencies import get_notification_center, get_principal

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationView])
async def list_notifications(
    principal: Principal = Depends(get_principal),
    center: NotificationCenter = Depends(get_notification_center),
):
    """The caller's notifications, newest first."""
    return await center.list(principal.id)


@router.get("/notifications/unread-count", response_model=UnreadCount)
async def unread_count(
    principal: Principal = Depends(get_principal),
    center: NotificationCenter = Depends(get_notification_center),
):
    """Number of unread notifications in the list above."""
    return UnreadCount(champion_id=principal.id, unread=await center.unread_count(principal.id))


@router.post("/notifications/read-all")
async def mark_all_read(
    principal: Principal = Depends(get_principal),
    center: NotificationCenter = Depends(get_notification_center),
):
    """Mark every notification read."""
    updated = await center.mark_all_read(principal.id)
    return {"updated": updated}


@router.post("/notifications/{notification_id}/read", status_code=204)
async def mark_read(
    notification_id: str,
    principal: Principal = Depends(get_principal),
    center: NotificationCenter = Depends(get_notification_center),
):
    """Mark one notification read. Safe to repeat."""
    await center.mark_read(notification_id, champion_id=principal.id)
    return Response(status_code=204)


@router.post("/session/sign-out", status_code=204)
async def sign_out(
    request: Request,
    principal: Principal = Depends(get_principal),
):
    """End the caller's session and forget its local read state."""
    request.app.state.identity.sign_out(principal)
    return Response(status_code=204)
