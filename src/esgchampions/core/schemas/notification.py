"""Notification schemas."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class NotificationView(BaseModel):
    """A notification as shown to a champion, from either source."""
    id: str
    champion_id: Optional[int] = None
    type: str
    title: str
    message: str
    link: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    read: bool = False
    created_at: datetime
    demo: bool = Field(default=False, description="Comes from the demo source")


class UnreadCount(BaseModel):
    champion_id: int
    unread: int
