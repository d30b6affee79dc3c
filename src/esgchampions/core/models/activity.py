"""Champion activity log model."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ..storage.database import Base


class ActivityType(str, Enum):
    """Kinds of champion activity."""
    VIEW_PANEL = "view_panel"
    VIEW_INDICATOR = "view_indicator"
    REVIEW_INDICATOR = "review_indicator"
    SUBMIT_REVIEW = "submit_review"
    VOTE = "vote"
    COMMENT = "comment"


RESUMABLE_ACTIVITY = (ActivityType.VIEW_PANEL.value, ActivityType.VIEW_INDICATOR.value)


class ActivityEvent(Base):
    """Append-only activity entry used to derive the resume point."""

    __tablename__ = "champion_activity"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    champion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("champions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    panel_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    indicator_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    review_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    meta_data: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<ActivityEvent(id={self.id}, type='{self.activity_type}', panel_id={self.panel_id})>"
