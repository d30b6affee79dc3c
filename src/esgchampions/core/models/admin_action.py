"""Admin audit trail model."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ..storage.database import Base


class AdminActionType(str, Enum):
    APPROVE_SUBMISSION = "approve_submission"
    REJECT_SUBMISSION = "reject_submission"
    ACCEPT_REVIEW = "accept_review"
    REJECT_REVIEW = "reject_review"
    ADJUST_CREDITS = "adjust_credits"
    DELETE_REVIEW = "delete_review"
    GRANT_ADMIN = "grant_admin"
    REVOKE_ADMIN = "revoke_admin"
    CREATE_PANEL = "create_panel"
    UPDATE_PANEL = "update_panel"
    DEACTIVATE_PANEL = "deactivate_panel"
    CREATE_INDICATOR = "create_indicator"
    UPDATE_INDICATOR = "update_indicator"
    DEACTIVATE_INDICATOR = "deactivate_indicator"
    MOVE_INDICATOR = "move_indicator"


class AdminAction(Base):
    """Append-only record of a moderation decision."""

    __tablename__ = "admin_actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    admin_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("champions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    target_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<AdminAction(id={self.id}, action_type='{self.action_type}', "
            f"target={self.target_type}:{self.target_id})>"
        )
