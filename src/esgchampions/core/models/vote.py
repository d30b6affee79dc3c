"""Vote model."""
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from ..storage.database import Base


class VoteType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class VoteTarget(str, Enum):
    REVIEW = "review"
    SUBMISSION = "submission"


class Vote(Base):
    """One champion's vote on a review or submission. Re-voting overwrites."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("target_type", "target_id", "champion_id", name="uq_vote_per_target"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    target_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    champion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("champions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vote_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Vote(target={self.target_type}:{self.target_id}, "
            f"champion_id={self.champion_id}, vote_type='{self.vote_type}')>"
        )
