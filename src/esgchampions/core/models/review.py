"""Single-indicator review and accepted-review ledger models."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..storage.database import Base


class ReviewStatus(str, Enum):
    """Status of a single-indicator review."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELETED = "deleted"


class Review(Base):
    """A champion's review of one indicator, outside of a panel submission."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    champion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("champions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    indicator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("indicators.id", ondelete="CASCADE"), nullable=False, index=True
    )
    panel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("panels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=ReviewStatus.PENDING.value, index=True
    )
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Soft delete
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    indicator: Mapped["Indicator"] = relationship("Indicator")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, indicator_id={self.indicator_id}, status='{self.status}')>"


class AcceptedReview(Base):
    """Insert-only ledger of credited review work.

    One row per accepted single review (unique on ``review_id``) or per
    indicator review of an approved submission (unique on
    ``indicator_review_id``). The unique constraints make a duplicate award
    fail at the store instead of crediting twice.
    """

    __tablename__ = "accepted_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    review_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=True, unique=True
    )
    indicator_review_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("panel_review_indicator_reviews.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )
    champion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("champions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    indicator_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    panel_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    credits_awarded: Mapped[int] = mapped_column(Integer, nullable=False)
    accepted_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    accepted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<AcceptedReview(id={self.id}, champion_id={self.champion_id}, "
            f"credits_awarded={self.credits_awarded})>"
        )
