"""Panel review submission and indicator review models."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..errors import InvalidStateError
from ..storage.database import Base


class SubmissionStatus(str, Enum):
    """Status of a panel review submission."""
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.APPROVED, SubmissionStatus.REJECTED)


OPEN_STATUSES = (SubmissionStatus.DRAFT.value, SubmissionStatus.PENDING.value)
TERMINAL_STATUSES = (SubmissionStatus.APPROVED.value, SubmissionStatus.REJECTED.value)

_OPEN_PREDICATE = text("status IN ('draft', 'pending')")


class Importance(str, Enum):
    """Champion judgment on whether an indicator matters."""
    IMPORTANT = "important"
    NOT_IMPORTANT = "not_important"


class ReviewSubmission(Base):
    """One champion's review of the selected indicators of one panel."""

    __tablename__ = "panel_review_submissions"
    __table_args__ = (
        # At most one draft/pending submission per champion and panel
        Index(
            "uq_open_submission_per_panel",
            "champion_id",
            "panel_id",
            unique=True,
            sqlite_where=_OPEN_PREDICATE,
            postgresql_where=_OPEN_PREDICATE,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    champion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("champions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    panel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("panels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=SubmissionStatus.PENDING.value, index=True
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("champions.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    champion: Mapped["Champion"] = relationship(
        "Champion", back_populates="submissions", foreign_keys=[champion_id]
    )
    panel: Mapped["Panel"] = relationship("Panel")
    indicator_reviews: Mapped[list["IndicatorReview"]] = relationship(
        "IndicatorReview", back_populates="submission", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return (
            f"<ReviewSubmission(id={self.id}, champion_id={self.champion_id}, "
            f"panel_id={self.panel_id}, status='{self.status}')>"
        )


class IndicatorReview(Base):
    """A champion's judgment of one indicator within a submission.

    Rows are inserted together with (or attached to) their submission and are
    never modified afterwards.
    """

    __tablename__ = "panel_review_indicator_reviews"
    __table_args__ = (
        UniqueConstraint("submission_id", "indicator_id", name="uq_indicator_review_per_submission"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("panel_review_submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    indicator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("indicators.id", ondelete="CASCADE"), nullable=False, index=True
    )
    champion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("champions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    importance: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 1-5 scale
    rationale: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    sdgs: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    suggested_tier: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    cost_to_collect: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    submission: Mapped["ReviewSubmission"] = relationship(
        "ReviewSubmission", back_populates="indicator_reviews"
    )
    indicator: Mapped["Indicator"] = relationship("Indicator")

    def __repr__(self) -> str:
        return (
            f"<IndicatorReview(id={self.id}, submission_id={self.submission_id}, "
            f"indicator_id={self.indicator_id})>"
        )


@event.listens_for(IndicatorReview, "before_update")
def _reject_indicator_review_update(mapper, connection, target: IndicatorReview) -> None:
    raise InvalidStateError(
        f"Indicator review {target.id} is read-only once submitted", current=target
    )
