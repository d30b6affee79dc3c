"""Champion model."""
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..storage.database import Base


class Champion(Base):
    """A registered domain-expert reviewer.

    ``credits`` is the authoritative balance used for ranking. It is only
    changed through ChampionRepository.increment_credits.
    """

    __tablename__ = "champions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    submissions: Mapped[list["ReviewSubmission"]] = relationship(
        "ReviewSubmission",
        back_populates="champion",
        foreign_keys="ReviewSubmission.champion_id",
    )

    def __repr__(self) -> str:
        return f"<Champion(id={self.id}, email='{self.email}', credits={self.credits})>"
