"""Credit score schemas."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class CreditKind(str, Enum):
    """Source of a slice of a champion's credit balance."""
    REVIEW = "review"
    VOTE = "vote"
    PARTICIPATION = "participation"


class LedgerEntry(BaseModel):
    """One tagged slice of the balance."""
    kind: CreditKind
    amount: int


class ScoreBreakdown(BaseModel):
    """Display breakdown. Always derived from ledger entries."""
    reviews: int
    votes: int
    participation: int

    @classmethod
    def from_entries(cls, entries: list[LedgerEntry]) -> "ScoreBreakdown":
        totals = {kind: 0 for kind in CreditKind}
        for entry in entries:
            totals[entry.kind] += entry.amount
        return cls(
            reviews=totals[CreditKind.REVIEW],
            votes=totals[CreditKind.VOTE],
            participation=totals[CreditKind.PARTICIPATION],
        )

    @property
    def total(self) -> int:
        return self.reviews + self.votes + self.participation


class Score(BaseModel):
    """A champion's score."""
    champion_id: int
    total: int
    breakdown: ScoreBreakdown
    entries: list[LedgerEntry]
    rank: Optional[int] = None
