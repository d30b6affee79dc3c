"""Vote schemas."""
from pydantic import BaseModel, ConfigDict, Field

from ..models.vote import VoteTarget, VoteType


class VoteCreate(BaseModel):
    """Schema for casting a vote."""
    vote_type: VoteType = Field(..., description="upvote or downvote")

    model_config = ConfigDict(use_enum_values=True)


class VoteTally(BaseModel):
    """Vote counts for one target."""
    target_type: VoteTarget
    target_id: int
    upvotes: int
    downvotes: int

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes
