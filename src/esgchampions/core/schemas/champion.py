"""Champion schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChampionCreate(BaseModel):
    """Schema for registering a champion."""
    email: str = Field(..., min_length=3, max_length=255, description="Champion email")
    full_name: str = Field(..., min_length=1, max_length=255, description="Display name")
    company: Optional[str] = Field(None, max_length=255, description="Company or organisation")


class ChampionResponse(BaseModel):
    """Schema for champion response."""
    id: int
    email: str
    full_name: str
    company: Optional[str]
    credits: int
    is_admin: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeaderboardEntry(BaseModel):
    """One leaderboard row."""
    rank: int
    champion_id: int
    full_name: str
    company: Optional[str]
    credits: int
    accepted_reviews_count: int
