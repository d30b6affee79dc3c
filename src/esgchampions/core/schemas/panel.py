"""Panel and indicator schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PanelCreate(BaseModel):
    """Schema for creating a panel."""
    name: str = Field(..., min_length=1, max_length=255, description="Panel name")
    category: Optional[str] = Field(None, max_length=100, description="Panel category")
    description: Optional[str] = Field(None, description="Panel description")
    primary_framework: Optional[str] = Field(None, max_length=100, description="Reporting framework")
    order_index: int = Field(default=0, description="Display order")


class PanelResponse(BaseModel):
    """Schema for panel response."""
    id: int
    name: str
    category: Optional[str]
    description: Optional[str]
    primary_framework: Optional[str]
    is_active: bool
    order_index: int
    indicator_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class IndicatorCreate(BaseModel):
    """Schema for creating an indicator."""
    panel_id: int = Field(..., description="Owning panel")
    name: str = Field(..., min_length=1, max_length=255, description="Indicator name")
    code: Optional[str] = Field(None, max_length=50, description="Indicator code")
    description: Optional[str] = Field(None, description="Guidance text")
    order_index: int = Field(default=0, description="Display order")


class IndicatorResponse(BaseModel):
    """Schema for indicator response."""
    id: int
    panel_id: int
    code: Optional[str]
    name: str
    description: Optional[str]
    is_active: bool
    order_index: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PanelWithIndicators(PanelResponse):
    """Panel together with its active indicators."""
    indicators: list[IndicatorResponse] = Field(default_factory=list)


class PanelUpdate(BaseModel):
    """Schema for editing a panel. Only fields that are sent are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    primary_framework: Optional[str] = Field(None, max_length=100)
    order_index: Optional[int] = None
    is_active: Optional[bool] = None


class IndicatorUpdate(BaseModel):
    """Schema for editing an indicator. Moving panels has its own operation."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    order_index: Optional[int] = None
    is_active: Optional[bool] = None


class IndicatorMove(BaseModel):
    """Schema for moving an indicator to another panel."""
    panel_id: int = Field(..., description="Destination panel")
