"""
Rate settings Pydantic schemas.

Request and response models for base rates, surcharge factors and discounts.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.app.models.billing_enums import AdjustmentType


class RateAdjustmentCreate(BaseModel):
    """Schema for creating a surcharge factor or discount."""
    name: str = Field(..., min_length=1, max_length=100)
    rate: float = Field(..., ge=0, description="Percent of the running subtotal, or a fixed amount")
    type: AdjustmentType = AdjustmentType.PERCENTAGE
    position: int = Field(0, ge=0, description="Application order within its table")
    is_active: bool = True


class RateAdjustmentUpdate(BaseModel):
    """Schema for updating a surcharge factor or discount."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    rate: Optional[float] = Field(None, ge=0)
    type: Optional[AdjustmentType] = None
    position: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class RateAdjustmentResponse(BaseModel):
    id: int
    name: str
    rate: float
    type: AdjustmentType
    position: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RateSettingsUpdate(BaseModel):
    """Schema for updating company base rates. Omitted fields keep their value."""
    company_name: Optional[str] = Field(None, max_length=200)
    base_mile_rate: Optional[float] = Field(None, ge=0)
    base_hour_rate: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    invoice_due_days: Optional[int] = Field(None, ge=0, le=365)


class RateSettingsResponse(BaseModel):
    """Full rate configuration as used by the fare calculator."""
    company_name: Optional[str] = None
    base_mile_rate: float
    base_hour_rate: float
    currency: str
    invoice_due_days: int
    surcharge_factors: List[RateAdjustmentResponse]
    discounts: List[RateAdjustmentResponse]
