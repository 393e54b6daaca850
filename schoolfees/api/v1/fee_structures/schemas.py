"""Fee structure schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolfees.core.enums import FeeCategory, FeeFrequency


class FeeStructureCreate(BaseModel):
    class_id: UUID
    fee_type_id: UUID
    academic_year: str = Field(..., min_length=4, max_length=20, description='e.g. "2024-25"')
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    frequency: FeeFrequency
    description: Optional[str] = None


class FeeStructureUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    frequency: Optional[FeeFrequency] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class FeeTypeSummary(BaseModel):
    id: UUID
    name: str
    code: str
    category: FeeCategory
    is_recurring: bool


class FeeStructureResponse(BaseModel):
    id: UUID
    class_id: UUID
    fee_type_id: UUID
    academic_year: str
    amount: Decimal
    frequency: FeeFrequency
    description: Optional[str] = None
    is_active: bool
    fee_type: Optional[FeeTypeSummary] = None
    assigned_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
