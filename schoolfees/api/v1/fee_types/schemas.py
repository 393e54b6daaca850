"""Fee type schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolfees.core.enums import FeeCategory


class FeeTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=50)
    category: FeeCategory
    is_recurring: bool = False
    description: Optional[str] = None


class FeeTypeResponse(BaseModel):
    id: UUID
    name: str
    code: str
    category: FeeCategory
    is_recurring: bool
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
