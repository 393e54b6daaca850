"""Dues and collections report schemas."""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolfees.api.v1.fees.schemas import MonthlyDueResponse, PaymentResponse, StudentFeeResponse
from schoolfees.core.enums import FeeStatus


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1, le=100)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)


# --- Dues ---
class DueItem(StudentFeeResponse):
    """Ledger row as reported: effective_status reads OVERDUE once the due date has passed."""

    effective_status: FeeStatus
    fee_type_name: str
    fee_type_code: str
    class_id: UUID


class DuesSummary(BaseModel):
    total_dues: int
    total_amount: Decimal
    total_paid: Decimal
    total_discount: Decimal
    total_due_amount: Decimal


class DuesResponse(BaseModel):
    items: List[DueItem]
    pagination: Pagination
    summary: DuesSummary


# --- Monthly breakdown ---
class MonthlyDueItem(MonthlyDueResponse):
    academic_year: str
    fee_type_name: str


class MonthTotals(BaseModel):
    year: int
    month: int
    total_amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    count: int


class MonthlyBreakdownResponse(BaseModel):
    items: List[MonthlyDueItem]
    breakdown: List[MonthTotals]


# --- Collections ---
class CollectionItem(PaymentResponse):
    fee_type_name: Optional[str] = None


class CollectionsResponse(BaseModel):
    items: List[CollectionItem]
    pagination: Pagination
    total_collected: Decimal


# --- Student ledger ---
class StudentLedgerItem(StudentFeeResponse):
    effective_status: FeeStatus
    fee_type_name: str
    fee_type_code: str
    monthly_dues: List[MonthlyDueResponse] = Field(default_factory=list)
