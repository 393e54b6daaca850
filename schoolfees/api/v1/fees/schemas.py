"""Fees schemas: assignment, ledger records, installments, payments."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolfees.core.enums import AssignmentOutcome, FeeStatus, PaymentMethod, PaymentStatus


# --- Assignment ---
class AssignFeesRequest(BaseModel):
    student_ids: List[UUID] = Field(default_factory=list)
    fee_structure_id: UUID
    academic_year: str = Field(..., min_length=4, max_length=20)
    due_date: Optional[date] = None
    override_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class AssignClassFeesRequest(BaseModel):
    class_id: UUID
    fee_structure_id: UUID
    academic_year: str = Field(..., min_length=4, max_length=20)
    due_date: Optional[date] = None


class StudentAssignmentResult(BaseModel):
    """Outcome for one student in a batch: assigned, skipped or failed."""

    student_id: UUID
    status: AssignmentOutcome
    student_fee_id: Optional[UUID] = None
    reason: Optional[str] = None


class AssignmentSummary(BaseModel):
    total: int
    assigned: int
    skipped: int
    failed: int


class AssignmentResponse(BaseModel):
    message: str
    summary: AssignmentSummary
    details: List[StudentAssignmentResult]


# --- Ledger ---
class MonthlyDueResponse(BaseModel):
    id: UUID
    student_fee_id: UUID
    student_id: UUID
    month: int
    year: int
    amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    status: FeeStatus
    due_date: date
    paid_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class StudentFeeResponse(BaseModel):
    id: UUID
    student_id: UUID
    fee_structure_id: UUID
    fee_type_id: UUID
    academic_year: str
    total_amount: Decimal
    paid_amount: Decimal
    discount_amount: Decimal
    due_amount: Decimal
    status: FeeStatus
    due_date: Optional[date] = None
    last_payment_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# --- Payment ---
class PaymentCreate(BaseModel):
    student_fee_id: UUID
    student_id: UUID
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    discount_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    discount_reason: Optional[str] = Field(None, max_length=255)
    payment_method: PaymentMethod
    transaction_id: Optional[str] = Field(None, max_length=100)
    remarks: Optional[str] = None


class PaymentResponse(BaseModel):
    id: UUID
    student_fee_id: UUID
    student_id: UUID
    academic_year: str
    amount: Decimal
    discount_amount: Decimal
    discount_reason: Optional[str] = None
    payment_method: PaymentMethod
    transaction_id: Optional[str] = None
    receipt_number: str
    remarks: Optional[str] = None
    status: PaymentStatus
    collected_by: Optional[UUID] = None
    payment_date: datetime

    class Config:
        from_attributes = True


class PaymentRecordedResponse(BaseModel):
    """The new receipt plus the ledger record as it stands after the payment."""

    payment: PaymentResponse
    student_fee: StudentFeeResponse


class ReceiptResponse(BaseModel):
    payment: PaymentResponse
    student_fee: StudentFeeResponse
    fee_type_name: str
    fee_type_code: str
