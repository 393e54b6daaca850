"""Fees service: assignment of fee structures to students and payment allocation. Financial logic with audit."""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, NamedTuple, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.config import settings
from schoolfees.core.enums import AssignmentOutcome, FeeFrequency, FeeStatus, PaymentStatus
from schoolfees.core.exceptions import NotFoundError, ValidationError
from schoolfees.core.fee_audit import log_fee_audit
from schoolfees.core.ledger import build_installment_schedule, derive_status
from schoolfees.core.models import (
    FeeStructure,
    FeeType,
    MonthlyDue,
    Payment,
    StudentAcademicRecord,
    StudentFee,
)
from schoolfees.core.money import ZERO, to_decimal
from schoolfees.core.receipts import generate_receipt_number

from .schemas import (
    AssignClassFeesRequest,
    AssignFeesRequest,
    AssignmentResponse,
    AssignmentSummary,
    MonthlyDueResponse,
    PaymentCreate,
    PaymentRecordedResponse,
    PaymentResponse,
    ReceiptResponse,
    StudentAssignmentResult,
    StudentFeeResponse,
)

logger = logging.getLogger(__name__)


# --- Response mapping ---
def student_fee_to_response(sf: StudentFee) -> StudentFeeResponse:
    return StudentFeeResponse(
        id=sf.id,
        student_id=sf.student_id,
        fee_structure_id=sf.fee_structure_id,
        fee_type_id=sf.fee_type_id,
        academic_year=sf.academic_year,
        total_amount=to_decimal(sf.total_amount),
        paid_amount=to_decimal(sf.paid_amount),
        discount_amount=to_decimal(sf.discount_amount),
        due_amount=to_decimal(sf.due_amount),
        status=sf.status,
        due_date=sf.due_date,
        last_payment_date=sf.last_payment_date,
        created_at=sf.created_at,
        updated_at=sf.updated_at,
    )


def monthly_due_to_response(due: MonthlyDue, status: Optional[FeeStatus] = None) -> MonthlyDueResponse:
    amount = to_decimal(due.amount)
    paid = to_decimal(due.paid_amount)
    return MonthlyDueResponse(
        id=due.id,
        student_fee_id=due.student_fee_id,
        student_id=due.student_id,
        month=due.month,
        year=due.year,
        amount=amount,
        paid_amount=paid,
        due_amount=amount - paid,
        status=status or due.status,
        due_date=due.due_date,
        paid_date=due.paid_date,
    )


def payment_to_response(p: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=p.id,
        student_fee_id=p.student_fee_id,
        student_id=p.student_id,
        academic_year=p.academic_year,
        amount=to_decimal(p.amount),
        discount_amount=to_decimal(p.discount_amount),
        discount_reason=p.discount_reason,
        payment_method=p.payment_method,
        transaction_id=p.transaction_id,
        receipt_number=p.receipt_number,
        remarks=p.remarks,
        status=p.status,
        collected_by=p.collected_by,
        payment_date=p.payment_date,
    )


def _ledger_snapshot(sf: StudentFee) -> dict:
    return {
        "total_amount": str(sf.total_amount),
        "paid_amount": str(sf.paid_amount),
        "discount_amount": str(sf.discount_amount),
        "due_amount": str(sf.due_amount),
        "status": sf.status,
    }


# --- Assignment ---
class _StructureSnapshot(NamedTuple):
    # Plain values: a per-student rollback expires ORM instances in the session.
    id: UUID
    fee_type_id: UUID
    amount: Decimal
    monthly_recurring: bool


async def _load_structure(db: AsyncSession, fee_structure_id: UUID) -> _StructureSnapshot:
    fs = (
        await db.execute(
            select(FeeStructure)
            .where(FeeStructure.id == fee_structure_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if not fs:
        raise NotFoundError("Fee structure not found")
    return _StructureSnapshot(
        id=fs.id,
        fee_type_id=fs.fee_type_id,
        amount=to_decimal(fs.amount),
        monthly_recurring=bool(fs.fee_type.is_recurring) and fs.frequency == FeeFrequency.MONTHLY.value,
    )


async def _existing_assignment(
    db: AsyncSession,
    student_id: UUID,
    fee_structure_id: UUID,
    academic_year: str,
) -> Optional[UUID]:
    return (
        await db.execute(
            select(StudentFee.id).where(
                StudentFee.student_id == student_id,
                StudentFee.fee_structure_id == fee_structure_id,
                StudentFee.academic_year == academic_year,
            )
        )
    ).scalar_one_or_none()


async def _assign_one(
    db: AsyncSession,
    student_id: UUID,
    structure: _StructureSnapshot,
    academic_year: str,
    amount: Decimal,
    due_date: Optional[date],
    changed_by: Optional[UUID],
) -> StudentAssignmentResult:
    """Create-or-skip for one student in its own transaction."""
    existing = await _existing_assignment(db, student_id, structure.id, academic_year)
    if existing:
        return StudentAssignmentResult(
            student_id=student_id,
            status=AssignmentOutcome.skipped,
            student_fee_id=existing,
            reason="Already assigned",
        )

    enrolled = (
        await db.execute(
            select(StudentAcademicRecord.id).where(
                StudentAcademicRecord.student_id == student_id,
                StudentAcademicRecord.academic_year == academic_year,
                StudentAcademicRecord.status == "ACTIVE",
            ).limit(1)
        )
    ).first()
    if not enrolled:
        return StudentAssignmentResult(
            student_id=student_id,
            status=AssignmentOutcome.failed,
            reason="Student not enrolled for this academic year",
        )

    try:
        sf = StudentFee(
            student_id=student_id,
            fee_structure_id=structure.id,
            fee_type_id=structure.fee_type_id,
            academic_year=academic_year,
            total_amount=amount,
            paid_amount=ZERO,
            discount_amount=ZERO,
            due_amount=amount,
            status=derive_status(ZERO, amount).value,
            due_date=due_date,
        )
        db.add(sf)
        await db.flush()

        installments = 0
        if structure.monthly_recurring:
            schedule = build_installment_schedule(
                amount,
                date.today(),
                settings.monthly_due_day,
                settings.monthly_installment_mode,
            )
            for inst in schedule:
                db.add(
                    MonthlyDue(
                        student_fee_id=sf.id,
                        student_id=student_id,
                        month=inst.month,
                        year=inst.year,
                        amount=inst.amount,
                        paid_amount=ZERO,
                        status=FeeStatus.PENDING.value,
                        due_date=inst.due_date,
                    )
                )
            installments = len(schedule)

        await log_fee_audit(
            db,
            "student_fees",
            sf.id,
            "CREATE",
            None,
            {
                "student_id": str(student_id),
                "fee_structure_id": str(structure.id),
                "academic_year": academic_year,
                "total_amount": str(amount),
                "installments": installments,
            },
            changed_by,
        )
        student_fee_id = sf.id
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # A concurrent assignment of the same (student, structure, year) won the insert.
        winner = await _existing_assignment(db, student_id, structure.id, academic_year)
        if winner:
            return StudentAssignmentResult(
                student_id=student_id,
                status=AssignmentOutcome.skipped,
                student_fee_id=winner,
                reason="Already assigned",
            )
        logger.warning("Fee assignment rejected for student %s", student_id, exc_info=True)
        return StudentAssignmentResult(
            student_id=student_id,
            status=AssignmentOutcome.failed,
            reason="Failed to assign fee",
        )
    except SQLAlchemyError:
        await db.rollback()
        logger.warning("Fee assignment failed for student %s", student_id, exc_info=True)
        return StudentAssignmentResult(
            student_id=student_id,
            status=AssignmentOutcome.failed,
            reason="Failed to assign fee",
        )

    return StudentAssignmentResult(
        student_id=student_id,
        status=AssignmentOutcome.assigned,
        student_fee_id=student_fee_id,
    )


def _summarize(results: List[StudentAssignmentResult]) -> AssignmentSummary:
    return AssignmentSummary(
        total=len(results),
        assigned=sum(1 for r in results if r.status == AssignmentOutcome.assigned),
        skipped=sum(1 for r in results if r.status == AssignmentOutcome.skipped),
        failed=sum(1 for r in results if r.status == AssignmentOutcome.failed),
    )


async def assign_to_students(
    db: AsyncSession,
    payload: AssignFeesRequest,
    changed_by: Optional[UUID] = None,
) -> AssignmentResponse:
    """
    Assign one fee structure to each student independently.
    A student's failure is reported in its result and never undoes another student's assignment.
    """
    structure = await _load_structure(db, payload.fee_structure_id)
    student_ids = list(dict.fromkeys(payload.student_ids))
    if not student_ids:
        raise NotFoundError("No students to assign")

    amount = to_decimal(payload.override_amount) if payload.override_amount is not None else structure.amount
    academic_year = payload.academic_year.strip()

    results = []
    for student_id in student_ids:
        results.append(
            await _assign_one(
                db, student_id, structure, academic_year, amount, payload.due_date, changed_by
            )
        )

    summary = _summarize(results)
    logger.info(
        "Fee structure %s assigned for %s: %d assigned, %d skipped, %d failed",
        structure.id, academic_year, summary.assigned, summary.skipped, summary.failed,
    )
    return AssignmentResponse(
        message="Fee assignment completed",
        summary=summary,
        details=results,
    )


async def assign_to_class(
    db: AsyncSession,
    payload: AssignClassFeesRequest,
    changed_by: Optional[UUID] = None,
) -> AssignmentResponse:
    academic_year = payload.academic_year.strip()
    await _load_structure(db, payload.fee_structure_id)
    student_ids = (
        await db.execute(
            select(StudentAcademicRecord.student_id)
            .where(
                StudentAcademicRecord.class_id == payload.class_id,
                StudentAcademicRecord.academic_year == academic_year,
                StudentAcademicRecord.status == "ACTIVE",
            )
            .order_by(StudentAcademicRecord.roll_number, StudentAcademicRecord.student_id)
        )
    ).scalars().all()
    if not student_ids:
        raise NotFoundError("No students found in this class")

    response = await assign_to_students(
        db,
        AssignFeesRequest(
            student_ids=list(student_ids),
            fee_structure_id=payload.fee_structure_id,
            academic_year=academic_year,
            due_date=payload.due_date,
        ),
        changed_by=changed_by,
    )
    response.message = "Bulk fee assignment completed"
    return response


# --- Payment allocation ---
async def _lock_student_fee(db: AsyncSession, student_fee_id: UUID) -> StudentFee:
    """
    Take the row's write lock as the transaction's first statement, then read it.
    A concurrent payment on the same record blocks here until this transaction ends.
    """
    result = await db.execute(
        update(StudentFee)
        .where(StudentFee.id == student_fee_id)
        .values(updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Student fee record not found")
    return (
        await db.execute(
            select(StudentFee)
            .where(StudentFee.id == student_fee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one()


def apply_payment_to_ledger(
    sf: StudentFee,
    amount: Decimal,
    discount: Decimal,
    paid_at: datetime,
) -> None:
    """Update aggregate balances and recompute the stored status."""
    paid = to_decimal(sf.paid_amount) + amount
    discounted = to_decimal(sf.discount_amount) + discount
    due = to_decimal(sf.total_amount) - paid - discounted
    sf.paid_amount = paid
    sf.discount_amount = discounted
    sf.due_amount = due
    sf.status = derive_status(paid, due).value
    sf.last_payment_date = paid_at


async def allocate_to_installments(
    db: AsyncSession,
    student_fee_id: UUID,
    amount: Decimal,
    paid_at: datetime,
) -> Decimal:
    """
    Waterfall the cash amount over open installments, earliest due date first.
    Must run inside the caller's transaction holding the student fee lock.
    Returns the part of the amount no installment needed.
    """
    dues = (
        await db.execute(
            select(MonthlyDue)
            .where(
                MonthlyDue.student_fee_id == student_fee_id,
                MonthlyDue.status.in_([FeeStatus.PENDING.value, FeeStatus.PARTIAL.value]),
            )
            .order_by(MonthlyDue.due_date, MonthlyDue.year, MonthlyDue.month)
            .execution_options(populate_existing=True)
        )
    ).scalars().all()

    remaining = amount
    for due in dues:
        if remaining <= ZERO:
            break
        due_total = to_decimal(due.amount)
        already_paid = to_decimal(due.paid_amount)
        outstanding = due_total - already_paid
        if outstanding <= ZERO:
            continue
        applied = min(remaining, outstanding)
        new_paid = already_paid + applied
        due.paid_amount = new_paid
        if new_paid >= due_total:
            due.status = FeeStatus.PAID.value
            due.paid_date = paid_at
        else:
            due.status = FeeStatus.PARTIAL.value
        remaining -= applied
    return remaining


async def record_payment(
    db: AsyncSession,
    payload: PaymentCreate,
    collected_by: Optional[UUID],
) -> PaymentRecordedResponse:
    """
    Record a payment and apply it to the ledger in one transaction.
    Payments may not exceed the remaining balance: amount + discount <= due_amount.
    """
    amount = to_decimal(payload.amount)
    discount = to_decimal(payload.discount_amount)
    if amount <= ZERO:
        raise ValidationError("Payment amount must be greater than zero")
    if discount < ZERO:
        raise ValidationError("Discount amount cannot be negative")

    try:
        sf = await _lock_student_fee(db, payload.student_fee_id)
        if sf.student_id != payload.student_id:
            raise ValidationError("Student does not match the fee record")
        if amount + discount > to_decimal(sf.due_amount):
            raise ValidationError("Payment amount cannot exceed remaining balance")

        paid_at = datetime.now(timezone.utc)
        payment = Payment(
            student_fee_id=sf.id,
            student_id=sf.student_id,
            academic_year=sf.academic_year,
            amount=amount,
            discount_amount=discount,
            discount_reason=(payload.discount_reason or "").strip() or None,
            payment_method=payload.payment_method.value,
            transaction_id=(payload.transaction_id or "").strip() or None,
            receipt_number=generate_receipt_number(paid_at),
            remarks=(payload.remarks or "").strip() or None,
            status=PaymentStatus.COMPLETED.value,
            collected_by=collected_by,
            payment_date=paid_at,
        )
        db.add(payment)

        old_ledger = _ledger_snapshot(sf)
        apply_payment_to_ledger(sf, amount, discount, paid_at)

        unallocated = ZERO
        fee_type = await db.get(FeeType, sf.fee_type_id)
        if fee_type is not None and fee_type.is_recurring:
            unallocated = await allocate_to_installments(db, sf.id, amount, paid_at)

        await db.flush()
        await log_fee_audit(
            db, "payments", payment.id,
            "CREATE",
            None,
            {
                "amount": str(amount),
                "discount_amount": str(discount),
                "payment_method": payment.payment_method,
                "receipt_number": payment.receipt_number,
                "student_fee_id": str(sf.id),
                "unallocated": str(unallocated),
            },
            collected_by,
        )
        await log_fee_audit(
            db, "student_fees", sf.id,
            "UPDATE",
            old_ledger,
            _ledger_snapshot(sf),
            collected_by,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Recorded payment %s of %s against student fee %s (status %s)",
        payment.receipt_number, amount, sf.id, sf.status,
    )
    return PaymentRecordedResponse(
        payment=payment_to_response(payment),
        student_fee=student_fee_to_response(sf),
    )


async def get_receipt(db: AsyncSession, receipt_number: str) -> ReceiptResponse:
    row = (
        await db.execute(
            select(Payment, StudentFee, FeeType)
            .join(StudentFee, Payment.student_fee_id == StudentFee.id)
            .join(FeeType, StudentFee.fee_type_id == FeeType.id)
            .where(Payment.receipt_number == receipt_number.strip().upper())
        )
    ).first()
    if not row:
        raise NotFoundError("Receipt not found")
    payment, sf, fee_type = row
    return ReceiptResponse(
        payment=payment_to_response(payment),
        student_fee=student_fee_to_response(sf),
        fee_type_name=fee_type.name,
        fee_type_code=fee_type.code,
    )
