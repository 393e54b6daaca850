"""Dues and collections reporting. Read-only views over the ledger, installments and payments."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.fees.service import (
    monthly_due_to_response,
    payment_to_response,
    student_fee_to_response,
)
from schoolfees.core.enums import FeeStatus, PaymentMethod
from schoolfees.core.ledger import effective_status
from schoolfees.core.models import (
    FeeStructure,
    FeeType,
    MonthlyDue,
    Payment,
    StudentAcademicRecord,
    StudentFee,
)
from schoolfees.core.money import ZERO, to_decimal

from .schemas import (
    CollectionItem,
    CollectionsResponse,
    DueItem,
    DuesResponse,
    DuesSummary,
    MonthlyBreakdownResponse,
    MonthlyDueItem,
    MonthTotals,
    Pagination,
    StudentLedgerItem,
)

_OPEN_STATUSES = [FeeStatus.PENDING.value, FeeStatus.PARTIAL.value]


def _pagination(page: int, page_size: int, total: int) -> Pagination:
    total_pages = (total + page_size - 1) // page_size if page_size else 0
    return Pagination(page=page, page_size=page_size, total=total, total_pages=total_pages)


def _class_members(class_id: UUID, academic_year: Optional[str] = None):
    stmt = select(StudentAcademicRecord.student_id).where(
        StudentAcademicRecord.class_id == class_id,
        StudentAcademicRecord.status == "ACTIVE",
    )
    if academic_year is not None:
        stmt = stmt.where(StudentAcademicRecord.academic_year == academic_year)
    return stmt


# --- Dues ---
async def query_dues(
    db: AsyncSession,
    academic_year: str,
    student_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
    fee_type_id: Optional[UUID] = None,
    status_filter: Optional[FeeStatus] = None,
    page: int = 1,
    page_size: int = 50,
    today: Optional[date] = None,
) -> DuesResponse:
    """
    Ledger rows for an academic year with a sum over the whole filtered set.
    Without a status filter only unpaid rows are listed.
    """
    today = today or date.today()
    conds = [StudentFee.academic_year == academic_year]
    if student_id is not None:
        conds.append(StudentFee.student_id == student_id)
    if class_id is not None:
        conds.append(StudentFee.student_id.in_(_class_members(class_id, academic_year)))
    if fee_type_id is not None:
        conds.append(StudentFee.fee_type_id == fee_type_id)
    if status_filter == FeeStatus.OVERDUE:
        conds.append(StudentFee.due_amount > 0)
        conds.append(StudentFee.due_date < today)
    elif status_filter is not None:
        conds.append(StudentFee.status == status_filter.value)
    else:
        conds.append(StudentFee.status.in_(_OPEN_STATUSES))

    total = (
        await db.execute(select(func.count(StudentFee.id)).where(*conds))
    ).scalar() or 0

    sums = (
        await db.execute(
            select(
                func.coalesce(func.sum(StudentFee.total_amount), 0),
                func.coalesce(func.sum(StudentFee.paid_amount), 0),
                func.coalesce(func.sum(StudentFee.discount_amount), 0),
                func.coalesce(func.sum(StudentFee.due_amount), 0),
            ).where(*conds)
        )
    ).one()

    stmt = (
        select(StudentFee, FeeType.name, FeeType.code, FeeStructure.class_id)
        .join(FeeType, StudentFee.fee_type_id == FeeType.id)
        .join(FeeStructure, StudentFee.fee_structure_id == FeeStructure.id)
        .where(*conds)
        .order_by(StudentFee.due_date.is_(None), StudentFee.due_date, StudentFee.created_at, StudentFee.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await db.execute(stmt)).all()

    items = []
    for sf, ft_name, ft_code, cl_id in rows:
        base = student_fee_to_response(sf)
        items.append(
            DueItem(
                **base.model_dump(),
                effective_status=effective_status(sf.status, sf.due_amount, sf.due_date, today),
                fee_type_name=ft_name,
                fee_type_code=ft_code,
                class_id=cl_id,
            )
        )

    return DuesResponse(
        items=items,
        pagination=_pagination(page, page_size, total),
        summary=DuesSummary(
            total_dues=total,
            total_amount=to_decimal(sums[0]),
            total_paid=to_decimal(sums[1]),
            total_discount=to_decimal(sums[2]),
            total_due_amount=to_decimal(sums[3]),
        ),
    )


# --- Monthly breakdown ---
async def query_monthly_breakdown(
    db: AsyncSession,
    student_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
    year: Optional[int] = None,
    status_filter: Optional[FeeStatus] = None,
    today: Optional[date] = None,
) -> MonthlyBreakdownResponse:
    """Installment rows, newest month first, with totals per (year, month)."""
    today = today or date.today()
    stmt = (
        select(MonthlyDue, StudentFee.academic_year, FeeType.name)
        .join(StudentFee, MonthlyDue.student_fee_id == StudentFee.id)
        .join(FeeType, StudentFee.fee_type_id == FeeType.id)
    )
    if student_id is not None:
        stmt = stmt.where(MonthlyDue.student_id == student_id)
    if class_id is not None:
        stmt = stmt.where(MonthlyDue.student_id.in_(_class_members(class_id)))
    if year is not None:
        stmt = stmt.where(MonthlyDue.year == year)
    if status_filter == FeeStatus.OVERDUE:
        stmt = stmt.where(
            MonthlyDue.status.in_(_OPEN_STATUSES),
            MonthlyDue.due_date < today,
        )
    elif status_filter is not None:
        stmt = stmt.where(MonthlyDue.status == status_filter.value)
    else:
        stmt = stmt.where(MonthlyDue.status.in_(_OPEN_STATUSES))
    stmt = stmt.order_by(MonthlyDue.year.desc(), MonthlyDue.month.desc(), MonthlyDue.student_id)

    rows = (await db.execute(stmt)).all()

    items: List[MonthlyDueItem] = []
    totals: Dict[Tuple[int, int], MonthTotals] = {}
    for due, academic_year, ft_name in rows:
        reported = effective_status(
            due.status, to_decimal(due.amount) - to_decimal(due.paid_amount), due.due_date, today
        )
        base = monthly_due_to_response(due, status=reported)
        items.append(MonthlyDueItem(**base.model_dump(), academic_year=academic_year, fee_type_name=ft_name))

        key = (due.year, due.month)
        if key not in totals:
            totals[key] = MonthTotals(
                year=due.year,
                month=due.month,
                total_amount=ZERO,
                paid_amount=ZERO,
                due_amount=ZERO,
                count=0,
            )
        bucket = totals[key]
        bucket.total_amount += base.amount
        bucket.paid_amount += base.paid_amount
        bucket.due_amount += base.due_amount
        bucket.count += 1

    return MonthlyBreakdownResponse(items=items, breakdown=list(totals.values()))


# --- Collections ---
async def query_collections(
    db: AsyncSession,
    student_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    payment_method: Optional[PaymentMethod] = None,
    page: int = 1,
    page_size: int = 50,
) -> CollectionsResponse:
    """Payments, newest first. end_date is inclusive."""
    conds = []
    if student_id is not None:
        conds.append(Payment.student_id == student_id)
    if start_date is not None:
        conds.append(Payment.payment_date >= datetime.combine(start_date, time.min))
    if end_date is not None:
        conds.append(Payment.payment_date < datetime.combine(end_date + timedelta(days=1), time.min))
    if payment_method is not None:
        conds.append(Payment.payment_method == payment_method.value)

    total = (
        await db.execute(select(func.count(Payment.id)).where(and_(True, *conds)))
    ).scalar() or 0
    collected = (
        await db.execute(select(func.coalesce(func.sum(Payment.amount), 0)).where(and_(True, *conds)))
    ).scalar()

    stmt = (
        select(Payment, FeeType.name)
        .join(StudentFee, Payment.student_fee_id == StudentFee.id)
        .join(FeeType, StudentFee.fee_type_id == FeeType.id)
        .where(and_(True, *conds))
        .order_by(Payment.payment_date.desc(), Payment.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await db.execute(stmt)).all()
    items = [
        CollectionItem(**payment_to_response(p).model_dump(), fee_type_name=ft_name)
        for p, ft_name in rows
    ]
    return CollectionsResponse(
        items=items,
        pagination=_pagination(page, page_size, total),
        total_collected=to_decimal(collected),
    )


# --- Student ledger ---
async def get_student_ledger(
    db: AsyncSession,
    student_id: UUID,
    academic_year: Optional[str] = None,
    today: Optional[date] = None,
) -> List[StudentLedgerItem]:
    today = today or date.today()
    stmt = (
        select(StudentFee, FeeType.name, FeeType.code)
        .join(FeeType, StudentFee.fee_type_id == FeeType.id)
        .where(StudentFee.student_id == student_id)
    )
    if academic_year is not None:
        stmt = stmt.where(StudentFee.academic_year == academic_year)
    stmt = stmt.order_by(StudentFee.created_at, StudentFee.id)
    rows = (await db.execute(stmt)).all()
    if not rows:
        return []

    fee_ids = [sf.id for sf, _, _ in rows]
    dues = (
        await db.execute(
            select(MonthlyDue)
            .where(MonthlyDue.student_fee_id.in_(fee_ids))
            .order_by(MonthlyDue.due_date)
        )
    ).scalars().all()
    schedule: Dict[UUID, list] = {}
    for due in dues:
        outstanding: Decimal = to_decimal(due.amount) - to_decimal(due.paid_amount)
        schedule.setdefault(due.student_fee_id, []).append(
            monthly_due_to_response(due, status=effective_status(due.status, outstanding, due.due_date, today))
        )

    return [
        StudentLedgerItem(
            **student_fee_to_response(sf).model_dump(),
            effective_status=effective_status(sf.status, sf.due_amount, sf.due_date, today),
            fee_type_name=ft_name,
            fee_type_code=ft_code,
            monthly_dues=schedule.get(sf.id, []),
        )
        for sf, ft_name, ft_code in rows
    ]
