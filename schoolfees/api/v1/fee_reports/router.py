"""Fee reports router: dues, monthly breakdown, collections, student ledger."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.rbac import check_permission
from schoolfees.core.enums import FeeStatus, PaymentMethod
from schoolfees.db.session import get_db

from .schemas import CollectionsResponse, DuesResponse, MonthlyBreakdownResponse, StudentLedgerItem
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fee-reports"])


@router.get(
    "/dues",
    response_model=DuesResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def query_dues(
    academic_year: str,
    student_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    fee_type_id: Optional[UUID] = Query(None),
    fee_status: Optional[FeeStatus] = Query(None, description="PENDING, PARTIAL, PAID or OVERDUE; unpaid rows by default"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> DuesResponse:
    return await service.query_dues(
        db,
        academic_year,
        student_id=student_id,
        class_id=class_id,
        fee_type_id=fee_type_id,
        status_filter=fee_status,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/dues/monthly",
    response_model=MonthlyBreakdownResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def query_monthly_breakdown(
    student_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    fee_status: Optional[FeeStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> MonthlyBreakdownResponse:
    return await service.query_monthly_breakdown(
        db,
        student_id=student_id,
        class_id=class_id,
        year=year,
        status_filter=fee_status,
    )


@router.get(
    "/collections",
    response_model=CollectionsResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def query_collections(
    student_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    payment_method: Optional[PaymentMethod] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> CollectionsResponse:
    return await service.query_collections(
        db,
        student_id=student_id,
        start_date=start_date,
        end_date=end_date,
        payment_method=payment_method,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/student/{student_id}",
    response_model=List[StudentLedgerItem],
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_student_ledger(
    student_id: UUID,
    academic_year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[StudentLedgerItem]:
    return await service.get_student_ledger(db, student_id, academic_year=academic_year)
