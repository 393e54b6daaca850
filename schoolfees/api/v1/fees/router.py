"""Fees router: assign structures to students, record payments, receipts."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.auth.rbac import check_permission
from schoolfees.auth.schemas import CurrentUser
from schoolfees.core.exceptions import ServiceError
from schoolfees.db.session import get_db

from .schemas import (
    AssignClassFeesRequest,
    AssignFeesRequest,
    AssignmentResponse,
    PaymentCreate,
    PaymentRecordedResponse,
    ReceiptResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


# --- Assignment ---
@router.post(
    "/assign",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def assign_fee_to_students(
    payload: AssignFeesRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AssignmentResponse:
    try:
        return await service.assign_to_students(db, payload, changed_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/assign/class",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def assign_fee_to_class(
    payload: AssignClassFeesRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AssignmentResponse:
    try:
        return await service.assign_to_class(db, payload, changed_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Payment ---
@router.post(
    "/payments",
    response_model=PaymentRecordedResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def record_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentRecordedResponse:
    try:
        return await service.record_payment(db, payload, collected_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/payments/{receipt_number}",
    response_model=ReceiptResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_receipt(
    receipt_number: str,
    db: AsyncSession = Depends(get_db),
) -> ReceiptResponse:
    try:
        return await service.get_receipt(db, receipt_number)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
