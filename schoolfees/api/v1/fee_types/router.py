"""Fee types router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.auth.rbac import check_permission
from schoolfees.auth.schemas import CurrentUser
from schoolfees.core.enums import FeeCategory
from schoolfees.core.exceptions import ServiceError
from schoolfees.db.session import get_db

from .schemas import FeeTypeCreate, FeeTypeResponse
from . import service

router = APIRouter(prefix="/api/v1/fee-types", tags=["fee-types"])


@router.post(
    "",
    response_model=FeeTypeResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def create_fee_type(
    payload: FeeTypeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeTypeResponse:
    try:
        return await service.create_fee_type(db, payload, changed_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[FeeTypeResponse],
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def list_fee_types(
    category: Optional[FeeCategory] = Query(None),
    is_recurring: Optional[bool] = Query(None),
    active_only: bool = Query(True, description="Return only active fee types by default"),
    db: AsyncSession = Depends(get_db),
) -> List[FeeTypeResponse]:
    return await service.list_fee_types(
        db, category=category, is_recurring=is_recurring, active_only=active_only
    )


@router.get(
    "/{fee_type_id}",
    response_model=FeeTypeResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_fee_type(
    fee_type_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> FeeTypeResponse:
    try:
        return await service.get_fee_type(db, fee_type_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
