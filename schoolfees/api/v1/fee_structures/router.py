"""Fee structures router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.auth.rbac import check_permission
from schoolfees.auth.schemas import CurrentUser
from schoolfees.core.exceptions import ServiceError
from schoolfees.db.session import get_db

from .schemas import FeeStructureCreate, FeeStructureResponse, FeeStructureUpdate
from . import service

router = APIRouter(prefix="/api/v1/fee-structures", tags=["fee-structures"])


@router.post(
    "",
    response_model=FeeStructureResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def create_fee_structure(
    payload: FeeStructureCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureResponse:
    try:
        return await service.create_fee_structure(db, payload, changed_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[FeeStructureResponse],
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def list_fee_structures(
    academic_year: str,
    class_id: Optional[UUID] = Query(None),
    fee_type_id: Optional[UUID] = Query(None),
    active_only: bool = Query(True, description="Return only active structures by default"),
    db: AsyncSession = Depends(get_db),
) -> List[FeeStructureResponse]:
    return await service.list_fee_structures(
        db,
        academic_year,
        class_id=class_id,
        fee_type_id=fee_type_id,
        active_only=active_only,
    )


@router.get(
    "/{fee_structure_id}",
    response_model=FeeStructureResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_fee_structure(
    fee_structure_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> FeeStructureResponse:
    try:
        return await service.get_fee_structure(db, fee_structure_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch(
    "/{fee_structure_id}",
    response_model=FeeStructureResponse,
    dependencies=[Depends(check_permission("fees", "update"))],
)
async def update_fee_structure(
    fee_structure_id: UUID,
    payload: FeeStructureUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeStructureResponse:
    try:
        return await service.update_fee_structure(
            db, fee_structure_id, payload, changed_by=current_user.id
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{fee_structure_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(check_permission("fees", "delete"))],
)
async def delete_fee_structure(
    fee_structure_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        await service.delete_fee_structure(db, fee_structure_id, changed_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
