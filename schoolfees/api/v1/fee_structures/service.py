"""Fee structure service: priced fee types per class and academic year."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import ConflictError, NotFoundError, ValidationError
from schoolfees.core.fee_audit import log_fee_audit
from schoolfees.core.models import FeeStructure, FeeType, StudentFee
from schoolfees.core.money import to_decimal

from .schemas import FeeStructureCreate, FeeStructureResponse, FeeStructureUpdate, FeeTypeSummary

logger = logging.getLogger(__name__)


def _to_response(fs: FeeStructure, assigned_count: int = 0) -> FeeStructureResponse:
    ft = fs.fee_type
    return FeeStructureResponse(
        id=fs.id,
        class_id=fs.class_id,
        fee_type_id=fs.fee_type_id,
        academic_year=fs.academic_year,
        amount=to_decimal(fs.amount),
        frequency=fs.frequency,
        description=fs.description,
        is_active=fs.is_active,
        fee_type=FeeTypeSummary(
            id=ft.id,
            name=ft.name,
            code=ft.code,
            category=ft.category,
            is_recurring=ft.is_recurring,
        ) if ft is not None else None,
        assigned_count=assigned_count,
        created_at=fs.created_at,
        updated_at=fs.updated_at,
    )


async def _assigned_count(db: AsyncSession, fee_structure_id: UUID) -> int:
    return (
        await db.execute(
            select(func.count(StudentFee.id)).where(StudentFee.fee_structure_id == fee_structure_id)
        )
    ).scalar() or 0


async def _get_structure(db: AsyncSession, fee_structure_id: UUID) -> FeeStructure:
    fs = (
        await db.execute(
            select(FeeStructure)
            .where(FeeStructure.id == fee_structure_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if not fs:
        raise NotFoundError("Fee structure not found")
    return fs


async def create_fee_structure(
    db: AsyncSession,
    payload: FeeStructureCreate,
    changed_by: Optional[UUID] = None,
) -> FeeStructureResponse:
    ft = await db.get(FeeType, payload.fee_type_id)
    if not ft or not ft.is_active:
        raise ValidationError("Invalid fee type")
    academic_year = payload.academic_year.strip()
    try:
        fs = FeeStructure(
            class_id=payload.class_id,
            fee_type_id=payload.fee_type_id,
            academic_year=academic_year,
            amount=payload.amount,
            frequency=payload.frequency.value,
            description=(payload.description or "").strip() or None,
            is_active=True,
        )
        db.add(fs)
        await db.flush()
        await log_fee_audit(
            db, "fee_structures", fs.id,
            "CREATE", None,
            {"amount": str(payload.amount), "frequency": fs.frequency, "class_id": str(payload.class_id), "fee_type_id": str(payload.fee_type_id), "academic_year": academic_year},
            changed_by,
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Fee structure already exists for this class and fee type")
    fs = await _get_structure(db, fs.id)
    logger.info("Created fee structure %s for class %s (%s)", fs.id, fs.class_id, academic_year)
    return _to_response(fs)


async def list_fee_structures(
    db: AsyncSession,
    academic_year: str,
    class_id: Optional[UUID] = None,
    fee_type_id: Optional[UUID] = None,
    active_only: bool = True,
) -> List[FeeStructureResponse]:
    count_subq = (
        select(StudentFee.fee_structure_id, func.count(StudentFee.id).label("assigned_count"))
        .group_by(StudentFee.fee_structure_id)
    ).subquery()
    stmt = (
        select(FeeStructure, func.coalesce(count_subq.c.assigned_count, 0))
        .join(FeeType, FeeStructure.fee_type_id == FeeType.id)
        .outerjoin(count_subq, FeeStructure.id == count_subq.c.fee_structure_id)
        .where(FeeStructure.academic_year == academic_year)
    )
    if active_only:
        stmt = stmt.where(FeeStructure.is_active.is_(True))
    if class_id is not None:
        stmt = stmt.where(FeeStructure.class_id == class_id)
    if fee_type_id is not None:
        stmt = stmt.where(FeeStructure.fee_type_id == fee_type_id)
    stmt = stmt.order_by(FeeStructure.class_id, FeeType.name)
    result = await db.execute(stmt)
    return [_to_response(fs, int(count)) for fs, count in result.all()]


async def get_fee_structure(db: AsyncSession, fee_structure_id: UUID) -> FeeStructureResponse:
    fs = await _get_structure(db, fee_structure_id)
    return _to_response(fs, await _assigned_count(db, fs.id))


async def update_fee_structure(
    db: AsyncSession,
    fee_structure_id: UUID,
    payload: FeeStructureUpdate,
    changed_by: Optional[UUID] = None,
) -> FeeStructureResponse:
    """Amount and frequency are frozen once any student has been charged from this structure."""
    fs = await _get_structure(db, fee_structure_id)
    assigned = await _assigned_count(db, fs.id)

    pricing_changed = (
        (payload.amount is not None and to_decimal(payload.amount) != to_decimal(fs.amount))
        or (payload.frequency is not None and payload.frequency.value != fs.frequency)
    )
    if pricing_changed and assigned > 0:
        raise ConflictError(
            f"Cannot change amount or frequency: {assigned} students are assigned this fee"
        )

    old = {"amount": str(fs.amount), "frequency": fs.frequency, "description": fs.description, "is_active": fs.is_active}
    if payload.amount is not None:
        fs.amount = payload.amount
    if payload.frequency is not None:
        fs.frequency = payload.frequency.value
    if payload.description is not None:
        fs.description = payload.description.strip() or None
    if payload.is_active is not None:
        fs.is_active = payload.is_active
    await log_fee_audit(
        db, "fee_structures", fs.id, "UPDATE", old,
        {"amount": str(fs.amount), "frequency": fs.frequency, "description": fs.description, "is_active": fs.is_active},
        changed_by,
    )
    await db.commit()
    fs = await _get_structure(db, fee_structure_id)
    return _to_response(fs, assigned)


async def delete_fee_structure(
    db: AsyncSession,
    fee_structure_id: UUID,
    changed_by: Optional[UUID] = None,
) -> None:
    fs = await _get_structure(db, fee_structure_id)
    assigned = await _assigned_count(db, fs.id)
    if assigned > 0:
        raise ConflictError(f"Cannot delete: {assigned} students are assigned this fee")
    try:
        await log_fee_audit(
            db, "fee_structures", fs.id, "DELETE",
            {"amount": str(fs.amount), "frequency": fs.frequency, "class_id": str(fs.class_id), "fee_type_id": str(fs.fee_type_id), "academic_year": fs.academic_year},
            None,
            changed_by,
        )
        await db.delete(fs)
        await db.commit()
    except IntegrityError:
        # A student fee referencing this structure was committed after the count.
        await db.rollback()
        raise ConflictError("Cannot delete: students are assigned this fee")
    logger.info("Deleted fee structure %s", fee_structure_id)
