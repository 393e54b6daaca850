"""Fee type service layer."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import ConflictError, NotFoundError
from schoolfees.core.fee_audit import log_fee_audit
from schoolfees.core.models import FeeType
from schoolfees.core.enums import FeeCategory

from .schemas import FeeTypeCreate, FeeTypeResponse

logger = logging.getLogger(__name__)


def _to_response(ft: FeeType) -> FeeTypeResponse:
    return FeeTypeResponse(
        id=ft.id,
        name=ft.name,
        code=ft.code,
        category=ft.category,
        is_recurring=ft.is_recurring,
        description=ft.description,
        is_active=ft.is_active,
        created_at=ft.created_at,
        updated_at=ft.updated_at,
    )


async def create_fee_type(
    db: AsyncSession,
    payload: FeeTypeCreate,
    changed_by: Optional[UUID] = None,
) -> FeeTypeResponse:
    code = payload.code.strip().upper()[:50]
    category = payload.category.value if isinstance(payload.category, FeeCategory) else str(payload.category)
    try:
        ft = FeeType(
            name=payload.name.strip(),
            code=code,
            category=category.strip().upper(),
            is_recurring=payload.is_recurring,
            description=(payload.description or "").strip() or None,
            is_active=True,
        )
        db.add(ft)
        await db.flush()
        await log_fee_audit(
            db, "fee_types", ft.id, "CREATE", None,
            {"code": code, "category": ft.category, "is_recurring": ft.is_recurring},
            changed_by,
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Fee type with this code already exists")
    await db.refresh(ft)
    logger.info("Created fee type %s (recurring=%s)", ft.code, ft.is_recurring)
    return _to_response(ft)


async def list_fee_types(
    db: AsyncSession,
    category: Optional[FeeCategory] = None,
    is_recurring: Optional[bool] = None,
    active_only: bool = True,
) -> List[FeeTypeResponse]:
    stmt = select(FeeType)
    if active_only:
        stmt = stmt.where(FeeType.is_active.is_(True))
    if category is not None:
        stmt = stmt.where(FeeType.category == FeeCategory(category).value)
    if is_recurring is not None:
        stmt = stmt.where(FeeType.is_recurring.is_(is_recurring))
    stmt = stmt.order_by(FeeType.name)
    result = await db.execute(stmt)
    return [_to_response(ft) for ft in result.scalars().all()]


async def get_fee_type(db: AsyncSession, fee_type_id: UUID) -> FeeTypeResponse:
    ft = await db.get(FeeType, fee_type_id)
    if not ft:
        raise NotFoundError("Fee type not found")
    return _to_response(ft)
