"""
Audit logging for fee catalog, ledger and payment changes. Call on every financial write.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.models import FeeAuditLog


async def log_fee_audit(
    db: AsyncSession,
    reference_table: str,
    reference_id: UUID,
    action_type: str,
    old_value: Optional[dict],
    new_value: Optional[dict],
    changed_by: Optional[UUID],
) -> None:
    """Append one audit entry to the caller's transaction. Caller must commit."""
    log = FeeAuditLog(
        reference_table=reference_table,
        reference_id=reference_id,
        action_type=action_type,
        old_value=old_value,
        new_value=new_value,
        changed_by=changed_by,
    )
    db.add(log)
