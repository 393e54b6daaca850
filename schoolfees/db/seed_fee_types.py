"""
Seed script to populate the fee_types catalog.

Inserts the standard fee types; existing codes are left untouched so the script can be re-run.
"""
import asyncio
import logging
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.enums import FeeCategory
from schoolfees.core.logging_config import configure_logging
from schoolfees.core.models import FeeType
from schoolfees.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)

# (code, name, category, is_recurring, description)
DEFAULT_FEE_TYPES: List[Tuple[str, str, FeeCategory, bool, str]] = [
    ("TUITION", "Tuition Fee", FeeCategory.ACADEMIC, True, "Monthly tuition fee for regular classes"),
    ("ADMISSION", "Admission Fee", FeeCategory.ACADEMIC, False, "One-time admission fee for new students"),
    ("EXAM", "Exam Fee", FeeCategory.ACADEMIC, False, "Examination fee for term exams"),
    ("LIBRARY", "Library Fee", FeeCategory.FACILITY, False, "Annual library maintenance and book fee"),
    ("LAB", "Lab Fee", FeeCategory.FACILITY, False, "Laboratory equipment and materials fee"),
    ("SPORTS", "Sports Fee", FeeCategory.FACILITY, False, "Sports activities and equipment fee"),
    ("TRANSPORT", "Transport Fee", FeeCategory.TRANSPORT, True, "Monthly transportation fee"),
    ("COMPUTER", "Computer Lab Fee", FeeCategory.FACILITY, False, "Computer lab usage and maintenance fee"),
    ("DEVELOPMENT", "Development Fee", FeeCategory.OTHER, False, "School development and infrastructure fee"),
    ("LATE_FEE", "Late Fee", FeeCategory.OTHER, False, "Penalty for late payment"),
    ("ANNUAL", "Annual Fee", FeeCategory.ACADEMIC, False, "Annual charges for the academic year"),
    ("ACTIVITY", "Activity Fee", FeeCategory.OTHER, False, "Co-curricular and extra-curricular activities fee"),
]


async def seed_fee_types(db: AsyncSession) -> int:
    """Insert missing default fee types. Returns how many were created."""
    existing = set((await db.execute(select(FeeType.code))).scalars().all())
    created = 0
    for code, name, category, is_recurring, description in DEFAULT_FEE_TYPES:
        if code in existing:
            continue
        db.add(
            FeeType(
                code=code,
                name=name,
                category=category.value,
                is_recurring=is_recurring,
                description=description,
                is_active=True,
            )
        )
        created += 1
    await db.commit()
    logger.info("Fee types created: %d, already present: %d", created, len(DEFAULT_FEE_TYPES) - created)
    return created


async def main() -> None:
    """Main entry point for the seed script."""
    configure_logging()
    async with AsyncSessionLocal() as db:
        try:
            await seed_fee_types(db)
        except Exception:
            logger.exception("Error seeding fee types")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())
