"""
Create any missing ledger tables in the connected database.

Run once per environment (safe to re-run):
  python -m schoolfees.db.schema_check
"""
import asyncio
import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import schoolfees.core.models  # noqa: F401  registers tables on Base.metadata
from schoolfees.core.logging_config import configure_logging
from schoolfees.db.session import Base, engine

logger = logging.getLogger(__name__)


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """Create tables missing from the database. Existing tables are not altered. Returns the names created."""
    async with db_engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        missing = [t.name for t in Base.metadata.sorted_tables if t.name not in existing]
        await conn.run_sync(Base.metadata.create_all)

    if missing:
        logger.info("Created missing tables: %s", ", ".join(missing))
    else:
        logger.info("All ledger tables already exist in the database.")
    return missing


async def main() -> None:
    configure_logging()
    await ensure_tables(engine)


if __name__ == "__main__":
    asyncio.run(main())
