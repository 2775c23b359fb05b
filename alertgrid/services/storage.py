"""Batch writes to the grid tables."""

import logging

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alertgrid.database import Base

logger = logging.getLogger(__name__)


async def bulk_insert(
    session_maker: async_sessionmaker[AsyncSession],
    model: type[Base],
    rows: list[dict],
) -> int:
    """Insert all rows in a single transaction. Returns the number of rows written.

    The transaction is rolled back and the error re-raised if any row fails.
    """
    if not rows:
        return 0

    async with session_maker() as db:
        try:
            await db.execute(insert(model), rows)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    logger.debug(f"Inserted {len(rows)} rows into {model.__tablename__}")
    return len(rows)
