"""
Seat ledger: persisted per-tier occupancy counters.

The ledger holds one SeatTier row per configured tier. Capacities and names
are copied from the tier table at startup; requests only ever move the
`admitted` counter, and only through `claim_seat`, which is a guarded
compare-and-commit:

    UPDATE seat_tiers
       SET admitted = admitted + 1, version = version + 1
     WHERE level = :level AND version = :seen_version AND admitted < capacity

Zero affected rows means another admission changed the tier after our
snapshot was taken. The caller rolls back, takes a fresh snapshot and
resolves again. The CHECK constraint on the table is the last line of
defence against overselling.
"""

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.seat_tier import SeatTier
from app.services.tiers import TierTable
from app.core.logging import get_logger

logger = get_logger(__name__)


async def sync_tier_rows(db: AsyncSession, table: TierTable) -> None:
    """Create or update ledger rows so they match the configured tiers."""
    await _apply_tier_config(db, table)
    try:
        await db.commit()
    except IntegrityError:
        # Another worker starting at the same time inserted the rows first
        await db.rollback()
        logger.info("seat_tier_sync_retried")
        await _apply_tier_config(db, table)
        await db.commit()


async def _apply_tier_config(db: AsyncSession, table: TierTable) -> None:
    existing = await load_tier_rows(db)

    for tier in table.tiers:
        row = existing.get(tier.level)
        if row is None:
            db.add(SeatTier(level=tier.level, name=tier.name, capacity=tier.capacity, admitted=0, version=1))
            logger.info("seat_tier_created", level=tier.level, name=tier.name, capacity=tier.capacity)
            continue

        if row.name == tier.name and row.capacity == tier.capacity:
            continue
        if row.admitted > tier.capacity:
            logger.error(
                "seat_tier_capacity_below_admitted",
                level=tier.level,
                capacity=tier.capacity,
                admitted=row.admitted,
            )
            continue
        row.name = tier.name
        row.capacity = tier.capacity
        row.version = row.version + 1
        logger.info("seat_tier_updated", level=tier.level, name=tier.name, capacity=tier.capacity)


async def load_tier_rows(db: AsyncSession) -> dict[int, SeatTier]:
    """Fresh read of every ledger row, keyed by level."""
    result = await db.execute(
        select(SeatTier).execution_options(populate_existing=True)
    )
    return {row.level: row for row in result.scalars().all()}


async def load_occupancy(db: AsyncSession) -> dict[int, int]:
    result = await db.execute(select(SeatTier.level, SeatTier.admitted))
    return {level: admitted for level, admitted in result.all()}


async def claim_seat(db: AsyncSession, row: SeatTier) -> bool:
    """Take one seat in `row`'s tier if nobody changed it since it was read."""
    result = await db.execute(
        update(SeatTier)
        .where(
            SeatTier.level == row.level,
            SeatTier.version == row.version,
            SeatTier.admitted < SeatTier.capacity,
        )
        .values(
            admitted=SeatTier.admitted + 1,
            version=SeatTier.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def reset_ledger(db: AsyncSession) -> None:
    """Zero every tier counter. Runs inside the caller's transaction."""
    await db.execute(
        update(SeatTier)
        .values(admitted=0, version=SeatTier.version + 1)
        .execution_options(synchronize_session=False)
    )
