"""
Tier reporting view for the admin dashboard.

Counts are read straight from the registrants table on every request
(grouped by effective and by requested tier); nothing is cached. The
aggregation itself is a pure function so it can be tested without a
database.
"""

from datetime import datetime, timezone
from typing import Mapping

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.registrant import Registrant
from app.schemas.tier import TierReport, TierReportRow
from app.services.availability import cumulative_occupancy, cumulative_remaining, remaining
from app.services.tiers import TierTable


def percentage_full(count: int, capacity: int) -> float:
    if capacity <= 0:
        return 0.0
    return round(count / capacity * 100, 1)


def build_report(
    table: TierTable,
    effective_counts: Mapping[int, int],
    requested_counts: Mapping[int, int],
    total_downgraded: int = 0,
) -> TierReport:
    rows = []
    for tier in table.tiers:
        count = effective_counts.get(tier.level, 0)
        rows.append(
            TierReportRow(
                level=tier.level,
                name=tier.name,
                effective_count=count,
                requested_count=requested_counts.get(tier.level, 0),
                capacity=tier.capacity,
                remaining=remaining(table, effective_counts, tier.level),
                percentage_full=percentage_full(count, tier.capacity),
                cumulative_capacity=table.cumulative_capacity(tier.level),
                cumulative_effective_count=cumulative_occupancy(table, effective_counts, tier.level),
                cumulative_remaining=cumulative_remaining(table, effective_counts, tier.level),
            )
        )

    total_admitted = sum(effective_counts.values())
    total_capacity = table.total_capacity
    return TierReport(
        tiers=rows,
        total_admitted=total_admitted,
        total_capacity=total_capacity,
        total_available=max(0, total_capacity - total_admitted),
        total_downgraded=total_downgraded,
        generated_at=datetime.now(timezone.utc),
    )


async def _count_by(db: AsyncSession, column) -> dict[int, int]:
    result = await db.execute(select(column, func.count()).group_by(column))
    return {level: count for level, count in result.all()}


async def load_report(db: AsyncSession, table: TierTable) -> TierReport:
    effective_counts = await _count_by(db, Registrant.effective_tier)
    requested_counts = await _count_by(db, Registrant.requested_tier)
    downgraded = (
        await db.execute(
            select(func.count())
            .select_from(Registrant)
            .where(Registrant.effective_tier < Registrant.requested_tier)
        )
    ).scalar_one()
    return build_report(table, effective_counts, requested_counts, downgraded)
