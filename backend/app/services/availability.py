"""
Availability calculator.

Pure projections over an explicit occupancy snapshot (level -> admitted
count). Nothing is memoized, so the same snapshot always yields the same
figures. Levels missing from the snapshot count as empty.
"""

from dataclasses import dataclass
from typing import Mapping

from app.services.tiers import TierTable

Occupancy = Mapping[int, int]


@dataclass(frozen=True)
class TierAvailability:
    level: int
    name: str
    capacity: int
    occupied: int
    remaining: int
    cumulative_capacity: int
    cumulative_remaining: int


def remaining(table: TierTable, occupancy: Occupancy, level: int) -> int:
    return max(0, table.capacity(level) - occupancy.get(level, 0))


def cumulative_occupancy(table: TierTable, occupancy: Occupancy, level: int) -> int:
    """Admitted count for `level` and every lower tier it can cascade into."""
    return sum(occupancy.get(lvl, 0) for lvl in table.levels_from(level))


def cumulative_remaining(table: TierTable, occupancy: Occupancy, level: int) -> int:
    return max(
        0,
        table.cumulative_capacity(level) - cumulative_occupancy(table, occupancy, level),
    )


def availability_snapshot(table: TierTable, occupancy: Occupancy) -> list[TierAvailability]:
    """Per-tier availability, most privileged tier first."""
    return [
        TierAvailability(
            level=tier.level,
            name=tier.name,
            capacity=tier.capacity,
            occupied=occupancy.get(tier.level, 0),
            remaining=remaining(table, occupancy, tier.level),
            cumulative_capacity=table.cumulative_capacity(tier.level),
            cumulative_remaining=cumulative_remaining(table, occupancy, tier.level),
        )
        for tier in table.tiers
    ]
