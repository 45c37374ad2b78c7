"""
Tier table: the static seat configuration.

Levels are integers where a higher number means a more privileged tier.
Cumulative figures run in the cascade direction: a tier's cumulative
capacity covers the tier itself plus every lower-privilege tier, because
that is where overflow from it can land.

Everything here is pure and deterministic. Lookups never fail; an unknown
invitation code degrades to the default tier. Only an inconsistent
configuration raises, and it does so at construction time.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

from app.core.config import get_settings


@dataclass(frozen=True)
class Tier:
    level: int
    name: str
    capacity: int


class TierTable:
    def __init__(
        self,
        capacities: Mapping[int, int],
        codes: Optional[Mapping[str, int]] = None,
        names: Optional[Mapping[int, str]] = None,
        default_level: Optional[int] = None,
    ):
        if not capacities:
            raise ValueError("at least one seat tier must be configured")
        for level, capacity in capacities.items():
            if capacity < 0:
                raise ValueError(f"tier {level} has negative capacity {capacity}")

        names = names or {}
        self._tiers = tuple(
            Tier(level=level, name=names.get(level, f"Tier {level}"), capacity=capacities[level])
            for level in sorted(capacities, reverse=True)
        )
        self._by_level = {tier.level: tier for tier in self._tiers}

        self._codes = dict(codes or {})
        for code, level in self._codes.items():
            if level not in self._by_level:
                raise ValueError(f"invitation code {code!r} maps to unknown tier {level}")

        if default_level is None:
            default_level = self.lowest
        elif default_level not in self._by_level:
            raise ValueError(f"default tier {default_level} is not configured")
        self.default_level = default_level

    @property
    def tiers(self) -> tuple[Tier, ...]:
        """Tiers ordered most privileged first."""
        return self._tiers

    @property
    def levels(self) -> list[int]:
        return [tier.level for tier in self._tiers]

    @property
    def highest(self) -> int:
        return self._tiers[0].level

    @property
    def lowest(self) -> int:
        return self._tiers[-1].level

    @property
    def total_capacity(self) -> int:
        return sum(tier.capacity for tier in self._tiers)

    def capacity(self, level: int) -> int:
        tier = self._by_level.get(level)
        return tier.capacity if tier else 0

    def name(self, level: int) -> str:
        tier = self._by_level.get(level)
        return tier.name if tier else f"Tier {level}"

    def priority_for_code(self, code: Optional[str]) -> int:
        """Map an invitation code to a tier level, falling back to the default."""
        if code is None:
            return self.default_level
        code = code.strip()
        if not code:
            return self.default_level
        return self._codes.get(code, self.default_level)

    def levels_from(self, level: int) -> list[int]:
        """Configured levels at or below `level`, most privileged first."""
        return [tier.level for tier in self._tiers if tier.level <= level]

    def cumulative_capacity(self, level: int) -> int:
        return sum(self.capacity(lvl) for lvl in self.levels_from(level))

    def __repr__(self) -> str:
        layout = ", ".join(f"{t.name}={t.capacity}" for t in self._tiers)
        return f"<TierTable({layout})>"


@lru_cache()
def get_tier_table() -> TierTable:
    settings = get_settings()
    return TierTable(
        capacities=settings.SEAT_TIERS,
        codes=settings.INVITATION_CODES,
        names=settings.TIER_NAMES,
        default_level=settings.DEFAULT_TIER,
    )
