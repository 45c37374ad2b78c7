"""
Downgrade resolver.

Given a requested level and an occupancy snapshot, walk the tiers from the
requested level downward and stop at the first one with a free seat:

    start(requested) --remaining > 0--> ADMITTED(level)
          |
          +--full--> next lower tier --...--> lowest full --> REJECTED

The walk never moves upward, so a registrant can be seated lower than their
invitation allows but never higher. A requested level that is not itself
configured starts at the nearest configured tier below it.

Used twice: on the read path as an advisory preview for the form, and
inside the commit protocol against a fresh snapshot, where it is
authoritative.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from app.services.availability import Occupancy, remaining
from app.services.tiers import TierTable


class ResolutionState(str, enum.Enum):
    ADMITTED = "admitted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Resolution:
    state: ResolutionState
    requested_level: int
    level: Optional[int] = None
    visited: tuple[int, ...] = ()

    @property
    def admitted(self) -> bool:
        return self.state is ResolutionState.ADMITTED

    @property
    def downgraded(self) -> bool:
        return self.admitted and self.level < self.requested_level


def resolve(table: TierTable, requested_level: int, occupancy: Occupancy) -> Resolution:
    visited = []
    for level in table.levels_from(requested_level):
        visited.append(level)
        if remaining(table, occupancy, level) > 0:
            return Resolution(
                state=ResolutionState.ADMITTED,
                requested_level=requested_level,
                level=level,
                visited=tuple(visited),
            )
    return Resolution(
        state=ResolutionState.REJECTED,
        requested_level=requested_level,
        visited=tuple(visited),
    )
