"""
Seat tier ledger: one row per configured priority tier.

Key design decisions:
- `admitted` is the occupancy counter the admission protocol claims seats from
- `version` is bumped on every change and keys the compare-and-commit update
- CHECK constraints are the final safety net against overselling a tier
- Capacity and name are copied from configuration at startup, never edited by requests
"""

from sqlalchemy import Column, Integer, String, CheckConstraint

from app.db.base import Base, TimestampMixin


class SeatTier(Base, TimestampMixin):
    __tablename__ = "seat_tiers"

    level = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=False)
    admitted = Column(Integer, nullable=False, default=0)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="check_tier_capacity_non_negative"),
        CheckConstraint("admitted >= 0", name="check_tier_admitted_non_negative"),
        CheckConstraint("admitted <= capacity", name="check_tier_admitted_lte_capacity"),
    )

    def __repr__(self) -> str:
        return f"<SeatTier(level={self.level}, name={self.name}, admitted={self.admitted}/{self.capacity})>"
