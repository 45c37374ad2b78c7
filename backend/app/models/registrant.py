"""
Registrant model: one row per successful admission.

Key design decisions:
- Name and email are each globally unique; the unique indexes back up the
  service-level duplicate check when two submissions race
- Both the requested and the effective tier are stored so reporting can
  show how many registrants were seated below their invitation
- Rows are never updated after insert; only the admin reset deletes them
"""

from sqlalchemy import Column, Integer, String, Boolean, CheckConstraint, Index
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Registrant(Base, TimestampMixin):
    __tablename__ = "registrants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(50), nullable=True)
    drinks_alcohol = Column(Boolean, nullable=False, default=False)
    requested_tier = Column(Integer, nullable=False)
    effective_tier = Column(Integer, nullable=False)

    known_people = relationship(
        "Relationship",
        foreign_keys="Relationship.new_registrant_id",
        back_populates="new_registrant",
        lazy="noload",
    )

    __table_args__ = (
        # A registrant may be seated lower than requested, never higher
        CheckConstraint("effective_tier <= requested_tier", name="check_monotone_cascade"),
        Index("ix_registrants_effective_tier", "effective_tier"),
        Index("ix_registrants_requested_tier", "requested_tier"),
    )

    def __repr__(self) -> str:
        return (
            f"<Registrant(id={self.id}, name={self.name}, "
            f"tier={self.effective_tier}/{self.requested_tier})>"
        )
