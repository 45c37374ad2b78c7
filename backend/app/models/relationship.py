"""
Familiarity edge between a newly admitted registrant and one who was
already registered. Written in the same transaction as the registrant.
"""

from sqlalchemy import Column, Integer, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Relationship(Base, TimestampMixin):
    __tablename__ = "relationships"

    id = Column(Integer, primary_key=True, index=True)
    new_registrant_id = Column(Integer, ForeignKey("registrants.id"), nullable=False, index=True)
    known_registrant_id = Column(Integer, ForeignKey("registrants.id"), nullable=False, index=True)
    knows_person = Column(Boolean, nullable=False)

    new_registrant = relationship(
        "Registrant",
        foreign_keys=[new_registrant_id],
        back_populates="known_people",
    )

    __table_args__ = (
        UniqueConstraint("new_registrant_id", "known_registrant_id", name="uq_relationship_pair"),
    )

    def __repr__(self) -> str:
        return (
            f"<Relationship(new={self.new_registrant_id}, known={self.known_registrant_id}, "
            f"knows={self.knows_person})>"
        )
