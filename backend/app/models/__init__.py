from app.models.registrant import Registrant
from app.models.relationship import Relationship
from app.models.seat_tier import SeatTier

__all__ = ["Registrant", "Relationship", "SeatTier"]
