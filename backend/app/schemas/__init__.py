from app.schemas.registration import RegistrationCreate, RegistrationResponse, RegistrantSummary
from app.schemas.tier import (
    AvailabilityResponse,
    ResetResponse,
    TierAvailabilityResponse,
    TierReport,
    TierReportRow,
)

__all__ = [
    "RegistrationCreate", "RegistrationResponse", "RegistrantSummary",
    "AvailabilityResponse", "TierAvailabilityResponse",
    "TierReport", "TierReportRow", "ResetResponse",
]
