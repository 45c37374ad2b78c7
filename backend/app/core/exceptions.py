"""
Admission error taxonomy and the HTTP handlers that translate it.

Each error kind maps to exactly one user-facing message and a stable
`error` code. Internal details (SQL, driver messages) stay in the logs.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger(__name__)


class AdmissionError(Exception):
    """Base class for failures of the admission commit protocol."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "admission_error"
    message = "Registration failed."

    def to_payload(self) -> dict:
        return {"error": self.code, "detail": self.message}


class DuplicateIdentity(AdmissionError):
    """Name and/or email already belongs to an admitted registrant."""

    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_identity"
    message = "Someone is already registered with this name or email."

    def __init__(self, fields: tuple[str, ...]):
        self.fields = fields
        super().__init__(f"duplicate identity: {', '.join(fields)}")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["fields"] = list(self.fields)
        return payload


class FullyBooked(AdmissionError):
    """No tier from the requested level downward has a free seat."""

    status_code = status.HTTP_409_CONFLICT
    code = "fully_booked"
    message = "Sorry, the party is fully booked."

    def __init__(self, requested_level: int):
        self.requested_level = requested_level
        super().__init__(f"fully booked from tier {requested_level} down")


class StorageUnavailable(AdmissionError):
    """The database failed for an infrastructure reason."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "storage_unavailable"
    message = "Failed to save. Please try again."


async def admission_error_handler(request: Request, exc: AdmissionError) -> JSONResponse:
    logger.info("admission_error_response", error=exc.code, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AdmissionError, admission_error_handler)
