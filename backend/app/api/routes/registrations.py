"""
Registration endpoints: availability preview, registrant list, submission.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.registration import RegistrationCreate, RegistrationResponse, RegistrantSummary
from app.schemas.tier import AvailabilityResponse, TierAvailabilityResponse
from app.services.payment import build_swish_url
from app.services.registration_service import admit_registrant, list_registrants, preview_admission
from app.services.tiers import TierTable, get_tier_table

router = APIRouter(prefix="/registrations", tags=["Registrations"])


@router.get("/availability", response_model=AvailabilityResponse)
async def availability(
    code: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
    table: TierTable = Depends(get_tier_table),
):
    """
    Preview which tier an invitation code would be seated in right now.

    Advisory only: may be served from a cache that is a few seconds stale.
    The submission endpoint re-checks availability before seating anyone.
    """
    requested, resolution, tiers, cached = await preview_admission(db, table, code)
    return AvailabilityResponse(
        requested_tier=requested,
        requested_tier_name=table.name(requested),
        available=resolution.admitted,
        effective_tier=resolution.level,
        effective_tier_name=table.name(resolution.level) if resolution.admitted else None,
        downgraded=resolution.downgraded,
        tiers=[TierAvailabilityResponse.model_validate(t) for t in tiers],
        cached=cached,
    )


@router.get("/", response_model=list[RegistrantSummary])
async def list_registrants_endpoint(db: AsyncSession = Depends(get_db)):
    """Names of everyone registered so far, for the "do you know them?" list."""
    return await list_registrants(db)


@router.post("/", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: RegistrationCreate,
    db: AsyncSession = Depends(get_db),
    table: TierTable = Depends(get_tier_table),
):
    """
    Register for the party.

    The registrant is seated in the tier their invitation code grants, or the
    next lower tier with room. Returns 409 when the name or email is taken or
    when every tier from the requested one down is full.
    """
    registrant, resolution = await admit_registrant(db, table, registration)
    return RegistrationResponse(
        id=registrant.id,
        name=registrant.name,
        email=registrant.email,
        requested_tier=registrant.requested_tier,
        requested_tier_name=table.name(registrant.requested_tier),
        effective_tier=registrant.effective_tier,
        effective_tier_name=table.name(registrant.effective_tier),
        downgraded=resolution.downgraded,
        created_at=registrant.created_at,
        payment_url=build_swish_url(registrant.drinks_alcohol),
    )
