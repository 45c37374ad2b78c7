"""
Admin endpoints: tier report for the dashboard and the full reset.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StorageUnavailable
from app.core.logging import get_logger
from app.core.security import verify_admin_token
from app.db.session import get_db
from app.schemas.tier import ResetResponse, TierReport
from app.services.registration_service import reset_registrations
from app.services.report_service import load_report
from app.services.tiers import TierTable, get_tier_table

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(verify_admin_token)])


@router.get("/tiers", response_model=TierReport)
async def tier_report(
    db: AsyncSession = Depends(get_db),
    table: TierTable = Depends(get_tier_table),
):
    """Seat usage per tier, read fresh from the database on every call."""
    try:
        return await load_report(db, table)
    except SQLAlchemyError as exc:
        logger.error("tier_report_failed", error=str(exc))
        raise StorageUnavailable() from exc


@router.delete("/registrations", response_model=ResetResponse)
async def reset(
    db: AsyncSession = Depends(get_db),
    table: TierTable = Depends(get_tier_table),
):
    """Delete every registrant and relationship and free every seat."""
    deleted = await reset_registrations(db, table)
    return ResetResponse(
        success=True,
        message="Registrations wiped successfully",
        registrants_deleted=deleted,
        timestamp=datetime.now(timezone.utc),
    )
