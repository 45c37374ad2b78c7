"""
Pydantic schemas for tier availability and the admin tier report.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class TierAvailabilityResponse(BaseModel):
    level: int
    name: str
    capacity: int
    occupied: int
    remaining: int
    cumulative_capacity: int
    cumulative_remaining: int

    model_config = {"from_attributes": True}


class AvailabilityResponse(BaseModel):
    requested_tier: int
    requested_tier_name: str
    available: bool
    effective_tier: Optional[int]
    effective_tier_name: Optional[str]
    downgraded: bool
    tiers: list[TierAvailabilityResponse]
    cached: bool = False


class TierReportRow(BaseModel):
    level: int
    name: str
    effective_count: int
    requested_count: int
    capacity: int
    remaining: int
    percentage_full: float
    cumulative_capacity: int
    cumulative_effective_count: int
    cumulative_remaining: int


class TierReport(BaseModel):
    tiers: list[TierReportRow]
    total_admitted: int
    total_capacity: int
    total_available: int
    total_downgraded: int
    generated_at: datetime


class ResetResponse(BaseModel):
    success: bool
    message: str
    registrants_deleted: int
    timestamp: datetime
