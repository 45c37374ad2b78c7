"""
Pydantic schemas for registration request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


class RegistrationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    invitation_code: Optional[str] = Field(None, max_length=100)
    drinks_alcohol: bool = False
    known_registrant_ids: list[int] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.strip().lower()


class RegistrationResponse(BaseModel):
    id: int
    name: str
    email: str
    requested_tier: int
    requested_tier_name: str
    effective_tier: int
    effective_tier_name: str
    downgraded: bool
    created_at: datetime
    payment_url: str


class RegistrantSummary(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}
