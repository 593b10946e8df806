from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime


class HouseholdCreate(BaseModel):
    """Schema for creating a new household."""
    name: str = Field(..., min_length=1, max_length=100, description="Household name")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Household name is required")
        return v


class InviteRequest(BaseModel):
    """Schema for inviting a registered user by email."""
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class AcceptInvitationRequest(BaseModel):
    """Schema for accepting an invitation with the emailed token."""
    token: str = Field(..., min_length=1)


class HouseholdMemberResponse(BaseModel):
    """Schema for household member information."""
    id: int
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class HouseholdResponse(BaseModel):
    """Schema for household response."""
    id: int
    uuid: str
    name: str
    created_at: datetime
    members: List[HouseholdMemberResponse] = []

    model_config = ConfigDict(from_attributes=True)


class MyHouseholdResponse(BaseModel):
    """Caller's household, or null when the caller is not in one."""
    household: Optional[HouseholdResponse] = None


class InvitationResponse(BaseModel):
    """Schema returned after an invitation was sent."""
    email: str
    household_id: int
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvitationPreview(BaseModel):
    """What the unauthenticated acceptance page shows."""
    household_name: str
    invited_by: str
    email: str
    expires_at: datetime
