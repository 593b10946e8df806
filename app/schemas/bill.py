from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import date, datetime

BILL_NAME_MAX_LENGTH = 200


class BillInput(BaseModel):
    """Fields accepted when creating or updating a bill."""
    name: str
    amount: float = Field(..., ge=0)
    date: date
    amount_over_minimum: float = Field(0, ge=0)
    is_paid: bool = False
    paid_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Bill name is required")
        if len(v) > BILL_NAME_MAX_LENGTH:
            raise ValueError(f"Bill name cannot exceed {BILL_NAME_MAX_LENGTH} characters")
        return v


class BillResponse(BaseModel):
    id: int
    uuid: str
    name: str
    amount: float
    date: date
    amount_over_minimum: float
    is_paid: bool
    paid_date: Optional[date] = None
    user_id: int
    household_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
