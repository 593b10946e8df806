from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime


class UserBase(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserCreate(UserBase):
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)


class PasswordChange(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=256)


class ResetPasswordRequest(BaseModel):
    user_id: int
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    uuid: str
    email: str
    username: str
    household_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: str
    expires_in: int


class MessageResponse(BaseModel):
    message: str
