"""Auth-related schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


class SignupRequest(BaseModel):
    """Account creation request."""

    name: str = Field(..., min_length=2, max_length=100, examples=["Asha Rao"])
    email: EmailStr = Field(..., examples=["asha@example.com"])
    password: str = Field(..., min_length=8, max_length=100)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    """Login request schema."""

    email: str = Field(..., min_length=1, max_length=255, examples=["asha@example.com"])
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(BaseModel):
    """Public view of an account."""

    id: int
    name: str
    email: str
    role: str = "user"
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResponse(BaseModel):
    """Returned by signup and login."""

    token: str = Field(..., description="JWT bearer token")
    token_type: str = Field(default="bearer")
    user: UserResponse


class ProfileResponse(BaseModel):
    user: UserResponse
