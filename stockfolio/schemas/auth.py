"""Pydantic schemas for authentication endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    """Request schema for registering a user."""

    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    """Request schema for logging in."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Public view of a user (no password hash)."""

    id: str
    username: str
    email: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Bearer token plus the user it was issued for."""

    token: str
    token_type: str = "bearer"
    user: UserResponse
