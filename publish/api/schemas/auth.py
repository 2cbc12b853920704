"""Pydantic schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import EmailStr, Field
from publish.api.schemas.common import CamelModel
from publish.api.schemas.users import UserResponse


class RegisterRequest(CamelModel):
    """Request schema for account registration."""

    username: str = Field(..., min_length=3, max_length=255, description="Unique username")
    email: EmailStr = Field(..., description="Unique email address")
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 characters)",
    )


class LoginRequest(CamelModel):
    """Request schema for login; ``identifier`` is a username or an email."""

    identifier: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., description="Account password")


class AuthResponse(CamelModel):
    """Bearer token plus the account it was issued for."""

    jwt: str = Field(..., description="Signed bearer token")
    user: UserResponse
