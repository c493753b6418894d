"""Authentication-related Pydantic models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class UserCreate(BaseModel):
    """Request model for user sign-up.

    Fields are plain strings so that validation errors can be reported
    inline, keyed by field name.
    """

    email: str = ""
    password: str = ""
    full_name: str = ""
    confirm_password: str = ""


class LoginRequest(BaseModel):
    """Request model for sign-in."""

    email: str = ""
    password: str = ""


class UserResponse(BaseModel):
    """Response model for profile data."""

    id: str
    email: str
    full_name: str
    status: Literal["active", "disabled"]
    created_at: datetime


class AuthResponse(BaseModel):
    """Response model for authentication endpoints."""

    access_token: str
    token_type: str
    user: UserResponse
