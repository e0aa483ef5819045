"""Authentication related schemas."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Register request payload."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=100)
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)


class LoginRequest(BaseModel):
    """Login request payload."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Refresh token request."""

    refreshToken: str


class AuthUserInfo(BaseModel):
    """User info included in auth response."""

    id: int
    email: EmailStr
    first_name: str
    last_name: str
    role: str
    profile_image: Optional[str] = None


class AuthResponse(BaseModel):
    """Authentication response."""

    accessToken: str
    refreshToken: str
    tokenType: str
    expiresIn: int
    user: AuthUserInfo
