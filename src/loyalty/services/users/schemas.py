"""User API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """New user registration."""

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Unique email address")
    password: str = Field(..., description="Plaintext password (8 to 72 bytes)")


class AuthenticationRequest(BaseModel):
    """Credentials exchanged for an access token."""

    email: str = Field(..., description="Registered email address")
    password: str = Field(..., description="Plaintext password")


class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    points: int = Field(..., description="Points balance")
    is_admin: bool = Field(..., description="Administrator flag")
    created_at: datetime | None = Field(None, description="Registration time")


class TokenResponse(BaseModel):
    """Issued bearer token."""

    token: str = Field(..., description="JWT access token")
    expiry: datetime = Field(..., description="Token expiration time")


class RegisterResponse(BaseModel):
    """Registered user and its first access token."""

    user: UserResponse
    authentication_token: TokenResponse


class PointsRequest(BaseModel):
    """Points to credit to the current user."""

    points: int = Field(..., description="Points to add (non-negative)")


class PointsResponse(BaseModel):
    """Current points balance."""

    points: int = Field(..., description="Points balance")
