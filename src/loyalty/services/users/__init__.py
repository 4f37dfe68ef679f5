"""User account service module."""

from loyalty.services.users.schemas import (
    AuthenticationRequest,
    PointsRequest,
    PointsResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserResponse,
)
from loyalty.services.users.service import UserService

__all__ = [
    # Schemas
    "AuthenticationRequest",
    "PointsRequest",
    "PointsResponse",
    "RegisterRequest",
    "RegisterResponse",
    "TokenResponse",
    "UserResponse",
    # Service
    "UserService",
]
