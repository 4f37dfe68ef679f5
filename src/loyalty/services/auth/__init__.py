"""Authentication services module."""

from loyalty.services.auth.dependencies import (
    ADMIN_ROLE,
    AdminUser,
    AuthenticatedUser,
    CurrentUser,
    get_current_user,
    get_jwt_service,
    require_admin,
)
from loyalty.services.auth.jwt_service import JWTService, TokenPayload
from loyalty.services.auth.passwords import hash_password, verify_password

__all__ = [
    # JWT
    "JWTService",
    "TokenPayload",
    "get_jwt_service",
    # Passwords
    "hash_password",
    "verify_password",
    # Dependencies
    "ADMIN_ROLE",
    "AuthenticatedUser",
    "get_current_user",
    "require_admin",
    # Type aliases
    "CurrentUser",
    "AdminUser",
]
