"""Authentication dependencies for FastAPI."""

import logging
from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from loyalty.core.exceptions import InvalidCredentialsError
from loyalty.services.auth.jwt_service import JWTService

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


def get_jwt_service(request: Request) -> JWTService:
    """JWT service built for this application at startup."""
    return request.app.state.jwt_service


@dataclass(frozen=True)
class AuthenticatedUser:
    """Caller identity taken from a verified token."""

    user_id: str
    roles: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
) -> AuthenticatedUser:
    """Resolve the bearer token into the calling user.

    @raises InvalidCredentialsError - token missing, malformed or expired
    """
    if not credentials:
        raise InvalidCredentialsError("you must be authenticated to access this resource")

    payload = jwt_service.authenticate(credentials.credentials)
    if not payload:
        raise InvalidCredentialsError("invalid or missing authentication token")

    return AuthenticatedUser(user_id=payload.sub, roles=payload.roles)


async def require_admin(
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
) -> AuthenticatedUser:
    if not user.is_admin:
        logger.warning(f"Non-admin user {user.user_id} attempted an admin action")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="your user account doesn't have the necessary permissions",
        )
    return user


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]
