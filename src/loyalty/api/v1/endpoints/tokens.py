"""Authentication token endpoints."""

import logging

from fastapi import APIRouter, status

from loyalty.api.v1.dependencies import UserServiceDep
from loyalty.services.users import AuthenticationRequest, TokenResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tokens", tags=["Authentication"])


@router.post(
    "/authentication",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_authentication_token(
    request: AuthenticationRequest, service: UserServiceDep
) -> TokenResponse:
    """Exchange email and password for a bearer access token."""
    user = await service.authenticate(request.email, request.password)
    token, expiry = service.issue_token(user)
    logger.info(f"Issued access token for user {user.id}")
    return TokenResponse(token=token, expiry=expiry)
