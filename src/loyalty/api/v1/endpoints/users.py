"""User API endpoints: registration, points, exchange and held vouchers."""

import logging

from fastapi import APIRouter, status

from loyalty.api.v1.dependencies import (
    EntitlementServiceDep,
    ExchangeDep,
    UserServiceDep,
)
from loyalty.services.auth import CurrentUser
from loyalty.services.entitlements import (
    EntitlementListResponse,
    EntitlementResponse,
    RedeemRequest,
    RedeemResponse,
    UseRequest,
    UseResponse,
)
from loyalty.services.exchange import ExchangeRequest, ExchangeResponse
from loyalty.services.users import (
    PointsRequest,
    PointsResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserResponse,
)
from loyalty.services.vouchers import VoucherResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "", response_model=RegisterResponse, status_code=status.HTTP_202_ACCEPTED
)
async def register_user(
    request: RegisterRequest, service: UserServiceDep
) -> RegisterResponse:
    """Register a new user and issue their first access token."""
    user = await service.register(request.name, request.email, request.password)
    token, expiry = service.issue_token(user)
    return RegisterResponse(
        user=UserResponse.model_validate(user),
        authentication_token=TokenResponse(token=token, expiry=expiry),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(user: CurrentUser, service: UserServiceDep) -> UserResponse:
    return UserResponse.model_validate(await service.get_user(user.user_id))


@router.get("/me/points", response_model=PointsResponse)
async def get_points(user: CurrentUser, service: UserServiceDep) -> PointsResponse:
    return PointsResponse(points=await service.get_points(user.user_id))


@router.post("/me/points", response_model=PointsResponse)
async def add_points(
    request: PointsRequest, user: CurrentUser, service: UserServiceDep
) -> PointsResponse:
    """Credit points to the current user.

    Any authenticated user may credit themselves; there is no earning
    workflow behind this route, so deployments that need one must put it
    behind an admin-only gateway.
    """
    balance = await service.add_points(user.user_id, request.points)
    return PointsResponse(points=balance)


@router.post(
    "/me/exchange",
    response_model=ExchangeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def exchange_points(
    request: ExchangeRequest, user: CurrentUser, coordinator: ExchangeDep
) -> ExchangeResponse:
    """Spend points on a new single-use voucher held by the current user.

    Fails without any effect when the balance is too low.
    """
    result = await coordinator.exchange(
        user.user_id,
        request.points,
        description=request.description,
        discount=request.discount,
        is_percentage=request.is_percentage,
        category=request.category,
    )
    return ExchangeResponse(
        voucher=VoucherResponse.model_validate(result.voucher),
        points=result.balance,
    )


@router.get("/me/vouchers", response_model=EntitlementListResponse)
async def list_my_vouchers(
    user: CurrentUser, service: EntitlementServiceDep
) -> EntitlementListResponse:
    """List active vouchers held by the current user.

    Inactive vouchers are dropped from the user's holdings as a side effect.
    """
    entitlements = await service.list_vouchers(user.user_id)
    return EntitlementListResponse(
        vouchers=[
            EntitlementResponse(
                voucher=VoucherResponse.model_validate(e.voucher),
                remaining_uses=e.remaining_uses,
            )
            for e in entitlements
        ]
    )


@router.post(
    "/me/vouchers/redeem",
    response_model=RedeemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def redeem_voucher(
    request: RedeemRequest, user: CurrentUser, service: EntitlementServiceDep
) -> RedeemResponse:
    uses = await service.redeem(user.user_id, request.code, request.uses)
    return RedeemResponse(code=request.code, uses=uses)


@router.post("/me/vouchers/use", response_model=UseResponse)
async def use_voucher(
    request: UseRequest, user: CurrentUser, service: EntitlementServiceDep
) -> UseResponse:
    """Spend one use of a held voucher."""
    remaining = await service.use(user.user_id, request.code)
    return UseResponse(code=request.code, remaining_uses=remaining)
