"""API v1 module."""

from fastapi import APIRouter

from loyalty.api.v1.endpoints import health, tokens, users, vouchers

api_router = APIRouter()

# Include routers
api_router.include_router(users.router)
api_router.include_router(tokens.router)
api_router.include_router(vouchers.router)
api_router.include_router(health.router)
