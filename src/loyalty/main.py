"""FastAPI application factory and main entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from loyalty import __version__
from loyalty.api.errors import register_exception_handlers
from loyalty.api.v1 import api_router
from loyalty.core.config import Settings, get_settings
from loyalty.infrastructure.database import (
    create_async_db_engine,
    create_session_factory,
    create_tables,
)
from loyalty.repositories import UnitOfWorkFactory, sqlalchemy_unit_of_work_factory
from loyalty.services.auth import JWTService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup/shutdown events."""
    # Startup
    settings: Settings = app.state.settings
    engine = None

    if app.state.uow_factory is None:
        engine = create_async_db_engine(settings)
        if settings.db_create_tables:
            await create_tables(engine)
        app.state.uow_factory = sqlalchemy_unit_of_work_factory(
            create_session_factory(engine), timeout=settings.db_operation_timeout
        )
        logger.info("Database storage initialised")

    yield

    # Shutdown
    if engine is not None:
        await engine.dispose()


def create_app(
    settings: Settings | None = None,
    uow_factory: UnitOfWorkFactory | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    @param settings - Settings to use instead of the environment
    @param uow_factory - Storage to use instead of the configured database
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Loyalty points and voucher API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.uow_factory = uow_factory
    app.state.jwt_service = JWTService.from_settings(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    register_routes(app, settings)

    return app


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register all application routes."""
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.environment,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
