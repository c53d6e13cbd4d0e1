"""
FastAPI Application Entry Point.

This is the main application file for the Transit Fare Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from backend.app.core.config import settings
from backend.app.api.v1.router import router as api_v1_router
from backend.app.db.session import engine, Base
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.core.redis_client import close_redis, ping_redis
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.app.models.profile import Profile
from backend.app.models.audit_log import AuditLog
from backend.app.models.company_settings import CompanySettings
from backend.app.models.surcharge_factor import SurchargeFactor
from backend.app.models.discount import Discount
from backend.app.models.trip import Trip
from backend.app.models.trip_adjustment import TripAdjustment
from backend.app.models.order import Order, OrderItem
from backend.app.models.invoice import Invoice

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates missing database tables on startup.
    2. Closes the Redis connection pool on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if not await ping_redis():
        logger.warning("Redis unreachable, dashboard statistics will not be cached")
    yield
    await close_redis()
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Fare calculation, trip billing and invoicing for ground transportation",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Transit Fare Backend API",
        "docs": "/docs",
        "health": "/health",
    }
