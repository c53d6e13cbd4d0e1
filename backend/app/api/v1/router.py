"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, admin, rate_settings, trips, orders, invoices, dashboard, routing
)

router = APIRouter()

# Authentication (profile only, sign-in is delegated)
router.include_router(auth.router)

# Admin endpoints
router.include_router(admin.router)

# Pricing
router.include_router(rate_settings.router)
router.include_router(trips.router)

# Billing
router.include_router(orders.router)
router.include_router(invoices.router)

# Statistics
router.include_router(dashboard.router)

# Mapping provider
router.include_router(routing.router)
