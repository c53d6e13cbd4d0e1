"""
Dashboard API Endpoints.

Read-only statistics. Users get figures for their own records; admins
get company-wide figures.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.config import settings
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import OwnershipGuard
from backend.app.core.redis_client import get_redis
from backend.app.db.session import get_db
from backend.app.schemas.analytics import DashboardOverview, MetricPoint, PeriodSummary
from backend.app.services.analytics import DashboardService
from backend.app.services.cache import CacheService, DASHBOARD_NAMESPACE
from backend.app.utils.periods import Period

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])
ownership_guard = OwnershipGuard()


@router.get("/overview", response_model=DashboardOverview)
async def get_overview(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Totals for the dashboard cards.

    Cached briefly; any trip, order or invoice write refreshes it.
    """
    user_scope = ownership_guard.filter_by_ownership(current_user)
    cache_key = await CacheService.build_key(redis, DASHBOARD_NAMESPACE, "overview", user_scope or "all")

    cached = await CacheService.get(redis, cache_key)
    if cached:
        return DashboardOverview(**cached)

    overview = await DashboardService.get_overview(db, user_scope)
    await CacheService.set(redis, cache_key, overview.model_dump(), ttl_seconds=settings.stats_cache_ttl_seconds)
    return overview


@router.get("/summary", response_model=PeriodSummary)
async def get_period_summary(
    period: Period = Query(Period.MONTH, description="Calendar period containing now"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await DashboardService.get_period_summary(
        db, period, user_id=ownership_guard.filter_by_ownership(current_user)
    )


@router.get("/trips-by-day", response_model=List[MetricPoint])
async def get_trips_by_day(
    days: int = Query(7, ge=1, le=90),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await DashboardService.get_trips_by_day(
        db, days, user_id=ownership_guard.filter_by_ownership(current_user)
    )


@router.get("/revenue-by-month", response_model=List[MetricPoint])
async def get_revenue_by_month(
    months: int = Query(6, ge=1, le=36),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await DashboardService.get_revenue_by_month(
        db, months, user_id=ownership_guard.filter_by_ownership(current_user)
    )
