"""
Trip API Endpoints.

Fare quotes and trip records. Users see their own trips; admins see all.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import OwnershipGuard
from backend.app.core.redis_client import get_redis
from backend.app.db.session import get_db
from backend.app.domain.billing.billing_service import BillingService
from backend.app.models.trip import Trip
from backend.app.schemas.trip import (
    FareQuoteRequest, FareBreakdownResponse, TripCreate, TripResponse, TripListResponse
)
from backend.app.services.analytics import DashboardService
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.services.cache import CacheService
from backend.app.services.documents import build_trip_report, render_trip_report_pdf
from backend.app.utils.periods import Period, get_period_range, to_local_naive

router = APIRouter(prefix="/trips", tags=["Trips"])
ownership_guard = OwnershipGuard()


@router.post("/quote", response_model=FareBreakdownResponse)
async def quote_fare(
    quote_request: FareQuoteRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Price a measured route with the current rate tables.

    Nothing is recorded. Selected surcharges apply before selected
    discounts, each group in its configured order.
    """
    breakdown = await BillingService.quote_fare(db, quote_request)
    return FareBreakdownResponse(**breakdown.to_dict())


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def record_trip(
    trip_data: TripCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Record a priced trip for the authenticated user.

    The fare is recomputed server-side and stored with an itemized
    snapshot of the applied surcharges and discounts.
    """
    trip = await BillingService.record_trip(db, current_user["user_id"], trip_data)
    await db.commit()
    await db.refresh(trip)

    await log_user_action(
        db, current_user, AuditAction.TRIP_RECORDED, "trip", trip.id,
        metadata={"trip_number": trip.trip_number, "final_price": trip.final_price},
    )
    await CacheService.invalidate(redis)

    return TripResponse.model_validate(trip)


@router.get("", response_model=TripListResponse)
async def list_trips(
    date_from: Optional[datetime] = Query(None, description="Trips on or after this instant"),
    date_to: Optional[datetime] = Query(None, description="Trips on or before this instant"),
    period: Optional[Period] = Query(None, description="Restrict to the current day/week/month/year"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List trips, newest first.

    ``period`` and the explicit date bounds cannot be combined.
    """
    if period and (date_from or date_to):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Use either period or date_from/date_to"
        )
    if period:
        date_from, date_to = get_period_range(period)

    filters = []
    owner_filter = ownership_guard.filter_by_ownership(current_user)
    if owner_filter:
        filters.append(Trip.user_id == owner_filter)
    if date_from:
        filters.append(Trip.trip_date >= to_local_naive(date_from))
    if date_to:
        filters.append(Trip.trip_date <= to_local_naive(date_to))

    total_result = await db.execute(select(func.count(Trip.id)).where(*filters))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = select(Trip).where(*filters).order_by(Trip.trip_date.desc(), Trip.id.desc()).offset(offset).limit(page_size)
    result = await db.execute(query)
    trips = result.scalars().all()

    return TripListResponse(
        trips=[TripResponse.model_validate(trip) for trip in trips],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/report", response_class=Response)
async def download_trip_report(
    period: Period = Query(Period.MONTH, description="Calendar period containing now"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    PDF summary of the trips in the current day/week/month/year.

    Users get their own trips; admins get every trip.
    """
    start, end, trips = await DashboardService.get_trips_in_period(
        db, period, user_id=ownership_guard.filter_by_ownership(current_user)
    )
    report = build_trip_report(trips, period, start, end)
    filename = f"trip-report-{period.value}-{start:%Y%m%d}.pdf"
    return Response(
        content=render_trip_report_pdf(report),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    trip = await db.get(Trip, trip_id)
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)

    ownership_guard.enforce(trip.user_id, current_user, "trip")

    return TripResponse.model_validate(trip)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Delete a trip that is not part of an order.
    """
    trip = await db.get(Trip, trip_id)
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)

    ownership_guard.enforce(trip.user_id, current_user, "trip")

    trip_number = trip.trip_number
    await BillingService.delete_trip(db, trip)
    await db.commit()

    await log_user_action(
        db, current_user, AuditAction.TRIP_DELETED, "trip", trip_id,
        metadata={"trip_number": trip_number},
    )
    await CacheService.invalidate(redis)
