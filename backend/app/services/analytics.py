"""
Dashboard Statistics Service.

Handles data aggregation for the dashboard cards and charts.
Focused on READ-ONLY operations. Every query takes an optional ``user_id``
scope; None means all users (admin view).
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from backend.app.models.billing_enums import InvoiceStatus, OrderStatus
from backend.app.models.invoice import Invoice
from backend.app.models.order import Order
from backend.app.models.trip import Trip
from backend.app.schemas.analytics import DashboardOverview, MetricPoint, PeriodSummary
from backend.app.utils.periods import Period, get_period_range, get_start_of_period, to_local_naive


def _scoped(query, model, user_id: Optional[str]):
    if user_id is not None:
        query = query.where(model.user_id == user_id)
    return query


class DashboardService:

    @staticmethod
    async def _count_by_status(db: AsyncSession, model, user_id: Optional[str]) -> dict:
        query = _scoped(select(model.status, func.count(model.id)), model, user_id).group_by(model.status)
        result = await db.execute(query)
        return {status: count for status, count in result.all()}

    @staticmethod
    async def get_overview(db: AsyncSession, user_id: Optional[str] = None) -> DashboardOverview:
        """Totals for the dashboard cards."""
        trip_query = _scoped(
            select(
                func.count(Trip.id),
                func.coalesce(func.sum(Trip.distance_miles), 0.0),
                func.coalesce(func.sum(Trip.final_price), 0.0),
            ),
            Trip,
            user_id,
        )
        total_trips, total_distance, total_revenue = (await db.execute(trip_query)).one()

        orders = await DashboardService._count_by_status(db, Order, user_id)
        invoices = await DashboardService._count_by_status(db, Invoice, user_id)

        outstanding_query = _scoped(
            select(func.coalesce(func.sum(Invoice.amount), 0.0)).where(
                Invoice.status.in_([InvoiceStatus.PENDING, InvoiceStatus.OVERDUE])
            ),
            Invoice,
            user_id,
        )
        outstanding = (await db.execute(outstanding_query)).scalar() or 0.0

        return DashboardOverview(
            total_trips=total_trips,
            total_distance_miles=total_distance,
            total_revenue=total_revenue,
            pending_orders=orders.get(OrderStatus.PENDING, 0),
            completed_orders=orders.get(OrderStatus.COMPLETED, 0),
            pending_invoices=invoices.get(InvoiceStatus.PENDING, 0),
            paid_invoices=invoices.get(InvoiceStatus.PAID, 0),
            overdue_invoices=invoices.get(InvoiceStatus.OVERDUE, 0),
            outstanding_amount=outstanding,
        )

    @staticmethod
    async def get_period_summary(
        db: AsyncSession,
        period: Period,
        reference: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> PeriodSummary:
        """Trip totals for the calendar day/week/month/year containing ``reference``."""
        start, end = get_period_range(period, reference)

        query = _scoped(
            select(
                func.count(Trip.id),
                func.coalesce(func.sum(Trip.distance_miles), 0.0),
                func.coalesce(func.sum(Trip.final_price), 0.0),
            ).where(Trip.trip_date >= start, Trip.trip_date <= end),
            Trip,
            user_id,
        )
        trip_count, distance, revenue = (await db.execute(query)).one()

        return PeriodSummary(
            period=period,
            start=start,
            end=end,
            trip_count=trip_count,
            total_distance_miles=distance,
            total_revenue=revenue,
        )

    @staticmethod
    async def get_trips_in_period(
        db: AsyncSession,
        period: Period,
        reference: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[datetime, datetime, List[Trip]]:
        """Bounds of the calendar period containing ``reference`` and its trips, oldest first."""
        start, end = get_period_range(period, reference)
        query = _scoped(
            select(Trip).where(Trip.trip_date >= start, Trip.trip_date <= end),
            Trip,
            user_id,
        ).order_by(Trip.trip_date, Trip.id)
        result = await db.execute(query)
        return start, end, list(result.scalars().all())

    @staticmethod
    async def _trips_since(db: AsyncSession, since: datetime, user_id: Optional[str]):
        query = _scoped(
            select(Trip.trip_date, Trip.final_price).where(Trip.trip_date >= since),
            Trip,
            user_id,
        )
        result = await db.execute(query)
        return [(to_local_naive(trip_date), price) for trip_date, price in result.all()]

    @staticmethod
    async def get_trips_by_day(
        db: AsyncSession,
        days: int = 7,
        reference: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> List[MetricPoint]:
        """Trip counts for the last ``days`` calendar days, oldest first, zero-filled."""
        today = get_start_of_period(Period.DAY, reference)
        labels = [(today - timedelta(days=offset)).date() for offset in reversed(range(days))]
        counts = dict.fromkeys(labels, 0)

        for trip_date, _ in await DashboardService._trips_since(db, datetime.combine(labels[0], datetime.min.time()), user_id):
            day = trip_date.date()
            if day in counts:
                counts[day] += 1

        return [MetricPoint(label=day.isoformat(), value=count) for day, count in counts.items()]

    @staticmethod
    async def get_revenue_by_month(
        db: AsyncSession,
        months: int = 6,
        reference: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> List[MetricPoint]:
        """Revenue for the last ``months`` calendar months, oldest first, zero-filled."""
        reference = reference or datetime.now()
        keys = []
        year, month = reference.year, reference.month
        for _ in range(months):
            keys.append((year, month))
            year, month = (year, month - 1) if month > 1 else (year - 1, 12)
        keys.reverse()
        revenue = dict.fromkeys(keys, 0.0)

        since = datetime(keys[0][0], keys[0][1], 1)
        for trip_date, price in await DashboardService._trips_since(db, since, user_id):
            key = (trip_date.year, trip_date.month)
            if key in revenue:
                revenue[key] += price

        return [MetricPoint(label=f"{year:04d}-{month:02d}", value=total) for (year, month), total in revenue.items()]
