"""
Dashboard statistics schemas.
"""

from pydantic import BaseModel
from typing import List
from datetime import datetime
from backend.app.utils.periods import Period


class DashboardOverview(BaseModel):
    """Headline numbers for the dashboard cards."""
    total_trips: int
    total_distance_miles: float
    total_revenue: float
    pending_orders: int
    completed_orders: int
    pending_invoices: int
    paid_invoices: int
    overdue_invoices: int
    outstanding_amount: float


class PeriodSummary(BaseModel):
    """Trip totals inside one calendar period."""
    period: Period
    start: datetime
    end: datetime
    trip_count: int
    total_distance_miles: float
    total_revenue: float


class MetricPoint(BaseModel):
    """One chart point."""
    label: str
    value: float


class ChartSeries(BaseModel):
    points: List[MetricPoint]
