"""
Billing Service (Domain Logic).

Prices and records trips, groups trips into orders and issues invoices.
Methods stage their writes and flush; committing is left to the caller.
Endpoints commit the write first and then record the audit entry, which
commits on its own.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError

from backend.app.core.config import settings as app_settings
from backend.app.core.exceptions import ConflictError, InvalidTripError, ResourceNotFoundError
from backend.app.domain.pricing.fare_calculator import FareBreakdown, calculate_fare
from backend.app.domain.pricing.rate_resolver import RateResolver
from backend.app.models.billing_enums import InvoiceStatus, OrderStatus
from backend.app.models.invoice import Invoice
from backend.app.models.order import Order, OrderItem
from backend.app.models.trip import Trip
from backend.app.models.trip_adjustment import TripAdjustment
from backend.app.schemas.trip import FareQuoteRequest, TripCreate
from backend.app.utils.formatters import generate_reference
from backend.app.utils.periods import to_local_naive
from backend.app.utils.validators import is_valid_trip

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"
INVOICE_NUMBER_ATTEMPTS = 3


class BillingService:

    @staticmethod
    async def quote_fare(db: AsyncSession, request: FareQuoteRequest) -> FareBreakdown:
        """Price a measured route with the current rate tables. Nothing is written."""
        rate_settings = await RateResolver.load(db)
        return calculate_fare(
            request.distance_miles,
            request.duration_seconds,
            rate_settings,
            request.surcharge_ids,
            request.discount_ids,
        )

    @staticmethod
    async def record_trip(db: AsyncSession, user_id: str, request: TripCreate) -> Trip:
        """
        Price and persist a trip.

        Flow:
        1. Resolve the current rate tables
        2. Calculate the fare (client-supplied prices are never trusted)
        3. Check the priced trip is complete
        4. Persist the trip with a snapshot of every applied adjustment

        Raises:
            InvalidTripError: missing fields, non-positive distance, duration
                or price (a trip discounted to zero is not recordable)
        """
        rate_settings = await RateResolver.load(db)
        breakdown = calculate_fare(
            request.distance_miles,
            request.duration_seconds,
            rate_settings,
            request.surcharge_ids,
            request.discount_ids,
        )

        trip_date = to_local_naive(request.trip_date) if request.trip_date else datetime.now()

        candidate = {
            "origin": request.origin.model_dump(),
            "destination": request.destination.model_dump(),
            "distance": request.distance_miles,
            "duration": request.duration_seconds,
            "date": trip_date,
            "base_price": breakdown.base_price,
            "final_price": breakdown.final_price,
        }
        if not is_valid_trip(candidate):
            raise InvalidTripError(details={
                "distance_miles": request.distance_miles,
                "duration_seconds": request.duration_seconds,
                "base_price": breakdown.base_price,
                "final_price": breakdown.final_price,
            })

        trip = Trip(
            trip_number=generate_reference("TRIP", trip_date),
            user_id=user_id,
            origin_lat=request.origin.lat,
            origin_lng=request.origin.lng,
            origin_address=request.origin.address,
            destination_lat=request.destination.lat,
            destination_lng=request.destination.lng,
            destination_address=request.destination.address,
            distance_miles=request.distance_miles,
            duration_seconds=request.duration_seconds,
            trip_date=trip_date,
            base_mile_rate=breakdown.base_mile_rate,
            base_hour_rate=breakdown.base_hour_rate,
            base_price=breakdown.base_price,
            subtotal=breakdown.subtotal,
            final_price=breakdown.final_price,
            adjustments=[
                TripAdjustment(
                    source_id=applied.id,
                    kind=applied.kind,
                    name=applied.name,
                    type=applied.type,
                    rate=applied.rate,
                    applied_amount=applied.applied_amount,
                    sequence=sequence,
                )
                for sequence, applied in enumerate(breakdown.adjustments)
            ],
        )
        db.add(trip)
        await db.flush()

        logger.info("Recorded trip %s for %s at %.2f", trip.trip_number, user_id, trip.final_price)
        return trip

    @staticmethod
    async def delete_trip(db: AsyncSession, trip: Trip):
        """Delete a trip that has not been billed yet."""
        result = await db.execute(select(OrderItem.order_id).where(OrderItem.trip_id == trip.id))
        order_id = result.scalar_one_or_none()
        if order_id is not None:
            raise ConflictError(
                "Trip is part of an order and cannot be deleted",
                details={"trip_id": trip.id, "order_id": order_id},
            )
        await db.delete(trip)
        await db.flush()

    @staticmethod
    async def create_order(
        db: AsyncSession,
        user_id: Optional[str],
        trip_ids: Iterable[int],
        status: OrderStatus = OrderStatus.PENDING,
    ) -> Order:
        """
        Group recorded trips into an order.

        Args:
            user_id: Restrict to this user's trips; None lifts the restriction (admin)
            trip_ids: Trips to bill, each at its recorded final price

        Raises:
            ResourceNotFoundError: a trip does not exist or is not visible
            ConflictError: a trip is already ordered, or trips span several users
        """
        trip_ids = list(dict.fromkeys(trip_ids))

        query = select(Trip).where(Trip.id.in_(trip_ids))
        if user_id is not None:
            query = query.where(Trip.user_id == user_id)
        result = await db.execute(query)
        trips = {trip.id: trip for trip in result.scalars().all()}

        missing = [trip_id for trip_id in trip_ids if trip_id not in trips]
        if missing:
            raise ResourceNotFoundError("Trip", missing[0])

        owners = {trip.user_id for trip in trips.values()}
        if len(owners) > 1:
            raise ConflictError("Trips in an order must belong to a single user", details={"user_ids": sorted(owners)})

        ordered = await db.execute(select(OrderItem.trip_id).where(OrderItem.trip_id.in_(trip_ids)))
        already_ordered = sorted(ordered.scalars().all())
        if already_ordered:
            raise ConflictError("Trips are already part of an order", details={"trip_ids": already_ordered})

        items = [OrderItem(trip_id=trip_id, amount=trips[trip_id].final_price) for trip_id in trip_ids]
        order = Order(
            order_number=generate_reference("ORD"),
            user_id=owners.pop(),
            status=status,
            total_amount=sum(item.amount for item in items),
            items=items,
        )
        db.add(order)
        await db.flush()

        logger.info("Created order %s with %d trips", order.order_number, len(items))
        return order

    @staticmethod
    async def update_order_status(db: AsyncSession, order: Order, status: OrderStatus) -> Order:
        order.status = status
        await db.flush()
        return order

    @staticmethod
    async def delete_order(db: AsyncSession, order: Order):
        """Delete an order, releasing its trips. Invoiced orders are kept."""
        invoice = await BillingService.get_invoice_for_order(db, order.id)
        if invoice is not None:
            raise ConflictError(
                "Order has been invoiced and cannot be deleted",
                details={"order_id": order.id, "invoice_number": invoice.invoice_number},
            )
        await db.delete(order)
        await db.flush()

    @staticmethod
    async def get_order_trips(db: AsyncSession, order: Order) -> list[Trip]:
        """Trips billed by ``order``, oldest first."""
        trip_ids = [item.trip_id for item in order.items]
        result = await db.execute(
            select(Trip).where(Trip.id.in_(trip_ids)).order_by(Trip.trip_date, Trip.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_invoice_for_order(db: AsyncSession, order_id: int) -> Optional[Invoice]:
        result = await db.execute(select(Invoice).where(Invoice.order_id == order_id))
        return result.scalar_one_or_none()

    @staticmethod
    def format_invoice_number(issue_date: datetime, sequence: int) -> str:
        return f"{INVOICE_PREFIX}-{issue_date:%Y%m}-{sequence:04d}"

    @staticmethod
    async def next_invoice_sequence(db: AsyncSession, issue_date: datetime) -> int:
        """Next free sequence in the month of ``issue_date``, compared numerically."""
        prefix = f"{INVOICE_PREFIX}-{issue_date:%Y%m}-"
        result = await db.execute(
            select(func.max(Invoice.sequence)).where(Invoice.invoice_number.like(f"{prefix}%"))
        )
        return (result.scalar() or 0) + 1

    @staticmethod
    async def generate_invoice_number(db: AsyncSession, issue_date: Optional[datetime] = None) -> str:
        """
        Next invoice number for the month of ``issue_date``.

        Format ``INV-YYYYMM-NNNN``; the sequence restarts every month.
        """
        issue_date = issue_date or datetime.now()
        sequence = await BillingService.next_invoice_sequence(db, issue_date)
        return BillingService.format_invoice_number(issue_date, sequence)

    @staticmethod
    async def create_invoice(
        db: AsyncSession,
        order_id: int,
        issue_date: Optional[datetime] = None,
        due_date: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> Invoice:
        """
        Issue the invoice for an order.

        ``due_date`` defaults to ``issue_date`` plus the company's
        invoice terms in days.

        Raises:
            ResourceNotFoundError: order does not exist or is not visible
            ConflictError: order is canceled or already invoiced
        """
        order = await db.get(Order, order_id)
        if order is None or (user_id is not None and order.user_id != user_id):
            raise ResourceNotFoundError("Order", order_id)

        if order.status == OrderStatus.CANCELED:
            raise ConflictError("Canceled orders cannot be invoiced", details={"order_id": order_id})

        existing = await BillingService.get_invoice_for_order(db, order_id)
        if existing is not None:
            raise ConflictError(
                "Order already has an invoice",
                details={"order_id": order_id, "invoice_number": existing.invoice_number},
            )

        issue_date = to_local_naive(issue_date) if issue_date else datetime.now()
        if due_date is None:
            company = await RateResolver.get_company_settings(db)
            due_days = company.invoice_due_days if company else app_settings.default_invoice_due_days
            due_date = issue_date + timedelta(days=due_days)
        else:
            due_date = to_local_naive(due_date)

        if due_date < issue_date:
            raise ConflictError("Due date cannot precede the issue date", details={"order_id": order_id})

        for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
            sequence = await BillingService.next_invoice_sequence(db, issue_date)
            invoice = Invoice(
                invoice_number=BillingService.format_invoice_number(issue_date, sequence),
                sequence=sequence,
                order_id=order.id,
                user_id=order.user_id,
                amount=order.total_amount,
                issue_date=issue_date,
                due_date=due_date,
                status=InvoiceStatus.PENDING,
            )
            try:
                async with db.begin_nested():
                    db.add(invoice)
            except IntegrityError:
                # Another request took the number or invoiced the order first
                existing = await BillingService.get_invoice_for_order(db, order_id)
                if existing is not None:
                    raise ConflictError(
                        "Order already has an invoice",
                        details={"order_id": order_id, "invoice_number": existing.invoice_number},
                    )
                logger.warning("Invoice number %s already taken (attempt %d)", invoice.invoice_number, attempt)
                continue

            logger.info("Issued invoice %s for order %s", invoice.invoice_number, order.order_number)
            return invoice

        raise ConflictError("Could not allocate an invoice number, please retry", details={"order_id": order_id})

    @staticmethod
    async def update_invoice(
        db: AsyncSession,
        invoice: Invoice,
        status: Optional[InvoiceStatus] = None,
        due_date: Optional[datetime] = None,
    ) -> Invoice:
        """
        Apply a status or due-date change. Paying stamps ``paid_at``; leaving PAID clears it.

        Raises:
            ConflictError: the new due date precedes the issue date
        """
        if due_date is not None:
            due_date = to_local_naive(due_date)
            if due_date < to_local_naive(invoice.issue_date):
                raise ConflictError("Due date cannot precede the issue date", details={"invoice_id": invoice.id})
            invoice.due_date = due_date

        if status is not None and status != invoice.status:
            if status == InvoiceStatus.PAID:
                invoice.paid_at = datetime.now()
            else:
                invoice.paid_at = None
            invoice.status = status

        await db.flush()
        return invoice

    @staticmethod
    async def mark_overdue_invoices(db: AsyncSession, today: Optional[datetime] = None) -> int:
        """Move pending invoices past their due date to OVERDUE. Returns the count."""
        today = today or datetime.now()
        result = await db.execute(
            update(Invoice)
            .where(Invoice.status == InvoiceStatus.PENDING, Invoice.due_date < today)
            .values(status=InvoiceStatus.OVERDUE)
        )
        await db.flush()
        if result.rowcount:
            logger.info("Marked %d invoices overdue", result.rowcount)
        return result.rowcount
