"""
Tests for invoice and trip report documents.
"""

from datetime import datetime

import pytest

from backend.app.models.billing_enums import AdjustmentKind, AdjustmentType, InvoiceStatus
from backend.app.models.invoice import Invoice
from backend.app.models.order import Order
from backend.app.models.profile import Profile
from backend.app.models.trip import Trip
from backend.app.models.trip_adjustment import TripAdjustment
from backend.app.services.documents import (
    build_invoice_document, build_trip_report, render_invoice_pdf, render_trip_report_pdf,
)
from backend.app.utils.periods import Period

TRIP = {
    "origin": {"lat": 40.71, "lng": -74.00, "address": "1 Main St"},
    "destination": {"lat": 40.73, "lng": -73.99, "address": "9 Elm St"},
    "distance_miles": 10,
    "duration_seconds": 1800,
}


def airport_trip(**overrides) -> Trip:
    """10 mi at 2.50 plus 0.5 h at 0.50, +15 fixed, -10%: 25.25 -> 40.25 -> 36.225."""
    values = dict(
        trip_number="TRIP-20240315-AB12CD34",
        origin_address="JFK Airport Terminal 4, Queens, New York",
        destination_address="350 Fifth Avenue, Manhattan, New York",
        distance_miles=10,
        duration_seconds=1800,
        trip_date=datetime(2024, 3, 15, 14, 30),
        base_mile_rate=2.5,
        base_hour_rate=0.5,
        base_price=25.25,
        subtotal=40.25,
        final_price=36.225,
        adjustments=[
            TripAdjustment(kind=AdjustmentKind.SURCHARGE, name="Airport Fee", type=AdjustmentType.FIXED,
                           rate=15, applied_amount=15, sequence=0),
            TripAdjustment(kind=AdjustmentKind.DISCOUNT, name="Loyalty", type=AdjustmentType.PERCENTAGE,
                           rate=10, applied_amount=4.025, sequence=1),
        ],
    )
    values.update(overrides)
    return Trip(**values)


def issued_invoice(**overrides) -> Invoice:
    values = dict(
        invoice_number="INV-202403-0001",
        amount=36.225,
        issue_date=datetime(2024, 3, 15),
        due_date=datetime(2024, 4, 14),
        status=InvoiceStatus.PENDING,
        paid_at=None,
    )
    values.update(overrides)
    return Invoice(**values)


# TEST 1: Invoice content
def test_invoice_itemizes_trip_snapshot():
    document = build_invoice_document(
        issued_invoice(),
        Order(order_number="ORD-20240315-0000AAAA"),
        [airport_trip()],
        company_name="Acme Cars",
        customer=Profile(email="driver@example.com", full_name="Dana Driver"),
    )

    assert document.company_name == "Acme Cars"
    assert ("Invoice #", "INV-202403-0001") in document.header
    assert ("Issued", "Mar 15, 2024") in document.header
    assert ("Due", "Apr 14, 2024") in document.header
    assert ("Status", "PENDING") in document.header
    assert ("Billed to", "Dana Driver") in document.header
    assert document.total == "$36.23"

    section = document.trips[0]
    assert section.heading == "Trip TRIP-20240315-AB12CD34"
    assert ("Date", "Mar 15, 2024, 02:30 PM") in section.details
    assert ("Distance", "10.00 mi") in section.details
    assert ("Duration", "30m") in section.details
    assert section.lines == [
        ("Distance charge", "10.00 mi x $2.50", "$25.00"),
        ("Time charge", "0.50 h x $0.50", "$0.25"),
        ("Surcharge: Airport Fee", "Fixed amount", "$15.00"),
        ("Discount: Loyalty", "10.00%", "-$4.03"),
    ]
    assert section.total == "$36.23"


def test_paid_invoice_shows_payment_and_falls_back_to_email():
    document = build_invoice_document(
        issued_invoice(status=InvoiceStatus.PAID, paid_at=datetime(2024, 3, 20, 9, 5)),
        Order(order_number="ORD-1"),
        [],
        customer=Profile(email="driver@example.com", full_name=None),
    )

    assert ("Status", "PAID") in document.header
    assert ("Paid", "Mar 20, 2024, 09:05 AM") in document.header
    assert ("Billed to", "driver@example.com") in document.header
    assert document.trips == []


# TEST 2: Trip report content
def test_trip_report_summary_and_rows():
    trips = [
        airport_trip(final_price=36.25),
        airport_trip(trip_number="TRIP-2", origin_address="Short St", distance_miles=2.5,
                     duration_seconds=3900, final_price=10, trip_date=datetime(2024, 3, 20, 8)),
    ]

    report = build_trip_report(
        trips, Period.MONTH, datetime(2024, 3, 1), datetime(2024, 3, 31, 23, 59, 59, 999999),
        generated_at=datetime(2024, 4, 1, 18, 0),
    )

    assert report.title == "TRIP REPORT - MONTH"
    assert report.summary == [
        ("Period", "Mar 1, 2024 - Mar 31, 2024"),
        ("Generated", "Apr 1, 2024, 06:00 PM"),
        ("Trips", "2"),
        ("Total distance", "12.50 mi"),
        ("Total revenue", "$46.25"),
    ]
    assert report.rows[0] == (
        "Mar 15, 2024",
        "JFK Airport Terminal 4, Queens...",
        "350 Fifth Avenue, Manhattan, N...",
        "10.00 mi",
        "30m",
        "$36.25",
    )
    assert report.rows[1][1] == "Short St"
    assert report.rows[1][4] == "1h 5m"


def test_empty_trip_report():
    report = build_trip_report([], "week", datetime(2024, 3, 10), datetime(2024, 3, 16, 23, 59))

    assert ("Trips", "0") in report.summary
    assert ("Total revenue", "$0.00") in report.summary
    assert report.rows == []


# TEST 3: Rendering
def test_render_produces_pdf():
    invoice_pdf = render_invoice_pdf(build_invoice_document(
        issued_invoice(), Order(order_number="ORD-1"), [airport_trip(origin_address="A & B <Corner>")],
        company_name="Acme & Sons",
    ))
    report_pdf = render_trip_report_pdf(build_trip_report(
        [airport_trip()], Period.DAY, datetime(2024, 3, 15), datetime(2024, 3, 15, 23, 59),
    ))

    assert invoice_pdf.startswith(b"%PDF")
    assert report_pdf.startswith(b"%PDF")


# TEST 4: Endpoints
@pytest.fixture
async def airport_rates(client, admin_headers):
    await client.put("/v1/settings/rates", headers=admin_headers,
                     json={"base_mile_rate": 2.5, "base_hour_rate": 0.5, "company_name": "Acme Cars"})
    surcharge = await client.post("/v1/settings/surcharge-factors", headers=admin_headers,
                                  json={"name": "Airport Fee", "rate": 15, "type": "fixed"})
    discount = await client.post("/v1/settings/discounts", headers=admin_headers,
                                 json={"name": "Loyalty", "rate": 10, "type": "percentage"})
    return surcharge.json()["id"], discount.json()["id"]


async def issue_invoice(client, headers, surcharge_id, discount_id) -> dict:
    trip = await client.post("/v1/trips", headers=headers, json={
        **TRIP, "surcharge_ids": [surcharge_id], "discount_ids": [discount_id],
    })
    assert trip.status_code == 201
    order = await client.post("/v1/orders", headers=headers, json={"trip_ids": [trip.json()["id"]]})
    invoice = await client.post("/v1/invoices", headers=headers, json={"order_id": order.json()["id"]})
    assert invoice.status_code == 201
    return invoice.json()


@pytest.mark.asyncio
async def test_download_invoice_document(client, user_headers, airport_rates):
    invoice = await issue_invoice(client, user_headers, *airport_rates)

    response = await client.get(f"/v1/invoices/{invoice['id']}/document", headers=user_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert invoice["invoice_number"] in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_invoice_document_is_owner_only(client, user_headers, other_headers, airport_rates):
    invoice = await issue_invoice(client, user_headers, *airport_rates)

    response = await client.get(f"/v1/invoices/{invoice['id']}/document", headers=other_headers)
    assert response.status_code == 403

    missing = await client.get("/v1/invoices/9999/document", headers=user_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_download_trip_report(client, user_headers, airport_rates):
    await client.post("/v1/trips", headers=user_headers, json=TRIP)

    response = await client.get("/v1/trips/report", headers=user_headers, params={"period": "year"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "trip-report-year-" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_trip_report_rejects_unknown_period(client, user_headers):
    response = await client.get("/v1/trips/report", headers=user_headers, params={"period": "decade"})
    assert response.status_code == 422
