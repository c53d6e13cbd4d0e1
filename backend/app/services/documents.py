"""
Billing Documents.

Invoice and periodic trip report PDFs.

Each document is first assembled as rows of display strings
(``build_invoice_document``, ``build_trip_report``) and then laid out with
reportlab (``render_invoice_pdf``, ``render_trip_report_pdf``). Amounts come
from the stored trip snapshot, never from the current rate tables.
"""

from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backend.app.domain.pricing.fare_calculator import SECONDS_PER_HOUR
from backend.app.models.billing_enums import AdjustmentKind, AdjustmentType
from backend.app.utils.formatters import (
    format_currency, format_date, format_datetime, format_distance,
    format_duration, format_number, truncate_text,
)
from backend.app.utils.periods import Period

FOOTER = "Thank you for your business. This document is informational and has no tax value."
REPORT_ADDRESS_LENGTH = 30

Row = Tuple[str, ...]

HEADER_COLOR = colors.HexColor("#4F46E5")
MUTED_COLOR = colors.HexColor("#6B7280")


@dataclass
class TripSection:
    """One billed trip: its facts and its itemized charges."""
    heading: str
    details: List[Row]
    lines: List[Row]
    total: str


@dataclass
class InvoiceDocument:
    title: str
    company_name: Optional[str]
    header: List[Row]
    trips: List[TripSection]
    total: str
    footer: str = FOOTER


@dataclass
class TripReport:
    title: str
    summary: List[Row]
    columns: Row
    rows: List[Row] = field(default_factory=list)


def _adjustment_line(adjustment) -> Row:
    if adjustment.kind == AdjustmentKind.DISCOUNT:
        label, amount = f"Discount: {adjustment.name}", -adjustment.applied_amount
    else:
        label, amount = f"Surcharge: {adjustment.name}", adjustment.applied_amount

    if adjustment.type == AdjustmentType.PERCENTAGE:
        detail = f"{format_number(adjustment.rate)}%"
    else:
        detail = "Fixed amount"
    return label, detail, format_currency(amount)


def build_trip_section(trip) -> TripSection:
    """Itemize a recorded trip: distance and time charges, then each adjustment in applied order."""
    hours = trip.duration_seconds / SECONDS_PER_HOUR
    lines = [
        (
            "Distance charge",
            f"{format_number(trip.distance_miles)} mi x {format_currency(trip.base_mile_rate)}",
            format_currency(trip.distance_miles * trip.base_mile_rate),
        ),
        (
            "Time charge",
            f"{format_number(hours)} h x {format_currency(trip.base_hour_rate)}",
            format_currency(hours * trip.base_hour_rate),
        ),
    ]
    lines.extend(_adjustment_line(adjustment) for adjustment in trip.adjustments)

    return TripSection(
        heading=f"Trip {trip.trip_number}",
        details=[
            ("Date", format_datetime(trip.trip_date)),
            ("Origin", trip.origin_address),
            ("Destination", trip.destination_address),
            ("Distance", format_distance(trip.distance_miles, 2)),
            ("Duration", format_duration(trip.duration_seconds)),
        ],
        lines=lines,
        total=format_currency(trip.final_price),
    )


def build_invoice_document(
    invoice,
    order,
    trips: Sequence,
    company_name: Optional[str] = None,
    customer=None,
) -> InvoiceDocument:
    """
    Assemble the printable content of an invoice.

    Args:
        invoice: The invoice being rendered
        order: Its order
        trips: The order's trips, in billing order
        company_name: Issuer shown under the title
        customer: Profile billed; shown by name, falling back to email
    """
    header = [
        ("Invoice #", invoice.invoice_number),
        ("Order #", order.order_number),
        ("Issued", format_date(invoice.issue_date)),
        ("Due", format_date(invoice.due_date)),
        ("Status", invoice.status.value.upper()),
    ]
    if invoice.paid_at:
        header.append(("Paid", format_datetime(invoice.paid_at)))
    if customer is not None:
        header.append(("Billed to", customer.full_name or customer.email))

    return InvoiceDocument(
        title="INVOICE",
        company_name=company_name,
        header=header,
        trips=[build_trip_section(trip) for trip in trips],
        total=format_currency(invoice.amount),
    )


def build_trip_report(
    trips: Sequence,
    period: Period,
    start: datetime,
    end: datetime,
    generated_at: Optional[datetime] = None,
) -> TripReport:
    """Summary and one row per trip for a calendar period, addresses shortened."""
    generated_at = generated_at or datetime.now()
    total_distance = sum(trip.distance_miles for trip in trips)
    total_revenue = sum(trip.final_price for trip in trips)

    return TripReport(
        title=f"TRIP REPORT - {Period(period).value.upper()}",
        summary=[
            ("Period", f"{format_date(start)} - {format_date(end)}"),
            ("Generated", format_datetime(generated_at)),
            ("Trips", str(len(trips))),
            ("Total distance", format_distance(total_distance, 2)),
            ("Total revenue", format_currency(total_revenue)),
        ],
        columns=("Date", "Origin", "Destination", "Distance", "Duration", "Price"),
        rows=[
            (
                format_date(trip.trip_date),
                truncate_text(trip.origin_address, REPORT_ADDRESS_LENGTH),
                truncate_text(trip.destination_address, REPORT_ADDRESS_LENGTH),
                format_distance(trip.distance_miles, 2),
                format_duration(trip.duration_seconds),
                format_currency(trip.final_price),
            )
            for trip in trips
        ],
    )


# Layout

def _paragraph(text: str, style) -> Paragraph:
    return Paragraph(escape(text or ""), style)


def _key_value_table(rows: Sequence[Row], styles) -> Table:
    body = [
        [_paragraph(label, styles["BodyText"]), _paragraph(value, styles["BodyText"])]
        for label, value in rows
    ]
    table = Table(body, colWidths=[1.5 * inch, 5 * inch], hAlign="LEFT")
    table.setStyle(TableStyle([
        ("TEXTCOLOR", (0, 0), (0, -1), MUTED_COLOR),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return table


def _grid_table(columns: Row, rows: Sequence[Row], col_widths, bold_last_row: bool = False) -> Table:
    table = Table([list(columns)] + [list(row) for row in rows], colWidths=col_widths, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ("ALIGN", (-1, 0), (-1, -1), "RIGHT"),
    ]
    if bold_last_row and rows:
        style.append(("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"))
    table.setStyle(TableStyle(style))
    return table


def _build_pdf(title: str, story: list) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, title=title)
    doc.build(story)
    return buffer.getvalue()


def render_invoice_pdf(document: InvoiceDocument) -> bytes:
    styles = getSampleStyleSheet()
    story = [_paragraph(document.title, styles["Title"])]
    if document.company_name:
        story.append(_paragraph(document.company_name, styles["Heading2"]))
    story.append(_key_value_table(document.header, styles))

    for section in document.trips:
        story += [
            Spacer(1, 12),
            _paragraph(section.heading, styles["Heading3"]),
            _key_value_table(section.details, styles),
            Spacer(1, 6),
            _grid_table(
                ("Item", "Detail", "Amount"),
                section.lines + [("Trip total", "", section.total)],
                col_widths=[2.8 * inch, 2.4 * inch, 1.3 * inch],
                bold_last_row=True,
            ),
        ]

    story += [
        Spacer(1, 18),
        _key_value_table([("Invoice total", document.total)], styles),
        Spacer(1, 24),
        _paragraph(document.footer, styles["Italic"]),
    ]
    return _build_pdf(document.title, story)


def render_trip_report_pdf(report: TripReport) -> bytes:
    styles = getSampleStyleSheet()
    story = [
        _paragraph(report.title, styles["Title"]),
        _key_value_table(report.summary, styles),
        Spacer(1, 12),
        _grid_table(
            report.columns,
            report.rows,
            col_widths=[0.9 * inch, 1.9 * inch, 1.9 * inch, 0.9 * inch, 0.7 * inch, 0.9 * inch],
        ),
    ]
    return _build_pdf(report.title, story)
