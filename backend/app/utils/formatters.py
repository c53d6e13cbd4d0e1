"""
Formatting helpers for API payloads and invoice rendering.

US-English conventions: "$1,234.50", "12.3 mi", "1h 5m", "Mar 15, 2024".
"""

import uuid
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, Decimal]
DateLike = Union[date, datetime, str]


def _quantize(value: Number, decimals: int) -> Decimal:
    exponent = Decimal(1).scaleb(-decimals)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def format_number(value: Optional[Number], decimals: int = 2) -> str:
    """Number with thousands separators and a fixed number of decimals."""
    if value is None:
        return "0"
    return f"{_quantize(value, decimals):,.{decimals}f}"


def format_currency(value: Optional[Number], decimals: int = 2, symbol: str = "$") -> str:
    """Dollar amount, e.g. 1234.5 -> "$1,234.50" and -5 -> "-$5.00"."""
    if value is None:
        value = 0
    amount = _quantize(value, decimals)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.{decimals}f}"


def format_distance(miles: Optional[Number], decimals: int = 1) -> str:
    if miles is None:
        return "0 mi"
    return f"{format_number(miles, decimals)} mi"


def format_duration(seconds: Optional[Number]) -> str:
    """Seconds as "2h 5m" or "45m"."""
    if not seconds:
        return "0m"
    seconds = int(seconds)
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_date(value: Optional[DateLike]) -> str:
    """Date as "Mar 15, 2024"."""
    if not value:
        return ""
    moment = _as_datetime(value)
    return f"{moment:%b} {moment.day}, {moment.year}"


def format_datetime(value: Optional[DateLike]) -> str:
    """Date and time as "Mar 15, 2024, 02:30 PM"."""
    if not value:
        return ""
    moment = _as_datetime(value)
    return f"{format_date(moment)}, {moment:%I:%M %p}"


def truncate_text(text: Optional[str], max_length: int = 30) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def generate_reference(prefix: str, moment: Optional[datetime] = None) -> str:
    """Human-readable unique reference, e.g. "TRIP-20240315-9F2C41AB"."""
    moment = moment or datetime.now()
    return f"{prefix}-{moment:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
