"""
Input validators.

Pure boolean predicates used to gate trip and rate-settings submissions.
None of them raise; malformed input simply returns False.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping
from urllib.parse import urlsplit

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

TRIP_REQUIRED_FIELDS = (
    "origin",
    "destination",
    "distance",
    "duration",
    "date",
    "base_price",
    "final_price",
)

# Client payloads may still use the camelCase names
FIELD_ALIASES = {
    "base_price": "basePrice",
    "final_price": "finalPrice",
    "base_mile_rate": "baseMileRate",
    "base_hour_rate": "baseHourRate",
    "surcharge_factors": "surchargeFactors",
}

_MISSING = object()


def _get(obj: Any, name: str, default: Any = _MISSING) -> Any:
    """Read a field from a mapping or an attribute object, honoring aliases."""
    alias = FIELD_ALIASES.get(name)
    if isinstance(obj, Mapping):
        if name in obj:
            return obj[name]
        if alias and alias in obj:
            return obj[alias]
        return default
    if hasattr(obj, name):
        return getattr(obj, name)
    if alias and hasattr(obj, alias):
        return getattr(obj, alias)
    return default


def _to_number(value: Any):
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, Decimal, str)):
        return None
    try:
        number = float(Decimal(value.strip())) if isinstance(value, str) else float(value)
    except (InvalidOperation, ValueError, OverflowError):
        return None
    if math.isnan(number):
        return None
    return number


def is_empty(value: Any) -> bool:
    """True for None, blank strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


def is_number(value: Any) -> bool:
    """True for numbers and numeric strings. Booleans and NaN are not numbers."""
    return _to_number(value) is not None


def is_positive_number(value: Any) -> bool:
    number = _to_number(value)
    return number is not None and number > 0


def is_non_negative_number(value: Any) -> bool:
    number = _to_number(value)
    return number is not None and number >= 0


def is_valid_percentage(value: Any) -> bool:
    """True for numbers between 0 and 100 inclusive."""
    number = _to_number(value)
    return number is not None and 0 <= number <= 100


def is_valid_email(value: Any) -> bool:
    """Simple shape check (local@domain.tld), not RFC 5322."""
    if is_empty(value) or not isinstance(value, str):
        return False
    return EMAIL_PATTERN.match(value) is not None


def is_valid_date(value: Any) -> bool:
    """True for date/datetime objects and ISO-8601 strings."""
    if isinstance(value, (date, datetime)):
        return True
    if is_empty(value) or not isinstance(value, str):
        return False
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def is_valid_url(value: Any) -> bool:
    """True when the value parses as an absolute URL with a host."""
    if is_empty(value) or not isinstance(value, str):
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def has_required_props(obj: Any, required_props: Iterable[str]) -> bool:
    """True when every property is present on ``obj`` and not empty."""
    if obj is None or isinstance(obj, (str, bytes, int, float, bool)):
        return False
    for prop in required_props:
        value = _get(obj, prop)
        if value is _MISSING or is_empty(value):
            return False
    return True


def _is_valid_location(location: Any) -> bool:
    return (
        is_number(_get(location, "lat", None))
        and is_number(_get(location, "lng", None))
        and not is_empty(_get(location, "address", None))
    )


def is_valid_trip(trip: Any) -> bool:
    """
    Check a trip is complete enough to persist.

    Requires origin and destination with coordinates and an address,
    positive distance, duration and prices, and a valid date.
    """
    if not has_required_props(trip, TRIP_REQUIRED_FIELDS):
        return False

    return (
        is_positive_number(_get(trip, "distance"))
        and is_positive_number(_get(trip, "duration"))
        and is_valid_date(_get(trip, "date"))
        and is_positive_number(_get(trip, "base_price"))
        and is_positive_number(_get(trip, "final_price"))
        and _is_valid_location(_get(trip, "origin"))
        and _is_valid_location(_get(trip, "destination"))
    )


def is_valid_rate_settings(settings: Any) -> bool:
    """Non-negative base rates and list-typed adjustment tables."""
    if settings is None or isinstance(settings, (str, bytes, int, float, bool)):
        return False

    return (
        is_non_negative_number(_get(settings, "base_mile_rate", None))
        and is_non_negative_number(_get(settings, "base_hour_rate", None))
        and isinstance(_get(settings, "surcharge_factors", None), (list, tuple))
        and isinstance(_get(settings, "discounts", None), (list, tuple))
    )
