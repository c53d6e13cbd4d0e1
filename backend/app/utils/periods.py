"""
Calendar period helpers.

Start and end instants of the day, week, month or year containing a
reference instant, in the reference's own (local) time. Weeks run
Sunday through Saturday.

End instants carry full microsecond precision (``23:59:59.999999``), one
step short of the next period, rather than stopping at milliseconds
(``23:59:59.999``). Inclusive ``<=`` bounds then cover every stored
timestamp.
"""

import calendar
import enum
from datetime import datetime, timedelta
from typing import Optional, Tuple, Union


class Period(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


PeriodLike = Union[Period, str]

_START_OF_DAY = dict(hour=0, minute=0, second=0, microsecond=0)
_END_OF_DAY = dict(hour=23, minute=59, second=59, microsecond=999999)


def _days_since_sunday(value: datetime) -> int:
    # datetime.weekday() is Monday=0 ... Sunday=6
    return (value.weekday() + 1) % 7


def _normalize(period: PeriodLike) -> Optional[Period]:
    try:
        return Period(period)
    except ValueError:
        return None


def get_start_of_period(period: PeriodLike, reference: Optional[datetime] = None) -> datetime:
    """
    First instant of the period containing ``reference`` (default: now).

    Unknown period tags return ``reference`` unchanged.
    """
    reference = reference if reference is not None else datetime.now()
    period = _normalize(period)

    if period == Period.DAY:
        return reference.replace(**_START_OF_DAY)
    if period == Period.WEEK:
        sunday = reference - timedelta(days=_days_since_sunday(reference))
        return sunday.replace(**_START_OF_DAY)
    if period == Period.MONTH:
        return reference.replace(day=1, **_START_OF_DAY)
    if period == Period.YEAR:
        return reference.replace(month=1, day=1, **_START_OF_DAY)
    return reference


def get_end_of_period(period: PeriodLike, reference: Optional[datetime] = None) -> datetime:
    """
    Last instant (to the microsecond) of the period containing ``reference``.

    Unknown period tags return ``reference`` unchanged.
    """
    reference = reference if reference is not None else datetime.now()
    period = _normalize(period)

    if period == Period.DAY:
        return reference.replace(**_END_OF_DAY)
    if period == Period.WEEK:
        saturday = reference + timedelta(days=6 - _days_since_sunday(reference))
        return saturday.replace(**_END_OF_DAY)
    if period == Period.MONTH:
        last_day = calendar.monthrange(reference.year, reference.month)[1]
        return reference.replace(day=last_day, **_END_OF_DAY)
    if period == Period.YEAR:
        return reference.replace(month=12, day=31, **_END_OF_DAY)
    return reference


def get_period_range(period: PeriodLike, reference: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    reference = reference if reference is not None else datetime.now()
    return get_start_of_period(period, reference), get_end_of_period(period, reference)


def to_local_naive(value: datetime) -> datetime:
    """Express an aware datetime in server-local time without tzinfo; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
