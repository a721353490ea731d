from __future__ import annotations

import calendar
import inspect
import math
import typing as tp
from datetime import datetime, timezone
from email.utils import formatdate, parsedate_tz

HEADERS_ENCODING = "iso-8859-1"

T = tp.TypeVar("T")

Timestamp = tp.Union[datetime, int, float]


def parse_date(date: str) -> tp.Optional[int]:
    expires = parsedate_tz(date)
    if expires is None:
        return None
    timestamp = calendar.timegm(expires[:6])
    # honour an explicit numeric zone offset, GMT/UTC is 0
    return timestamp - (expires[9] or 0)


def to_datetime(value: Timestamp) -> datetime:
    """
    Normalize a timestamp into an aware UTC datetime.

    Naive datetimes are interpreted as UTC, numbers as seconds since the epoch.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.fromtimestamp(value, tz=timezone.utc)


def epoch_seconds(value: Timestamp) -> float:
    if isinstance(value, datetime):
        return to_datetime(value).timestamp()
    return float(value)


def is_valid_timestamp(value: tp.Any) -> bool:
    """
    Tell whether a validator produced a usable timestamp.

    Aggregate queries over empty tables tend to come back as None, the epoch
    or NaN, none of which may be used to answer a conditional request. Neither
    can infinities or values no datetime can represent.

    Example:
        ```python
        is_valid_timestamp(datetime(2024, 1, 1))  # True
        is_valid_timestamp(None)  # False
        is_valid_timestamp(datetime(1970, 1, 1, tzinfo=timezone.utc))  # False
        is_valid_timestamp(float("nan"))  # False
        is_valid_timestamp(float("inf"))  # False
        ```
    """
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, (datetime, int, float)):
        return False
    try:
        seconds = epoch_seconds(value)
        if seconds == 0 or not math.isfinite(seconds):
            return False
        to_datetime(value)
    except (OverflowError, ValueError, OSError):
        return False
    return True


def second_boundary(value: datetime) -> datetime:
    """Drop the sub-second part, HTTP dates have whole-second resolution."""
    return value.replace(microsecond=0)


def format_http_date(value: Timestamp) -> str:
    """
    Format a timestamp for the Last-Modified header.

    Example output: 'Mon, 01 Jan 2024 00:00:00 GMT'
    """
    return formatdate(timeval=math.floor(epoch_seconds(value)), localtime=False, usegmt=True)


async def maybe_await(value: tp.Union[T, tp.Awaitable[T]]) -> T:
    if inspect.isawaitable(value):
        return await value
    return value
