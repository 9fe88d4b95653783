"""Temporal predicates: age at a reference date and measurement window checks."""
from datetime import datetime
from typing import Union
import math
import pandas as pd

from depression_screening.processing.errors import InvalidDateError

SECONDS_PER_YEAR = 365.25 * 24 * 3600

# Strings pandas resolves against the clock instead of parsing
RELATIVE_KEYWORDS = {"now", "today"}

DateLike = Union[str, datetime, pd.Timestamp]


def parse_timestamp(value: DateLike, field_name: str = "date") -> pd.Timestamp:
    """Parse a date or date-time value into a naive UTC timestamp.

    Timezone-aware values are converted to UTC; naive values are taken as UTC.

    Args:
        value: Date string ("2022-03-01T08:00:00Z", "03/01/2022 8:00 AM",
            "March 1, 2022") or datetime
        field_name: Name used in the error message

    Returns:
        Naive pandas Timestamp

    Raises:
        InvalidDateError: value is empty, relative ("now", "today") or cannot
            be parsed
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidDateError(value, field_name)
    if isinstance(value, str) and value.strip().lower() in RELATIVE_KEYWORDS:
        raise InvalidDateError(value, field_name)

    try:
        ts = pd.Timestamp(value.strip() if isinstance(value, str) else value)
    except (ValueError, TypeError, OverflowError) as e:
        raise InvalidDateError(value, field_name) from e

    if pd.isna(ts):
        raise InvalidDateError(value, field_name)

    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def age(birth_date: DateLike, reference_date: DateLike) -> int:
    """Age in whole years at reference_date.

    Elapsed time divided by 365.25 days, floored. This is not calendar-aware
    and can be off by one for patients within a day or two of a birthday.

    Args:
        birth_date: Date of birth
        reference_date: Date at which age is evaluated

    Returns:
        Age in years
    """
    birth = parse_timestamp(birth_date, "date of birth")
    reference = parse_timestamp(reference_date, "reference date")
    elapsed = (reference - birth).total_seconds()
    return math.floor(elapsed / SECONDS_PER_YEAR)


def in_window(timestamp: DateLike, window) -> bool:
    """True if window.start <= timestamp <= window.end."""
    ts = parse_timestamp(timestamp)
    return window.start <= ts <= window.end
