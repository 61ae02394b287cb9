"""
Standardized Date Handling Utilities

Calendar dates drive streaks, so every "today" in the application comes
from utc_today() and every user-supplied date goes through one of the
parsers below.

RULES:
- The server's current date is the UTC calendar date
- Completion dates are lenient: an unparseable value falls back to today
- Listing filters are strict: anything but YYYY-MM-DD is rejected
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

from src.exceptions import ValidationError

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Server's current calendar date"""
    return now_utc().date()


def parse_log_date(value: Optional[Any], today: date) -> date:
    """
    Resolve the date a completion is logged for

    Accepts a date, 'YYYY-MM-DD' or an ISO-8601 datetime string. Missing or
    invalid values are ignored and `today` is used instead.

    Args:
        value: Raw log date from the request
        today: Server's current date

    Returns:
        Calendar date to log
    """
    if value is None or value == "":
        return today
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        if _ISO_DATE.match(text):
            return date.fromisoformat(text)
        return datetime.fromisoformat(text).date()
    except ValueError:
        logger.warning(f"Ignoring invalid log date '{value}', using {today}")
        return today


def parse_date_filter(value: Optional[str], field: str) -> Optional[date]:
    """
    Parse a strict YYYY-MM-DD query filter

    Raises:
        ValidationError: value is present but not a valid YYYY-MM-DD date
    """
    if value is None or value == "":
        return None

    if not _ISO_DATE.match(value):
        raise ValidationError(
            message="use YYYY-MM-DD",
            field=field,
            value=value,
            operation="parse_date_filter"
        )
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(
            message="not a calendar date",
            field=field,
            value=value,
            operation="parse_date_filter",
            cause=e
        ) from e
