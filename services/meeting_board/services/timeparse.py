"""
Tolerant date/time parsing for meeting records.

The matchmaking API is inconsistent about how it encodes meeting times:
some endpoints send a bare ``YYYY-MM-DD`` date plus split ``HH:MM:SS``
times, others send the date as a full ISO datetime at midnight. Everything
here returns ``None`` on malformed input instead of raising, and never
substitutes the current time. Any such fallback is the caller's decision.
"""

import re
from datetime import date, datetime, time
from typing import Optional, Tuple

from services.common.logging_config import get_logger

logger = get_logger(__name__)

_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?\s*$")
_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?\s*$")


def parse_date_part(value: Optional[str]) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` or an ISO datetime, keeping only the date."""
    if not value or not isinstance(value, str):
        return None
    match = _DATE_RE.match(value)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_time_part(value: Optional[str]) -> Optional[time]:
    """Parse ``HH:MM`` or ``HH:MM:SS``; fractional seconds are dropped."""
    if not value or not isinstance(value, str):
        return None
    match = _TIME_RE.match(value)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2))
    second = int(match.group(3) or 0)
    try:
        return time(hour, minute, second)
    except ValueError:
        return None


def parse_date_time(date_part: Optional[str], time_part: Optional[str]) -> Optional[datetime]:
    """
    Combine a date string and a time string into one naive datetime.

    Args:
        date_part: ``YYYY-MM-DD`` or an ISO datetime (its time and offset are ignored)
        time_part: ``HH:MM`` or ``HH:MM:SS``

    Returns:
        The combined datetime in the caller's frame of reference, or None if
        either component is missing or malformed.
    """
    parsed_date = parse_date_part(date_part)
    parsed_time = parse_time_part(time_part)
    if parsed_date is None or parsed_time is None:
        logger.debug(
            "Unparseable meeting time",
            date_part=date_part,
            time_part=time_part,
        )
        return None
    return datetime.combine(parsed_date, parsed_time)


def combine_meeting_range(
    date_part: Optional[str],
    start_part: Optional[str],
    end_part: Optional[str],
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Parse the start and end of a meeting that shares one date field."""
    return parse_date_time(date_part, start_part), parse_date_time(date_part, end_part)


def minute_of_day(instant: datetime, day: date) -> int:
    """Minutes from midnight of ``day`` to ``instant``.

    Negative for instants before the day, above 1440 for instants after it.
    """
    midnight = datetime.combine(day, time())
    if instant.tzinfo is not None:
        midnight = midnight.replace(tzinfo=instant.tzinfo)
    return int((instant - midnight).total_seconds() // 60)


def same_frame(instant: datetime, reference: datetime) -> datetime:
    """Return ``instant`` with the tz-awareness of ``reference``.

    Meeting times arrive already localized, so a naive/aware mismatch is a
    labelling difference only. The wall-clock value is kept as is.
    """
    if (instant.tzinfo is None) == (reference.tzinfo is None):
        return instant
    return instant.replace(tzinfo=reference.tzinfo)
