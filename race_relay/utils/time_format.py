# race_relay/utils/time_format.py
"""
Date helpers for the form's "event start" answer.

The form expects Eastern civil time in the prefilled-URL date format
``YYYY-MM-DD+HH:MM``. Conversion goes through zoneinfo so the UTC offset
follows the DST rules in effect at the given instant.
"""

from datetime import datetime
from datetime import timezone
from typing import Union
from zoneinfo import ZoneInfo

EASTERN = ZoneInfo("America/New_York")

FORM_DATETIME_FORMAT = "%Y-%m-%d+%H:%M"


def ensure_aware(instant: datetime) -> datetime:
    """Treats naive datetimes as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def parse_instant(value: Union[str, datetime]) -> datetime:
    """Parses an ISO-8601 timestamp (a trailing 'Z' is accepted) into an aware datetime."""
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(datetime.fromisoformat(value.replace("Z", "+00:00")))


def format_form_datetime(instant: Union[str, datetime], tz: ZoneInfo = EASTERN) -> str:
    """
    Converts an absolute instant to ``YYYY-MM-DD+HH:MM`` in ``tz``.

    Seconds and below are truncated, never rounded.
    """
    local = parse_instant(instant).astimezone(tz)
    return local.strftime(FORM_DATETIME_FORMAT)
