"""Timestamp helpers shared by the privacy managers."""

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional


Clock = Callable[[], datetime]

RETENTION_PATTERN = re.compile(r'^(\d+)_(year|month|week|day)s?$')

RETENTION_UNIT_DAYS = {
    'year': 365,
    'month': 30,
    'week': 7,
    'day': 1,
}


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(moment: Optional[datetime]) -> str:
    """Render a datetime as ISO 8601 UTC with millisecond precision and a Z suffix."""
    if moment is None:
        return ""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.astimezone(timezone.utc).isoformat(timespec='milliseconds')
    return text.replace('+00:00', 'Z')


def from_iso(text: str) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing Z."""
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def add_days(moment: datetime, days: int) -> datetime:
    return moment + timedelta(days=days)


def parse_retention_period(period: Optional[str]) -> Optional[int]:
    """
    Convert a retention period such as ``2_years`` or ``30_days`` to days.

    Returns None when the value does not match ``<n>_<unit>[s]``.
    """
    if not period:
        return None

    match = RETENTION_PATTERN.match(period.strip())
    if not match:
        return None

    return int(match.group(1)) * RETENTION_UNIT_DAYS[match.group(2)]
