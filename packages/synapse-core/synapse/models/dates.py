"""
Datetime helpers shared by the models and the tool layer.

All stored and compared datetimes are naive local time, matching the store
clock (datetime.now).
"""

from datetime import datetime
from typing import Optional


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO 8601 string (with or without offset) into naive local time."""
    if not value:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return to_local_naive(value)
