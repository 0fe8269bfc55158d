"""Time helpers shared by the models, the status engine and the statistics."""

import math
from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite returns them) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; counters here round .5 upwards
    return math.floor(value + 0.5)
