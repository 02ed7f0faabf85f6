"""Shared utilities for schema validation."""

from datetime import datetime, timezone
from typing import Any


def parse_mongo_datetime(v: Any) -> Any:
    """Parse MongoDB Extended JSON datetime format and normalize to UTC.

    MongoDB Extended JSON format: {'$date': '2024-11-01T08:00:00Z'}
    Naive datetimes (clients opened without tz_aware) are assumed to be UTC.
    """
    if isinstance(v, dict) and "$date" in v:
        v = datetime.fromisoformat(v["$date"].replace("Z", "+00:00"))
    if isinstance(v, datetime) and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    # Return as-is and let Pydantic handle validation
    return v
