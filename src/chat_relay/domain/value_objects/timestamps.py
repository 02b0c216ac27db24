from __future__ import annotations

from datetime import datetime, timezone


def truncate_to_millis(ts: datetime) -> datetime:
    return ts.replace(microsecond=ts.microsecond // 1000 * 1000)


def format_timestamp(ts: datetime) -> str:
    """Render as ISO-8601 UTC with millisecond precision, e.g. ``2024-05-01T12:30:00.123Z``."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S") + f".{ts.microsecond // 1000:03d}Z"
