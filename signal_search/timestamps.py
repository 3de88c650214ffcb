"""Timestamp helpers shared by the timeline filter and the storage decoders.

All arithmetic is done on absolute UTC milliseconds so that results do not
depend on the local timezone or daylight-saving transitions.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
EPOCH_ISO = "1970-01-01T00:00:00.000Z"

_ONE_MS = timedelta(milliseconds=1)


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def parse_timestamp_ms(value: object) -> int | None:
    """Parse an ISO 8601 timestamp into epoch milliseconds.

    Accepts a trailing ``Z`` as UTC. Timestamps without an offset are read
    as UTC.

    Args:
        value: Candidate timestamp (anything; only strings can parse).

    Returns:
        Milliseconds since the epoch, or None if the value does not parse.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // _ONE_MS


def to_iso_string(ms: int) -> str:
    """Format epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    dt = EPOCH + timedelta(milliseconds=ms)
    # strftime does not zero-pad years below 1000 on every platform
    return (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}T"
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{dt.microsecond // 1000:03d}Z"
    )


def normalize_iso(value: object, fallback: str) -> str:
    """Return ``value`` re-formatted as a UTC ISO string, or ``fallback``.

    Offsets can push an instant past year 1 or 9999 in UTC; such values
    cannot be formatted and also get ``fallback``.
    """
    parsed = parse_timestamp_ms(value)
    if parsed is None:
        return fallback
    try:
        return to_iso_string(parsed)
    except OverflowError:
        return fallback
