"""Identifier and timestamp helpers."""

import secrets
import time
from datetime import datetime, timezone

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_id() -> str:
    """Generate a local ID: base-36 epoch millis, a dash, 8 random base-36 chars."""
    prefix = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"{prefix}-{suffix}"


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-05-01T09:30:12.345Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: object) -> datetime:
    """Parse an ISO timestamp for use as a sort key.

    Missing or unparseable values sort as the oldest possible time.
    Naive timestamps are taken to be UTC.
    """
    if not isinstance(value, str) or not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_for_filename(moment: datetime | None = None) -> str:
    """Format a device-local time as YYYYMMDD-HHMM."""
    moment = moment or datetime.now()
    return moment.strftime("%Y%m%d-%H%M")
