"""RFC3339 timestamp helpers.

Version tokens and ``modified`` values are RFC3339 strings in UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now_rfc3339() -> str:
    """Return the current UTC time as an RFC3339 string."""
    return to_rfc3339(datetime.now(timezone.utc))


def to_rfc3339(value: str | datetime) -> str:
    """Normalize a datetime or timestamp string to RFC3339.

    Accepts ``datetime`` objects, MySQL ``YYYY-MM-DD HH:MM:SS`` strings,
    ISO strings with or without a trailing ``Z`` and bare dates.

    Args:
        value: Datetime or timestamp string.

    Returns:
        RFC3339 timestamp such as ``2025-01-02T03:04:05Z``.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        utc_value = value.astimezone(timezone.utc)
        return utc_value.isoformat(timespec="seconds").replace("+00:00", "Z")
    normalized = value.strip().replace(" ", "T", 1)
    if "T" not in normalized:
        return f"{normalized}T00:00:00Z"
    if normalized.endswith("Z") or _has_offset(normalized):
        return normalized
    return f"{normalized}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp string.

    Returns:
        Timezone-aware datetime.

    Raises:
        ValueError: If the value is not a parseable timestamp.
    """
    normalized = to_rfc3339(value)
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    parsed = datetime.fromisoformat(normalized)
    return parsed.astimezone(timezone.utc)


def _has_offset(value: str) -> bool:
    time_part = value.split("T", 1)[1]
    return "+" in time_part or "-" in time_part
