"""Snapshot decision for updates to the latest version."""

from __future__ import annotations

from datetime import datetime

from core.constants import DEFAULT_GRACE_PERIOD_MS
from core.timestamps import parse_timestamp
from core.types import ExtensionDocument


def must_snapshot(
    current_extension: ExtensionDocument,
    incoming_extension: ExtensionDocument,
    current_modified: str,
    now: datetime,
    grace_period_ms: int = DEFAULT_GRACE_PERIOD_MS,
) -> bool:
    """Decide whether the current latest must be preserved before an update.

    A snapshot is required when a different system wrote the incoming
    record, or when the latest version is older than the grace period.

    Args:
        current_extension: Extension document currently stored as latest.
        incoming_extension: Extension document of the update.
        current_modified: ``modified`` timestamp of the current latest.
        now: Current time, timezone-aware.
        grace_period_ms: Grace period in milliseconds.

    Returns:
        True when the current latest must be snapshotted first.
    """
    if incoming_extension.provenance != current_extension.provenance:
        return True
    elapsed = now - parse_timestamp(current_modified)
    return elapsed.total_seconds() * 1000 > grace_period_ms
