"""DMP store exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Logical precondition failures and backing-store failures never share a type.
"""

from __future__ import annotations


class DmpStoreError(Exception):
    """Base exception for all DMP store failures."""


class DmpConfigError(DmpStoreError):
    """Raised for invalid runtime configuration."""


class ValidationError(DmpStoreError):
    """Raised when a required identifier or document argument is missing."""


class NotFoundError(DmpStoreError):
    """Raised when an operation requires a record that does not exist."""


class ConflictError(DmpStoreError):
    """Raised when creating a version that already exists."""


class StaleWriteError(DmpStoreError):
    """Raised when an update is not newer than the current latest version."""


class TombstonedError(DmpStoreError):
    """Raised when an update targets a tombstoned record."""


class PreconditionError(DmpStoreError):
    """Raised when registration state forbids a tombstone or delete."""


class BackingStoreError(DmpStoreError):
    """Raised when a backing-store call fails.

    Attributes:
        operation: Store operation that issued the call.
        dmp_id: Record identifier, when known.
        version: Version token, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        dmp_id: str | None = None,
        version: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.dmp_id = dmp_id
        self.version = version
