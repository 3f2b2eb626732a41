"""Public SDK surface for the DMP store.

This module provides a stable import path for callers.
It re-exports the store, its config, typed models and errors.
"""

from __future__ import annotations

from typing import Any

from core.config import DmpStoreConfig
from core.constants import EXTENSION_FIELDS, LATEST_VERSION, TOMBSTONE_VERSION
from core.errors import (
    BackingStoreError,
    ConflictError,
    DmpConfigError,
    DmpStoreError,
    NotFoundError,
    PreconditionError,
    StaleWriteError,
    TombstonedError,
    ValidationError,
)
from core.logging_config import configure_logging
from core.types import CoreDocument, ExtensionDocument, RecordVersion
from store.dmp_store import DmpStore
from store.document_split import merge_documents, split_document


def open_store(config: DmpStoreConfig | None = None, client: Any | None = None) -> DmpStore:
    """Build a store, reading config from the environment when omitted.

    Args:
        config: Optional runtime configuration.
        client: Optional low-level DynamoDB client.

    Returns:
        Configured store with logging initialized.
    """
    resolved = config or DmpStoreConfig.from_env()
    configure_logging(resolved.log_level)
    return DmpStore(resolved, client=client)


__all__ = [
    "BackingStoreError",
    "ConflictError",
    "CoreDocument",
    "DmpConfigError",
    "DmpStore",
    "DmpStoreConfig",
    "DmpStoreError",
    "EXTENSION_FIELDS",
    "ExtensionDocument",
    "LATEST_VERSION",
    "NotFoundError",
    "PreconditionError",
    "RecordVersion",
    "StaleWriteError",
    "TOMBSTONE_VERSION",
    "TombstonedError",
    "ValidationError",
    "merge_documents",
    "open_store",
    "split_document",
]
