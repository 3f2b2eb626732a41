"""Core constants used across DMP store modules.

This module centralizes key-scheme prefixes, version tokens, and defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

RECORD_KEY_PREFIX = "RECORD"
CORE_KEY_PREFIX = "VERSION"
EXTENSION_KEY_PREFIX = "EXTENSION"
KEY_SEPARATOR = "#"
LATEST_VERSION = "latest"
TOMBSTONE_VERSION = "tombstone"
DEFAULT_ID_SCHEME = "https://"
TOMBSTONE_TITLE_PREFIX = "OBSOLETE: "
PARTITION_KEY_ATTRIBUTE = "PK"
SORT_KEY_ATTRIBUTE = "SK"
DEFAULT_GRACE_PERIOD_MS = 7_200_000
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_TABLE_NAME = "dmps"
DEFAULT_REGION = "us-west-2"
DEFAULT_DOMAIN_NAME = "dmptool.org"
DEFAULT_LOG_LEVEL = "info"
SUPPORTED_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

# Top-level fields owned by the extension document. Everything else is core.
EXTENSION_FIELDS: tuple[str, ...] = (
    "featured",
    "funding_opportunity",
    "funding_project",
    "narrative",
    "provenance",
    "privacy",
    "rda_schema_version",
    "registered",
    "research_domain",
    "research_facility",
    "status",
    "tombstoned",
    "version",
)
