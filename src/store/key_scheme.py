"""Partition and sort key codec.

Persisted keys must always decode, so the layout below is fixed:

    PK  RECORD#<id without scheme>
    SK  VERSION#<token>     core document
    SK  EXTENSION#<token>   extension document
"""

from __future__ import annotations

import re

from core.constants import (
    CORE_KEY_PREFIX,
    DEFAULT_ID_SCHEME,
    EXTENSION_KEY_PREFIX,
    KEY_SEPARATOR,
    LATEST_VERSION,
    RECORD_KEY_PREFIX,
)

_SCHEME_PATTERN = re.compile(r"^(\w+:)?//")
_RECORD_PREFIX = f"{RECORD_KEY_PREFIX}{KEY_SEPARATOR}"
_CORE_PREFIX = f"{CORE_KEY_PREFIX}{KEY_SEPARATOR}"
_EXTENSION_PREFIX = f"{EXTENSION_KEY_PREFIX}{KEY_SEPARATOR}"


def strip_scheme(dmp_id: str) -> str:
    """Remove a leading URI scheme and ``//`` from a record id."""
    return _SCHEME_PATTERN.sub("", dmp_id.strip(), count=1)


def record_key(dmp_id: str) -> str:
    """Build the partition key for a record id.

    Args:
        dmp_id: Record identifier, e.g. ``https://doi.org/10.1234/A1B2``.

    Returns:
        Partition key, e.g. ``RECORD#doi.org/10.1234/A1B2``.
    """
    return f"{_RECORD_PREFIX}{strip_scheme(dmp_id)}"


def decode_record_key(partition_key: str) -> str:
    """Recover the record id from a partition key.

    The scheme is not persisted, so decoded ids always use ``https://``.
    """
    return f"{DEFAULT_ID_SCHEME}{partition_key.removeprefix(_RECORD_PREFIX)}"


def core_key(version: str = LATEST_VERSION) -> str:
    """Build the sort key of a core document version."""
    return f"{_CORE_PREFIX}{version}"


def extension_key(version: str = LATEST_VERSION) -> str:
    """Build the sort key of an extension document version."""
    return f"{_EXTENSION_PREFIX}{version}"


def core_key_prefix() -> str:
    return _CORE_PREFIX


def extension_key_prefix() -> str:
    return _EXTENSION_PREFIX


def version_from_sort_key(sort_key: str) -> str:
    """Return the version token carried by a core or extension sort key."""
    for prefix in (_CORE_PREFIX, _EXTENSION_PREFIX):
        if sort_key.startswith(prefix):
            return sort_key[len(prefix):]
    return sort_key
