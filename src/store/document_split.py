"""Split DMP records into core and extension documents.

Only top-level keys are classified; nested values pass through as-is.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.constants import EXTENSION_FIELDS
from core.types import CoreDocument, ExtensionDocument

_ENVELOPE_KEY = "dmp"


def unwrap_document(document: Mapping[str, Any]) -> dict[str, Any]:
    """Return the body of the ``dmp`` envelope when present.

    Sibling keys next to the envelope are dropped.

    Args:
        document: Wrapped or flat record.

    Returns:
        Flat record fields.
    """
    inner = document.get(_ENVELOPE_KEY)
    if isinstance(inner, Mapping):
        return dict(inner)
    return dict(document)


def split_document(document: Mapping[str, Any]) -> tuple[CoreDocument, ExtensionDocument]:
    """Partition top-level fields by the extension allow-list.

    Args:
        document: Flat record fields.

    Returns:
        Pair of core and extension documents.
    """
    core: dict[str, Any] = {}
    extension: dict[str, Any] = {}
    for key, value in document.items():
        if key in EXTENSION_FIELDS:
            extension[key] = value
        else:
            core[key] = value
    return CoreDocument(core), ExtensionDocument(extension)


def merge_documents(core: CoreDocument, extension: ExtensionDocument | None) -> dict[str, Any]:
    """Shallow-merge a core document with its extension document.

    Extension fields win on key collision.
    """
    merged = dict(core.fields)
    if extension is not None:
        merged.update(extension.fields)
    return merged


def core_only(document: Mapping[str, Any]) -> dict[str, Any]:
    """Drop extension fields from a merged record."""
    return {key: value for key, value in document.items() if key not in EXTENSION_FIELDS}
