"""Shared typed models.

This module defines immutable models passed between the key codec,
document splitter, version policy and store operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class CoreDocument:
    """Standard-compliant portion of a DMP record.

    Attributes:
        fields: Top-level fields not owned by the extension document.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str | None:
        return self.fields.get("title")

    @property
    def created(self) -> str | None:
        return self.fields.get("created")

    @property
    def modified(self) -> str | None:
        return self.fields.get("modified")

    @property
    def identifier(self) -> str | None:
        """Return ``dmp_id.identifier`` when present."""
        dmp_id = self.fields.get("dmp_id")
        if isinstance(dmp_id, Mapping):
            identifier = dmp_id.get("identifier")
            return str(identifier) if identifier else None
        return None


@dataclass(frozen=True)
class ExtensionDocument:
    """Tool-specific portion of a DMP record.

    Attributes:
        fields: Top-level fields on the extension allow-list.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def provenance(self) -> str | None:
        return self.fields.get("provenance")

    @property
    def registered(self) -> str | None:
        return self.fields.get("registered") or None

    @property
    def tombstoned(self) -> str | None:
        return self.fields.get("tombstoned") or None


@dataclass(frozen=True)
class RecordVersion:
    """One entry of a record's version listing.

    Attributes:
        version: Version token (``latest``, a timestamp or ``tombstone``).
        modified: ``modified`` value stored on that version.
    """

    version: str
    modified: str


@dataclass(frozen=True)
class VersionIndexEntry:
    """Derived link to one version of a record."""

    access_url: str
    version: str

    def to_payload(self) -> dict[str, str]:
        return {"access_url": self.access_url, "version": self.version}
