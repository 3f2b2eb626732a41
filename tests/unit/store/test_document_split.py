"""Unit tests for core/extension document splitting."""

from __future__ import annotations

from core.constants import EXTENSION_FIELDS
from core.types import CoreDocument, ExtensionDocument
from store.document_split import core_only, merge_documents, split_document, unwrap_document
from tests.sample_records import sample_dmp


def test_split_document_routes_allow_listed_fields_to_extension() -> None:
    """Only allow-listed fields should land in the extension document."""
    core, extension = split_document(sample_dmp(registered="2025-03-02T00:00:00Z"))

    assert set(extension.fields) == {
        "provenance",
        "privacy",
        "status",
        "featured",
        "narrative",
        "registered",
    }
    assert not set(core.fields) & set(EXTENSION_FIELDS)


def test_split_document_does_not_inspect_nested_values() -> None:
    """Nested keys named like extension fields should stay in core."""
    core, extension = split_document({"project": [{"status": "planned"}]})

    assert core.fields == {"project": [{"status": "planned"}]} and not extension.fields


def test_merge_of_split_round_trips() -> None:
    """Merging the split halves should reproduce the record."""
    record = sample_dmp()

    assert merge_documents(*split_document(record)) == record


def test_merge_prefers_extension_on_collision() -> None:
    """Extension values should win when both halves share a key."""
    merged = merge_documents(
        CoreDocument({"title": "core"}), ExtensionDocument({"title": "extension"})
    )

    assert merged["title"] == "extension"


def test_merge_without_extension_returns_core_fields() -> None:
    """A missing extension document should yield a core-only record."""
    core, _ = split_document(sample_dmp())

    assert merge_documents(core, None) == dict(core.fields)


def test_unwrap_document_strips_dmp_envelope() -> None:
    """Records wrapped in a dmp envelope should be unwrapped."""
    record = sample_dmp()

    assert unwrap_document({"dmp": record}) == record


def test_unwrap_document_ignores_keys_beside_envelope() -> None:
    """Sibling keys next to a dmp envelope should not leak into the record."""
    record = sample_dmp()

    assert unwrap_document({"dmp": record, "source": "api"}) == record


def test_core_only_drops_extension_fields() -> None:
    """core_only should keep just the standard-compliant fields."""
    assert "provenance" not in core_only(sample_dmp())
