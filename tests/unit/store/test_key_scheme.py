"""Unit tests for the partition/sort key codec."""

from __future__ import annotations

from store.key_scheme import (
    core_key,
    decode_record_key,
    extension_key,
    record_key,
    version_from_sort_key,
)


def test_record_key_strips_scheme() -> None:
    """Partition keys should not carry the URI scheme."""
    assert record_key("https://doi.org/10.48321/D1A2B3") == "RECORD#doi.org/10.48321/D1A2B3"


def test_record_key_accepts_id_without_scheme() -> None:
    """Ids without a scheme should map to the same partition key."""
    assert record_key("doi.org/10.48321/D1A2B3") == record_key("http://doi.org/10.48321/D1A2B3")


def test_decode_record_key_restores_https_id() -> None:
    """Decoding should recover the https id."""
    dmp_id = "https://doi.org/10.48321/D1A2B3"

    assert decode_record_key(record_key(dmp_id)) == dmp_id


def test_sort_keys_default_to_latest() -> None:
    """Sort keys should default to the latest token."""
    assert (core_key(), extension_key()) == ("VERSION#latest", "EXTENSION#latest")


def test_sort_keys_carry_timestamp_tokens() -> None:
    """Snapshot sort keys should embed the timestamp token."""
    assert core_key("2025-03-01T12:00:00Z") == "VERSION#2025-03-01T12:00:00Z"


def test_version_from_sort_key_handles_both_prefixes() -> None:
    """Tokens should be recovered from core and extension sort keys."""
    tokens = {
        version_from_sort_key(core_key("tombstone")),
        version_from_sort_key(extension_key("tombstone")),
    }

    assert tokens == {"tombstone"}
