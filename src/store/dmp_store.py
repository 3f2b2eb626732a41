"""Versioned document store for DMP records.

This module persists, versions, splits and retires DMP metadata records
in a single DynamoDB table. Core and extension documents for a version
share a version token under different sort-key prefixes. Multi-item
writes are not atomic; core items are always written before extension
items and reads treat a missing extension item as a core-only record.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Mapping

from botocore.exceptions import BotoCoreError, ClientError

from core.config import DmpStoreConfig
from core.constants import (
    LATEST_VERSION,
    PARTITION_KEY_ATTRIBUTE,
    SORT_KEY_ATTRIBUTE,
    TOMBSTONE_TITLE_PREFIX,
    TOMBSTONE_VERSION,
)
from core.errors import (
    BackingStoreError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    StaleWriteError,
    TombstonedError,
    ValidationError,
)
from core.logging_config import get_logger
from core.timestamps import parse_timestamp, to_rfc3339
from core.types import CoreDocument, ExtensionDocument, RecordVersion, VersionIndexEntry
from store.document_split import core_only, merge_documents, split_document, unwrap_document
from store.dynamo_table import DynamoTable, create_dynamodb_client
from store.key_scheme import (
    core_key,
    core_key_prefix,
    decode_record_key,
    extension_key,
    extension_key_prefix,
    record_key,
    strip_scheme,
    version_from_sort_key,
)
from store.version_policy import must_snapshot

_LOGGER = get_logger(__name__)
_KEY_ATTRIBUTES = (PARTITION_KEY_ATTRIBUTE, SORT_KEY_ATTRIBUTE)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DmpStore:
    """Store operations over the DMP table.

    Lifecycle per record id: created by ``create``, overwritten in place by
    ``update`` (optionally after snapshotting latest), then either retired
    by ``tombstone`` (registered records) or removed by ``delete``
    (unregistered records).
    """

    def __init__(
        self,
        config: DmpStoreConfig,
        client: Any | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            config: Runtime configuration.
            client: Optional low-level DynamoDB client; built from config when omitted.
            clock: Optional source of the current UTC time.
        """
        self._config = config
        self._table = DynamoTable(client or create_dynamodb_client(config), config.table_name)
        self._clock = clock or _utc_now

    @property
    def config(self) -> DmpStoreConfig:
        return self._config

    def exists(self, dmp_id: str) -> bool:
        """Check whether a record has a latest version.

        Args:
            dmp_id: Record identifier.

        Returns:
            True when ``VERSION#latest`` exists.

        Raises:
            ValidationError: If the id is missing.
            BackingStoreError: If the query fails.
        """
        _require_id(dmp_id)
        return self._version_exists(dmp_id, LATEST_VERSION, operation="exists")

    def list_versions(self, dmp_id: str) -> list[RecordVersion]:
        """List version tokens and their ``modified`` values, newest first.

        Args:
            dmp_id: Record identifier.

        Returns:
            Versions ordered descending by ``modified``; empty when none exist.
        """
        _require_id(dmp_id)
        with _backing_store_call("list_versions", dmp_id, None):
            items = self._table.query(
                record_key(dmp_id),
                sort_key_prefix=core_key_prefix(),
                projection=(*_KEY_ATTRIBUTES, "modified"),
            )
        versions = [
            RecordVersion(
                version=version_from_sort_key(str(item[SORT_KEY_ATTRIBUTE])),
                modified=str(item["modified"]),
            )
            for item in items
            if item.get(SORT_KEY_ATTRIBUTE) and item.get("modified")
        ]
        return sorted(versions, key=_modified_sort_key, reverse=True)

    def get(
        self,
        dmp_id: str,
        version: str | None = None,
        include_extensions: bool = True,
    ) -> list[dict[str, Any]]:
        """Fetch one version, or every version, of a record.

        Args:
            dmp_id: Record identifier.
            version: Version token; all versions when omitted.
            include_extensions: Merge extension documents into the results.

        Returns:
            Merged documents ordered by version token descending; empty when
            nothing matches.
        """
        _require_id(dmp_id)
        partition_key = record_key(dmp_id)
        with _backing_store_call("get", dmp_id, version):
            if version:
                core_items = self._table.query(partition_key, sort_key=core_key(version))
            else:
                core_items = self._table.query(partition_key, sort_key_prefix=core_key_prefix())
            extension_items: list[dict[str, Any]] = []
            if include_extensions and core_items:
                if version:
                    extension_items = self._table.query(
                        partition_key, sort_key=extension_key(version)
                    )
                else:
                    extension_items = self._table.query(
                        partition_key, sort_key_prefix=extension_key_prefix()
                    )
        if not core_items:
            return []

        extensions = {
            version_from_sort_key(str(item[SORT_KEY_ATTRIBUTE])): ExtensionDocument(
                _strip_keys(item)
            )
            for item in extension_items
        }
        version_index = self._version_index(dmp_id) if extensions else []
        documents: list[dict[str, Any]] = []
        ordered = sorted(core_items, key=lambda item: str(item[SORT_KEY_ATTRIBUTE]), reverse=True)
        for item in ordered:
            token = version_from_sort_key(str(item[SORT_KEY_ATTRIBUTE]))
            core = CoreDocument(_strip_keys(item))
            extension = extensions.get(token)
            if extension is not None and version_index:
                extension = ExtensionDocument({**extension.fields, "version": version_index})
            documents.append(merge_documents(core, extension))
        return documents

    def create(
        self,
        dmp_id: str,
        document: Mapping[str, Any],
        version: str = LATEST_VERSION,
        include_extensions: bool = True,
    ) -> dict[str, Any]:
        """Persist a new version of a record.

        Args:
            dmp_id: Record identifier.
            document: Full record, flat or wrapped in a ``dmp`` envelope.
            version: ``latest`` or an RFC3339 snapshot timestamp.
            include_extensions: Merge extension fields into the returned record.

        Returns:
            The persisted record as read back from the table.

        Raises:
            ValidationError: If the id or document is missing, or the version is reserved.
            ConflictError: If the target version already exists.
            BackingStoreError: If a table call fails.
        """
        _require_id(dmp_id)
        if not document:
            raise ValidationError(f"Missing DMP metadata record for id: {dmp_id}.")
        if not version or version == TOMBSTONE_VERSION:
            raise ValidationError(
                f"Invalid version '{version}' for DMP id: {dmp_id}. "
                "Use 'latest' or an RFC3339 timestamp; tombstones are created by tombstone()."
            )
        if self._version_exists(dmp_id, version, operation="create"):
            _LOGGER.error("dmp_version_exists", dmp_id=dmp_id, version=version)
            raise ConflictError(
                f"Version '{version}' already exists for DMP id: {dmp_id}. "
                "Use update() to change the latest version."
            )

        core, extension = split_document(unwrap_document(document))
        self._write_version(dmp_id, version, core, extension, operation="create")
        _LOGGER.info("dmp_created", dmp_id=dmp_id, version=version)
        return self._read_back(dmp_id, version, core, extension, include_extensions)

    def update(
        self,
        document: Mapping[str, Any],
        grace_period_ms: int | None = None,
        include_extensions: bool = True,
    ) -> dict[str, Any]:
        """Overwrite the latest version of a record.

        The current latest is first preserved as an immutable snapshot, keyed
        by its own ``modified`` value, when the provenance changes or the
        latest is older than the grace period.

        Args:
            document: Full record carrying ``dmp_id.identifier`` and ``modified``.
            grace_period_ms: Override of the configured grace period.
            include_extensions: Merge extension fields into the returned record.

        Returns:
            The refreshed latest record.

        Raises:
            ValidationError: If the document, its identifier or ``modified`` is missing.
            NotFoundError: If the record has no latest version.
            TombstonedError: If the record has been tombstoned.
            StaleWriteError: If ``modified`` is not newer than the latest version.
            BackingStoreError: If a table call fails.
        """
        if not document:
            raise ValidationError("Missing DMP metadata record for update.")
        core, extension = split_document(unwrap_document(document))
        dmp_id = core.identifier
        if not dmp_id:
            raise ValidationError(
                "Missing DMP ID: the record must carry dmp_id.identifier to be updated."
            )
        if not core.modified:
            raise ValidationError(f"Missing modified timestamp on update for DMP id: {dmp_id}.")

        latest = self._load_version(dmp_id, LATEST_VERSION, operation="update")
        if latest is None:
            if self._version_exists(dmp_id, TOMBSTONE_VERSION, operation="update"):
                raise TombstonedError(f"Cannot update tombstoned DMP id: {dmp_id}.")
            raise NotFoundError(
                f"Unable to find DMP id: {dmp_id}, ver: {LATEST_VERSION}. Create it first."
            )
        latest_core, latest_extension = latest
        if latest_extension.tombstoned:
            raise TombstonedError(f"Cannot update tombstoned DMP id: {dmp_id}.")

        if latest_core.modified:
            if _parse_modified(core.modified, dmp_id) <= parse_timestamp(latest_core.modified):
                _LOGGER.warning(
                    "dmp_stale_write",
                    dmp_id=dmp_id,
                    incoming_modified=core.modified,
                    latest_modified=latest_core.modified,
                )
                raise StaleWriteError(
                    f"Cannot update DMP id: {dmp_id}: modified {core.modified} is not newer "
                    f"than the latest version's {latest_core.modified}."
                )
            grace_period = (
                self._config.grace_period_ms if grace_period_ms is None else grace_period_ms
            )
            now = self._clock()
            snapshot = must_snapshot(
                latest_extension, extension, latest_core.modified, now, grace_period
            )
            _LOGGER.debug(
                "dmp_snapshot_decision",
                dmp_id=dmp_id,
                latest_modified=latest_core.modified,
                now=to_rfc3339(now),
                grace_period_ms=grace_period,
                snapshot=snapshot,
            )
            if snapshot and self._version_exists(
                dmp_id, latest_core.modified, operation="update"
            ):
                # Left behind by an earlier update that failed before replacing latest.
                _LOGGER.info(
                    "dmp_snapshot_present", dmp_id=dmp_id, version=latest_core.modified
                )
            elif snapshot:
                self.create(
                    dmp_id,
                    merge_documents(latest_core, latest_extension),
                    version=latest_core.modified,
                )

        self._write_version(dmp_id, LATEST_VERSION, core, extension, operation="update")
        _LOGGER.info("dmp_updated", dmp_id=dmp_id, modified=core.modified)
        return self._read_back(dmp_id, LATEST_VERSION, core, extension, include_extensions)

    def tombstone(self, dmp_id: str, include_extensions: bool = True) -> dict[str, Any]:
        """Retire a registered record.

        Args:
            dmp_id: Record identifier.
            include_extensions: Merge extension fields into the returned record.

        Returns:
            The tombstone record.

        Raises:
            PreconditionError: If there is no latest version or it is not registered.
            BackingStoreError: If a table call fails.
        """
        _require_id(dmp_id)
        latest = self._load_version(dmp_id, LATEST_VERSION, operation="tombstone")
        if latest is None:
            _LOGGER.error("dmp_latest_missing", dmp_id=dmp_id, operation="tombstone")
            raise PreconditionError(
                f"Unable to tombstone DMP id: {dmp_id} because it has no latest version."
            )
        latest_core, latest_extension = latest
        if not latest_extension.registered:
            _LOGGER.warning("dmp_tombstone_unregistered", dmp_id=dmp_id)
            raise PreconditionError(
                f"Unable to tombstone DMP id: {dmp_id} because it is not registered/published. "
                "Use delete() for unregistered records."
            )

        now = to_rfc3339(self._clock())
        core = CoreDocument(
            {
                **latest_core.fields,
                "title": f"{TOMBSTONE_TITLE_PREFIX}{latest_core.title or ''}",
                "modified": now,
            }
        )
        extension = ExtensionDocument({**latest_extension.fields, "tombstoned": now})
        partition_key = record_key(dmp_id)
        with _backing_store_call("tombstone", dmp_id, TOMBSTONE_VERSION):
            self._table.put_item(_item(partition_key, core_key(TOMBSTONE_VERSION), core.fields))
            self._table.delete_item(partition_key, core_key(LATEST_VERSION))
            self._table.put_item(
                _item(partition_key, extension_key(TOMBSTONE_VERSION), extension.fields)
            )
            self._table.delete_item(partition_key, extension_key(LATEST_VERSION))
        _LOGGER.info("dmp_tombstoned", dmp_id=dmp_id, tombstoned=now)
        return self._read_back(dmp_id, TOMBSTONE_VERSION, core, extension, include_extensions)

    def delete(self, dmp_id: str, include_extensions: bool = True) -> dict[str, Any]:
        """Remove every item of an unregistered record.

        Args:
            dmp_id: Record identifier.
            include_extensions: Keep extension fields in the returned record.

        Returns:
            The latest record as it was before deletion.

        Raises:
            NotFoundError: If there is no latest version.
            PreconditionError: If the record is registered.
            BackingStoreError: If a table call fails.
        """
        _require_id(dmp_id)
        documents = self.get(dmp_id, LATEST_VERSION, include_extensions=True)
        if not documents:
            _LOGGER.error("dmp_latest_missing", dmp_id=dmp_id, operation="delete")
            raise NotFoundError(f"Unable to find DMP id: {dmp_id}, ver: {LATEST_VERSION}.")
        latest = documents[0]
        if latest.get("registered"):
            _LOGGER.warning("dmp_delete_registered", dmp_id=dmp_id)
            raise PreconditionError(
                f"Unable to delete DMP id: {dmp_id} because it is registered. "
                "Use tombstone() for registered records."
            )

        partition_key = record_key(dmp_id)
        with _backing_store_call("delete", dmp_id, None):
            items = self._table.query(partition_key, projection=_KEY_ATTRIBUTES)
            for item in items:
                self._table.delete_item(partition_key, str(item[SORT_KEY_ATTRIBUTE]))
        _LOGGER.info("dmp_deleted", dmp_id=dmp_id, item_count=len(items))
        return latest if include_extensions else core_only(latest)

    def list_latest(self) -> dict[str, str]:
        """Map every record id with a latest version to its ``modified`` value.

        This sweeps the whole table and is meant for maintenance jobs.
        """
        with _backing_store_call("list_latest", None, LATEST_VERSION):
            items = self._table.scan(
                "#sk = :sk",
                {":sk": core_key(LATEST_VERSION)},
                names={"#sk": SORT_KEY_ATTRIBUTE},
                projection=(PARTITION_KEY_ATTRIBUTE, "modified"),
            )
        return {
            decode_record_key(str(item[PARTITION_KEY_ATTRIBUTE])): str(item["modified"])
            for item in items
            if item.get(PARTITION_KEY_ATTRIBUTE) and item.get("modified")
        }

    def _version_exists(self, dmp_id: str, version: str, operation: str) -> bool:
        with _backing_store_call(operation, dmp_id, version):
            items = self._table.query(
                record_key(dmp_id),
                sort_key=core_key(version),
                projection=(PARTITION_KEY_ATTRIBUTE,),
            )
        return len(items) > 0

    def _load_version(
        self, dmp_id: str, version: str, operation: str
    ) -> tuple[CoreDocument, ExtensionDocument] | None:
        """Load the stored core and extension documents of one version.

        Returns None when the core item is absent. A missing extension item
        yields an empty extension document.
        """
        partition_key = record_key(dmp_id)
        with _backing_store_call(operation, dmp_id, version):
            core_items = self._table.query(partition_key, sort_key=core_key(version))
            if not core_items:
                return None
            extension_items = self._table.query(partition_key, sort_key=extension_key(version))
        core = CoreDocument(_strip_keys(core_items[0]))
        extension = ExtensionDocument(_strip_keys(extension_items[0]) if extension_items else {})
        return core, extension

    def _write_version(
        self,
        dmp_id: str,
        version: str,
        core: CoreDocument,
        extension: ExtensionDocument,
        operation: str,
    ) -> None:
        """Write the core item, then the extension item, of one version."""
        partition_key = record_key(dmp_id)
        with _backing_store_call(operation, dmp_id, version):
            self._table.put_item(_item(partition_key, core_key(version), core.fields))
            self._table.put_item(_item(partition_key, extension_key(version), extension.fields))

    def _read_back(
        self,
        dmp_id: str,
        version: str,
        core: CoreDocument,
        extension: ExtensionDocument,
        include_extensions: bool,
    ) -> dict[str, Any]:
        """Re-read a version just written, falling back to the written payload.

        Reads are eventually consistent and may miss a fresh write.
        """
        documents = self.get(dmp_id, version, include_extensions)
        if documents:
            return documents[0]
        _LOGGER.debug("dmp_read_back_missed", dmp_id=dmp_id, version=version)
        return merge_documents(core, extension if include_extensions else None)

    def _version_index(self, dmp_id: str) -> list[dict[str, str]]:
        """Build access links for every version, newest first.

        The newest entry has no ``?version=`` query string.
        """
        base_url = f"https://{self._config.domain_name}/dmps/{strip_scheme(dmp_id)}"
        entries = []
        for position, version in enumerate(self.list_versions(dmp_id)):
            suffix = "" if position == 0 else f"?version={version.modified}"
            entries.append(
                VersionIndexEntry(access_url=f"{base_url}{suffix}", version=version.modified)
            )
        return [entry.to_payload() for entry in entries]


@contextmanager
def _backing_store_call(
    operation: str, dmp_id: str | None, version: str | None
) -> Iterator[None]:
    """Wrap botocore failures in a BackingStoreError with call context."""
    try:
        yield
    except (BotoCoreError, ClientError) as error:
        _LOGGER.error(
            "backing_store_failed",
            operation=operation,
            dmp_id=dmp_id,
            version=version,
            error=str(error),
        )
        raise BackingStoreError(
            f"Unable to {operation} DMP id: {dmp_id}, ver: {version} - {error}",
            operation=operation,
            dmp_id=dmp_id,
            version=version,
        ) from error


def _require_id(dmp_id: str | None) -> None:
    if not dmp_id or not dmp_id.strip():
        raise ValidationError("Missing DMP ID. Provide the record identifier.")


def _parse_modified(value: str, dmp_id: str) -> datetime:
    try:
        return parse_timestamp(value)
    except ValueError as error:
        raise ValidationError(
            f"Invalid modified timestamp '{value}' for DMP id: {dmp_id}. Use RFC3339."
        ) from error


def _modified_sort_key(version: RecordVersion) -> datetime:
    """Order versions chronologically; unparseable values sort oldest."""
    try:
        return parse_timestamp(version.modified)
    except ValueError:
        _LOGGER.warning(
            "dmp_unparseable_modified", version=version.version, modified=version.modified
        )
        return datetime.min.replace(tzinfo=timezone.utc)


def _item(partition_key: str, sort_key: str, fields: Mapping[str, Any]) -> dict[str, Any]:
    return {**fields, PARTITION_KEY_ATTRIBUTE: partition_key, SORT_KEY_ATTRIBUTE: sort_key}


def _strip_keys(item: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in item.items() if key not in _KEY_ATTRIBUTES}
