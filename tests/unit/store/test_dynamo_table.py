"""Unit tests for the DynamoDB adapter."""

from __future__ import annotations

from decimal import Decimal

from core.config import DmpStoreConfig
from store.dynamo_table import (
    DynamoTable,
    create_dynamodb_client,
    marshall_item,
    unmarshall_item,
)


def _table(fake_client) -> DynamoTable:
    return DynamoTable(fake_client, "dmps-test")


def test_put_item_marshals_floats_as_numbers(fake_client) -> None:
    """Floats should be stored as DynamoDB numbers."""
    _table(fake_client).put_item({"PK": "RECORD#a", "SK": "VERSION#latest", "cost": 12.5})

    assert fake_client.stored("RECORD#a", "VERSION#latest")["cost"] == {"N": "12.5"}


def test_unmarshall_item_restores_ints_and_floats() -> None:
    """Numbers should come back as ints or floats rather than Decimals."""
    item = unmarshall_item(marshall_item({"count": 3, "cost": 12.5, "nested": [{"n": Decimal("2")}]}))

    assert item == {"count": 3, "cost": 12.5, "nested": [{"n": 2}]}


def test_query_follows_pagination(fake_client) -> None:
    """Query should collect every page of a partition."""
    table = _table(fake_client)
    for index in range(5):
        table.put_item({"PK": "RECORD#a", "SK": f"VERSION#2025-0{index + 1}-01T00:00:00Z"})

    items = table.query("RECORD#a", sort_key_prefix="VERSION#")

    assert len(items) == 5 and sum(name == "query" for name, _ in fake_client.calls) == 3


def test_query_filters_by_exact_sort_key(fake_client) -> None:
    """Exact sort-key queries should return a single item."""
    table = _table(fake_client)
    table.put_item({"PK": "RECORD#a", "SK": "VERSION#latest", "title": "t"})
    table.put_item({"PK": "RECORD#a", "SK": "EXTENSION#latest", "status": "draft"})

    items = table.query("RECORD#a", sort_key="VERSION#latest")

    assert items == [{"PK": "RECORD#a", "SK": "VERSION#latest", "title": "t"}]


def test_query_projection_uses_name_placeholders(fake_client) -> None:
    """Projected attributes should go through name placeholders."""
    table = _table(fake_client)
    table.put_item({"PK": "RECORD#a", "SK": "VERSION#latest", "modified": "m", "title": "t"})

    items = table.query("RECORD#a", sort_key_prefix="VERSION#", projection=("SK", "modified"))
    request = fake_client.calls[-1][1]

    assert items == [{"SK": "VERSION#latest", "modified": "m"}]
    assert request["ProjectionExpression"] == "#p0, #p1" and request["ConsistentRead"] is False


def test_delete_item_removes_one_key(fake_client) -> None:
    """Delete should remove only the addressed item."""
    table = _table(fake_client)
    table.put_item({"PK": "RECORD#a", "SK": "VERSION#latest"})
    table.put_item({"PK": "RECORD#a", "SK": "EXTENSION#latest"})

    table.delete_item("RECORD#a", "VERSION#latest")

    assert list(fake_client.items) == [("RECORD#a", "EXTENSION#latest")]


def test_scan_applies_filter_across_partitions(fake_client) -> None:
    """Scan should sweep every partition with the filter."""
    table = _table(fake_client)
    for name in ("a", "b", "c"):
        table.put_item({"PK": f"RECORD#{name}", "SK": "VERSION#latest", "modified": name})
        table.put_item({"PK": f"RECORD#{name}", "SK": "EXTENSION#latest"})

    items = table.scan("#sk = :sk", {":sk": "VERSION#latest"}, names={"#sk": "SK"})

    assert sorted(item["PK"] for item in items) == ["RECORD#a", "RECORD#b", "RECORD#c"]


def test_create_dynamodb_client_applies_endpoint_and_retries() -> None:
    """Client creation should honour endpoint and max attempts."""
    config = DmpStoreConfig(region="us-east-1", endpoint_url="http://localhost:8000", max_attempts=7)

    client = create_dynamodb_client(config)

    assert client.meta.endpoint_url == "http://localhost:8000"
    assert client.meta.config.retries["total_max_attempts"] == 7
