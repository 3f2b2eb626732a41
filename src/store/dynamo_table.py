"""DynamoDB backing-store adapter.

This module wraps a low-level boto3 DynamoDB client with the small
capability set the DMP store needs: single-item put/delete and paginated
query/scan. Retries are configured on the client, never repeated here.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterator, Mapping, Sequence

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.config import Config

from core.config import DmpStoreConfig
from core.constants import PARTITION_KEY_ATTRIBUTE, SORT_KEY_ATTRIBUTE
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
_SERIALIZER = TypeSerializer()
_DESERIALIZER = TypeDeserializer()


def create_dynamodb_client(config: DmpStoreConfig) -> Any:
    """Create a boto3 DynamoDB client from config.

    Args:
        config: Runtime config with region, endpoint and retry budget.

    Returns:
        Low-level boto3 DynamoDB client.
    """
    session = boto3.session.Session(region_name=config.region)
    client_config = Config(
        retries={"total_max_attempts": config.max_attempts, "mode": "standard"}
    )
    client_kwargs: dict[str, Any] = {"config": client_config}
    if config.endpoint_url:
        client_kwargs["endpoint_url"] = config.endpoint_url
    return session.client("dynamodb", **client_kwargs)


class DynamoTable:
    """Single-table adapter over a low-level DynamoDB client.

    Items are plain dicts on both sides. Reads are eventually consistent.
    """

    def __init__(self, client: Any, table_name: str) -> None:
        """Initialize the adapter.

        Args:
            client: Low-level boto3 DynamoDB client (or compatible fake).
            table_name: Target table name.
        """
        self._client = client
        self._table_name = table_name

    @property
    def table_name(self) -> str:
        return self._table_name

    def put_item(self, item: Mapping[str, Any]) -> None:
        """Create or replace one item.

        Args:
            item: Item fields including ``PK`` and ``SK``.
        """
        self._client.put_item(
            TableName=self._table_name,
            Item=marshall_item(item),
            ReturnConsumedCapacity="TOTAL",
        )

    def delete_item(self, partition_key: str, sort_key: str) -> None:
        """Delete one item by its full primary key."""
        self._client.delete_item(
            TableName=self._table_name,
            Key={
                PARTITION_KEY_ATTRIBUTE: {"S": partition_key},
                SORT_KEY_ATTRIBUTE: {"S": sort_key},
            },
            ReturnConsumedCapacity="TOTAL",
        )

    def query(
        self,
        partition_key: str,
        sort_key: str | None = None,
        sort_key_prefix: str | None = None,
        projection: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Query one partition, optionally narrowed by sort key.

        Args:
            partition_key: Partition key value.
            sort_key: Exact sort key to match.
            sort_key_prefix: Sort key prefix to match when no exact key is given.
            projection: Optional attribute names to return.

        Returns:
            Items ordered ascending by sort key.
        """
        condition = "#pk = :pk"
        names = {"#pk": PARTITION_KEY_ATTRIBUTE}
        values: dict[str, Any] = {":pk": {"S": partition_key}}
        if sort_key is not None:
            condition += " AND #sk = :sk"
            names["#sk"] = SORT_KEY_ATTRIBUTE
            values[":sk"] = {"S": sort_key}
        elif sort_key_prefix is not None:
            condition += " AND begins_with(#sk, :sk)"
            names["#sk"] = SORT_KEY_ATTRIBUTE
            values[":sk"] = {"S": sort_key_prefix}
        request: dict[str, Any] = {
            "TableName": self._table_name,
            "KeyConditionExpression": condition,
            "ExpressionAttributeValues": values,
            "ConsistentRead": False,
            "ReturnConsumedCapacity": "TOTAL",
        }
        _add_projection(request, names, projection)
        request["ExpressionAttributeNames"] = names
        _LOGGER.debug(
            "dynamo_query",
            table=self._table_name,
            partition_key=partition_key,
            sort_key=sort_key,
            sort_key_prefix=sort_key_prefix,
        )
        return list(self._paginate(self._client.query, request))

    def scan(
        self,
        filter_expression: str,
        values: Mapping[str, Any],
        names: Mapping[str, str] | None = None,
        projection: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Sweep the whole table with a filter.

        Args:
            filter_expression: DynamoDB filter expression.
            values: Plain values keyed by expression placeholder.
            names: Optional attribute name placeholders.
            projection: Optional attribute names to return.

        Returns:
            Matching items in table order.
        """
        expression_names = dict(names or {})
        request: dict[str, Any] = {
            "TableName": self._table_name,
            "FilterExpression": filter_expression,
            "ExpressionAttributeValues": {
                placeholder: _SERIALIZER.serialize(to_dynamo_value(value))
                for placeholder, value in values.items()
            },
            "ConsistentRead": False,
            "ReturnConsumedCapacity": "TOTAL",
        }
        _add_projection(request, expression_names, projection)
        if expression_names:
            request["ExpressionAttributeNames"] = expression_names
        _LOGGER.debug("dynamo_scan", table=self._table_name, filter=filter_expression)
        return list(self._paginate(self._client.scan, request))

    def _paginate(self, call: Any, request: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Follow ``LastEvaluatedKey`` until the result set is exhausted."""
        while True:
            response = call(**request)
            for item in response.get("Items", []):
                yield unmarshall_item(item)
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return
            request["ExclusiveStartKey"] = last_key


def marshall_item(item: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a plain item into DynamoDB attribute values."""
    return {key: _SERIALIZER.serialize(to_dynamo_value(value)) for key, value in item.items()}


def unmarshall_item(item: Mapping[str, Any]) -> dict[str, Any]:
    """Convert DynamoDB attribute values into a plain item."""
    return {key: from_dynamo_value(_DESERIALIZER.deserialize(value)) for key, value in item.items()}


def to_dynamo_value(value: Any) -> Any:
    """Replace floats with Decimals, recursively."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {key: to_dynamo_value(inner) for key, inner in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo_value(inner) for inner in value]
    return value


def from_dynamo_value(value: Any) -> Any:
    """Replace Decimals with ints or floats, recursively."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, Mapping):
        return {key: from_dynamo_value(inner) for key, inner in value.items()}
    if isinstance(value, list):
        return [from_dynamo_value(inner) for inner in value]
    return value


def _add_projection(
    request: dict[str, Any],
    names: dict[str, str],
    projection: Sequence[str] | None,
) -> None:
    """Add a projection expression using name placeholders.

    Placeholders sidestep reserved words such as ``modified``.
    """
    if not projection:
        return
    placeholders = []
    for index, attribute in enumerate(projection):
        placeholder = f"#p{index}"
        names[placeholder] = attribute
        placeholders.append(placeholder)
    request["ProjectionExpression"] = ", ".join(placeholders)
