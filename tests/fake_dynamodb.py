"""In-memory stand-in for the low-level boto3 DynamoDB client."""

from __future__ import annotations

import copy
from typing import Any

from botocore.exceptions import ClientError


class FakeDynamoClient:
    """Store marshalled items keyed by (PK, SK) and serve paged reads.

    Only the expression shapes emitted by ``DynamoTable`` are understood.
    """

    def __init__(self, page_size: int = 2) -> None:
        self.items: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail_on: set[str] = set()
        self.fail_once_at: dict[str, int] = {}
        self._page_size = page_size

    def put_item(self, **request: Any) -> dict[str, Any]:
        self._record("put_item", request)
        item = copy.deepcopy(request["Item"])
        self.items[(item["PK"]["S"], item["SK"]["S"])] = item
        return {}

    def delete_item(self, **request: Any) -> dict[str, Any]:
        self._record("delete_item", request)
        key = request["Key"]
        self.items.pop((key["PK"]["S"], key["SK"]["S"]), None)
        return {}

    def query(self, **request: Any) -> dict[str, Any]:
        self._record("query", request)
        values = request["ExpressionAttributeValues"]
        partition_key = values[":pk"]["S"]
        sort_value = values.get(":sk", {}).get("S")
        prefix_match = "begins_with" in request["KeyConditionExpression"]
        matches = []
        for (pk, sk), item in sorted(self.items.items()):
            if pk != partition_key:
                continue
            if sort_value is not None:
                if prefix_match and not sk.startswith(sort_value):
                    continue
                if not prefix_match and sk != sort_value:
                    continue
            matches.append(item)
        return self._page(matches, request)

    def scan(self, **request: Any) -> dict[str, Any]:
        self._record("scan", request)
        names = request.get("ExpressionAttributeNames", {})
        attribute, placeholder = (part.strip() for part in request["FilterExpression"].split("="))
        attribute = names.get(attribute, attribute)
        expected = request["ExpressionAttributeValues"][placeholder]
        matches = [
            item for _, item in sorted(self.items.items()) if item.get(attribute) == expected
        ]
        return self._page(matches, request)

    def stored(self, partition_key: str, sort_key: str) -> dict[str, Any] | None:
        return self.items.get((partition_key, sort_key))

    def _record(self, name: str, request: dict[str, Any]) -> None:
        self.calls.append((name, request))
        if self.fail_once_at.get(name) == self.call_count(name):
            del self.fail_once_at[name]
            self._raise_throttled(name)
        if name in self.fail_on:
            self._raise_throttled(name)

    def call_count(self, name: str) -> int:
        return sum(1 for call_name, _ in self.calls if call_name == name)

    def _raise_throttled(self, name: str) -> None:
        error = {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}
        raise ClientError({"Error": error}, name)

    def _page(self, matches: list[dict[str, Any]], request: dict[str, Any]) -> dict[str, Any]:
        start = 0
        exclusive_start = request.get("ExclusiveStartKey")
        if exclusive_start:
            start_key = (exclusive_start["PK"]["S"], exclusive_start["SK"]["S"])
            keys = [(item["PK"]["S"], item["SK"]["S"]) for item in matches]
            start = keys.index(start_key) + 1
        page = matches[start:start + self._page_size]
        response: dict[str, Any] = {"Items": [self._project(item, request) for item in page]}
        if start + self._page_size < len(matches):
            last = page[-1]
            response["LastEvaluatedKey"] = {"PK": last["PK"], "SK": last["SK"]}
        return response

    def _project(self, item: dict[str, Any], request: dict[str, Any]) -> dict[str, Any]:
        expression = request.get("ProjectionExpression")
        if not expression:
            return copy.deepcopy(item)
        names = request.get("ExpressionAttributeNames", {})
        attributes = [names.get(part.strip(), part.strip()) for part in expression.split(",")]
        return {name: copy.deepcopy(item[name]) for name in attributes if name in item}
