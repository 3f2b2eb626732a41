"""DMP store CLI entry points.
This module exposes record lookup, write and retirement commands.
It maps argparse commands onto store operations and prints JSON.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
from pathlib import Path
from typing import Any, Sequence

from core.config import DmpStoreConfig
from core.logging_config import configure_logging
from store.dmp_store import DmpStore


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="dmpstore", description="DMP document store CLI")
    parser.add_argument("--table-name", help="Override DMP_STORE_TABLE_NAME for this command")
    parser.add_argument("--region", help="Override DMP_STORE_REGION for this command")
    parser.add_argument("--endpoint-url", help="Override DMP_STORE_ENDPOINT_URL for this command")
    parser.add_argument("--domain-name", help="Override DMP_STORE_DOMAIN_NAME for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_id_command(subparsers, "exists", "Check whether a DMP has a latest version")
    _add_id_command(subparsers, "versions", "List version timestamps of a DMP")
    _add_get_command(subparsers)
    _add_create_command(subparsers)
    _add_update_command(subparsers)
    _add_id_command(subparsers, "tombstone", "Tombstone a registered DMP", extensions=True)
    _add_id_command(subparsers, "delete", "Delete an unregistered DMP", extensions=True)
    subparsers.add_parser("list-latest", help="List every DMP id with its latest modified")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the DMP store CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    store = _build_store(args)
    include_extensions = not getattr(args, "no_extensions", False)
    if args.command == "exists":
        _print_json(store.exists(args.dmp_id))
        return 0
    if args.command == "versions":
        versions = store.list_versions(args.dmp_id)
        for version in versions:
            print(f"{version.version}\t{version.modified}")
        return 0
    if args.command == "get":
        _print_json(store.get(args.dmp_id, args.version, include_extensions))
        return 0
    if args.command == "create":
        document = _read_document(args.document)
        _print_json(store.create(args.dmp_id, document, args.version, include_extensions))
        return 0
    if args.command == "update":
        document = _read_document(args.document)
        _print_json(store.update(document, args.grace_period_ms, include_extensions))
        return 0
    if args.command == "tombstone":
        _print_json(store.tombstone(args.dmp_id, include_extensions))
        return 0
    if args.command == "delete":
        _print_json(store.delete(args.dmp_id, include_extensions))
        return 0
    if args.command == "list-latest":
        _print_json(store.list_latest())
        return 0
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_store(args: argparse.Namespace) -> DmpStore:
    """Build the store with optional config overrides.

    Args:
        args: Parsed CLI args.

    Returns:
        Configured store.
    """
    config = DmpStoreConfig.from_env()
    overrides = {
        "table_name": args.table_name,
        "region": args.region,
        "endpoint_url": args.endpoint_url,
        "domain_name": args.domain_name,
    }
    config = replace(config, **{key: value for key, value in overrides.items() if value})
    configure_logging(config.log_level)
    return DmpStore(config)


def _read_document(path: str) -> dict[str, Any]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise argparse.ArgumentTypeError(f"Expected a JSON object in {path}.")
    return payload


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _add_id_command(
    subparsers: Any, name: str, help_text: str, extensions: bool = False
) -> None:
    parser = subparsers.add_parser(name, help=help_text)
    parser.add_argument("dmp_id", help="DMP identifier, e.g. https://doi.org/10.1234/A1B2")
    if extensions:
        _add_extensions_flag(parser)


def _add_get_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("get", help="Fetch one or all versions of a DMP")
    parser.add_argument("dmp_id", help="DMP identifier")
    parser.add_argument("--version", help="Version token; all versions when omitted")
    _add_extensions_flag(parser)


def _add_create_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("create", help="Create a DMP from a JSON document")
    parser.add_argument("dmp_id", help="DMP identifier")
    parser.add_argument("document", help="Path to the JSON document")
    parser.add_argument("--version", default="latest", help="Version token to create")
    _add_extensions_flag(parser)


def _add_update_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("update", help="Update the latest version of a DMP")
    parser.add_argument("document", help="Path to the JSON document")
    parser.add_argument(
        "--grace-period-ms",
        type=int,
        help="Override DMP_STORE_GRACE_PERIOD_MS for this update",
    )
    _add_extensions_flag(parser)


def _add_extensions_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-extensions",
        action="store_true",
        help="Return only the standard-compliant fields",
    )
