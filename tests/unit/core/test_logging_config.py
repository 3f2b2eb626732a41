"""Unit tests for structured logging setup."""

from __future__ import annotations

import json

from core.logging_config import configure_logging, get_logger


def test_configure_logging_renders_json_events(capsys) -> None:
    """Events should render as JSON with level and fields."""
    configure_logging("info")

    get_logger("tests.logging").info("dmp_created", dmp_id="https://doi.org/10.1/X")
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])

    assert payload["event"] == "dmp_created" and payload["level"] == "info"


def test_configure_logging_filters_below_level(capsys) -> None:
    """Debug events should be dropped at info level."""
    configure_logging("info")

    get_logger("tests.logging").debug("dmp_query")

    assert capsys.readouterr().err == ""
