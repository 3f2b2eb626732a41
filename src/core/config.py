"""Runtime configuration model for the DMP store.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_DOMAIN_NAME,
    DEFAULT_GRACE_PERIOD_MS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REGION,
    DEFAULT_TABLE_NAME,
    SUPPORTED_LOG_LEVELS,
)
from core.errors import DmpConfigError


@dataclass(frozen=True)
class DmpStoreConfig:
    """Validated runtime configuration.

    Attributes:
        table_name: DynamoDB table holding DMP items.
        region: AWS region for the DynamoDB client.
        endpoint_url: Optional endpoint override, e.g. DynamoDB Local.
        max_attempts: Total attempts the client makes per call, retries included.
        domain_name: Public host used to build version access URLs.
        grace_period_ms: Window in which updates overwrite latest without a snapshot.
        log_level: Minimum structured log level.
    """

    table_name: str = DEFAULT_TABLE_NAME
    region: str = DEFAULT_REGION
    endpoint_url: str | None = None
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    domain_name: str = DEFAULT_DOMAIN_NAME
    grace_period_ms: int = DEFAULT_GRACE_PERIOD_MS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "DmpStoreConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            DmpConfigError: If environment values are invalid.
        """
        log_level = os.getenv("DMP_STORE_LOG_LEVEL", DEFAULT_LOG_LEVEL).lower()
        if log_level not in SUPPORTED_LOG_LEVELS:
            raise DmpConfigError(
                f"Invalid DMP_STORE_LOG_LEVEL value '{log_level}'. "
                f"Use one of: {', '.join(SUPPORTED_LOG_LEVELS)}."
            )
        return cls(
            table_name=os.getenv("DMP_STORE_TABLE_NAME", DEFAULT_TABLE_NAME),
            region=os.getenv("DMP_STORE_REGION", DEFAULT_REGION),
            endpoint_url=os.getenv("DMP_STORE_ENDPOINT_URL") or None,
            max_attempts=_parse_positive_int(
                "DMP_STORE_MAX_ATTEMPTS",
                os.getenv("DMP_STORE_MAX_ATTEMPTS", str(DEFAULT_MAX_ATTEMPTS)),
            ),
            domain_name=os.getenv("DMP_STORE_DOMAIN_NAME", DEFAULT_DOMAIN_NAME),
            grace_period_ms=_parse_positive_int(
                "DMP_STORE_GRACE_PERIOD_MS",
                os.getenv("DMP_STORE_GRACE_PERIOD_MS", str(DEFAULT_GRACE_PERIOD_MS)),
            ),
            log_level=log_level,
        )


def _parse_positive_int(name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        name: Environment variable name, used in error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        DmpConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise DmpConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error
    if value <= 0:
        raise DmpConfigError(
            f"Invalid {name} value: expected a positive integer, got {value}."
        )
    return value
