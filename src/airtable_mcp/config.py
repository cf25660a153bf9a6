"""Service configuration loading and validation.

Reads the process environment, validates it, and returns a ``ServiceConfig``
holding the Airtable connection settings and the logging settings.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from airtable_mcp.credentials import validate_credentials
from airtable_mcp.errors import ConfigError

DEFAULT_API_URL = "https://api.airtable.com/v0"


class AirtableConfig(BaseModel):
    """Connection and search settings for one Airtable base.

    Attributes
    ----------
    api_key:
        Personal access token sent as a bearer credential.
    base_id:
        Identifier of the base every tool operates on.
    default_table:
        Table used when a tool call omits ``table``.
    table_ids:
        Static name → table identifier allowlist seeding the table directory.
    api_url:
        Root URL of the REST API.
    timeout_seconds:
        Per-request timeout for the HTTP client.
    directory_ttl_seconds:
        How long a table directory snapshot is trusted before refreshing.
    search_batch_size:
        Number of tables searched concurrently in a federated search batch.
    search_batch_delay_seconds:
        Pause between federated search batches.
    """

    api_key: str = Field(min_length=1)
    base_id: str = Field(min_length=1)
    default_table: str | None = None
    table_ids: dict[str, str] = Field(default_factory=dict)
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = 30.0
    directory_ttl_seconds: float = 300.0
    search_batch_size: int = Field(default=3, ge=1)
    search_batch_delay_seconds: float = Field(default=0.3, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("default_table")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


@dataclass
class LoggingConfig:
    """Logging configuration from the ``LOG_*`` environment variables."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    log_root: str | None = None


@dataclass
class ServiceConfig:
    """Fully validated service configuration."""

    airtable: AirtableConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    name: str = "airtable-mcp"


def _parse_table_ids(raw: str | None) -> dict[str, str]:
    """Parse the ``AIRTABLE_TABLE_IDS`` JSON object."""
    if raw is None or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"AIRTABLE_TABLE_IDS is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise ConfigError("AIRTABLE_TABLE_IDS must be a JSON object of name -> table id")
    for name, table_id in value.items():
        if not isinstance(table_id, str) or not table_id:
            raise ConfigError(
                f"AIRTABLE_TABLE_IDS entry {name!r} must map to a non-empty string"
            )
    return value


def load_config(environ: Mapping[str, str] | None = None) -> ServiceConfig:
    """Load and validate configuration from the environment.

    Raises
    ------
    ConfigError
        If required variables are missing or any value is malformed.
    """
    env = os.environ if environ is None else environ
    validate_credentials(environ=env)

    values: dict[str, object] = {
        "api_key": env["AIRTABLE_API_KEY"],
        "base_id": env["AIRTABLE_BASE_ID"],
        "default_table": env.get("DEFAULT_TABLE"),
        "table_ids": _parse_table_ids(env.get("AIRTABLE_TABLE_IDS")),
    }
    if env.get("AIRTABLE_API_URL"):
        values["api_url"] = env["AIRTABLE_API_URL"].rstrip("/")

    try:
        airtable = AirtableConfig(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid Airtable configuration: {exc}") from exc

    log_format = env.get("LOG_FORMAT", "text").lower()
    if log_format not in ("text", "json"):
        raise ConfigError(f"LOG_FORMAT must be 'text' or 'json', got {log_format!r}")

    return ServiceConfig(
        airtable=airtable,
        logging=LoggingConfig(
            level=env.get("LOG_LEVEL", "INFO").upper(),
            format=log_format,
            log_root=env.get("LOG_ROOT") or None,
        ),
    )
