"""Error taxonomy shared by the client, the directory, search and tools."""

from __future__ import annotations

from typing import Any


class ConfigError(Exception):
    """Raised when service configuration is missing, malformed, or invalid."""


class AirtableError(RuntimeError):
    """Base error for Airtable MCP failures."""


class TableNotFoundError(AirtableError):
    """Raised when a table name cannot be resolved to an identifier."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table not found in base: {table!r}")


class TableRequiredError(AirtableError):
    """Raised when no table was given and no default table is configured."""

    def __init__(self) -> None:
        super().__init__("table is required (no DEFAULT_TABLE set)")


class AirtableRequestError(AirtableError):
    """Raised when the Airtable API answers with a non-2xx or malformed response."""

    def __init__(self, *, status_code: int, message: str, payload: Any = None) -> None:
        self.status_code = status_code
        self.message = message
        self.payload = payload
        super().__init__(f"Airtable API request failed ({status_code}): {message}")


class AirtableTransportError(AirtableError):
    """Raised when the Airtable API cannot be reached at all."""
