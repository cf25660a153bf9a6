"""Shared plumbing for the forwarding tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from airtable_mcp.client import AirtableClient
from airtable_mcp.core.directory import TableDirectory
from airtable_mcp.errors import TableRequiredError


@dataclass
class ToolContext:
    """Everything a tool needs to reach one base."""

    client: AirtableClient
    base_id: str
    directory: TableDirectory
    default_table: str | None = None

    def pick_table(self, table: str | None) -> str:
        """Return *table*, falling back to the default table.

        Raises
        ------
        TableRequiredError
            If neither is available.
        """
        picked = table or self.default_table
        if not picked:
            raise TableRequiredError()
        return picked

    async def resolve_table(self, table: str | None) -> str:
        """Pick the table and resolve it to an identifier."""
        return await self.directory.resolve(self.pick_table(table))


def table_required_message(exc: TableRequiredError) -> dict[str, Any]:
    """User-facing payload for a call that named no table."""
    return {"error": str(exc)}
