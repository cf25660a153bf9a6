"""Schema tools: create and update tables and fields.

Every successful mutation invalidates the table directory so the next name
lookup sees the new schema.
"""

from __future__ import annotations

from typing import Any

from airtable_mcp.client import encode_segment
from airtable_mcp.tools.base import ToolContext


def _tables_path(ctx: ToolContext) -> str:
    return f"meta/bases/{encode_segment(ctx.base_id)}/tables"


async def create_table(
    ctx: ToolContext,
    name: str,
    fields: list[dict[str, Any]],
    description: str | None = None,
) -> dict[str, Any]:
    """Create a table. The first field becomes the primary field."""
    body: dict[str, Any] = {"name": name, "fields": fields}
    if description:
        body["description"] = description
    result = await ctx.client.request_json(_tables_path(ctx), method="POST", body=body)
    ctx.directory.invalidate()
    return result


async def update_table(
    ctx: ToolContext,
    table: str | None = None,
    name: str | None = None,
    description: str | None = None,
) -> dict[str, Any]:
    """Rename a table and/or change its description."""
    table_id = await ctx.resolve_table(table)
    body: dict[str, Any] = {}
    if name:
        body["name"] = name
    if description is not None:
        body["description"] = description
    result = await ctx.client.request_json(
        f"{_tables_path(ctx)}/{table_id}", method="PATCH", body=body
    )
    ctx.directory.invalidate()
    return result


async def create_field(
    ctx: ToolContext,
    name: str,
    type: str,
    table: str | None = None,
    options: dict[str, Any] | None = None,
    description: str | None = None,
) -> dict[str, Any]:
    table_id = await ctx.resolve_table(table)
    body: dict[str, Any] = {"name": name, "type": type}
    if options:
        body["options"] = options
    if description:
        body["description"] = description
    result = await ctx.client.request_json(
        f"{_tables_path(ctx)}/{table_id}/fields", method="POST", body=body
    )
    ctx.directory.invalidate()
    return result
