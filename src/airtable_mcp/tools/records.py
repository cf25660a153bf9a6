"""Record tools: list, get, create, update and delete records."""

from __future__ import annotations

from typing import Any

from airtable_mcp.client import encode_segment, table_path
from airtable_mcp.tools.base import ToolContext

DEFAULT_MAX_RECORDS = 5


async def list_tables(ctx: ToolContext) -> dict[str, Any]:
    """Return the base's schema metadata (tables, fields and views)."""
    return await ctx.client.request_json(f"meta/bases/{encode_segment(ctx.base_id)}/tables")


async def list_records(
    ctx: ToolContext,
    table: str | None = None,
    max_records: int = DEFAULT_MAX_RECORDS,
    page_size: int | None = None,
    view: str | None = None,
    filter_by_formula: str | None = None,
    fields: list[str] | None = None,
    sort: list[dict[str, str]] | None = None,
    offset: str | None = None,
) -> dict[str, Any]:
    """List records of a table with Airtable's own query parameters."""
    table_id = await ctx.resolve_table(table)

    params: list[tuple[str, Any]] = [("maxRecords", max_records)]
    if page_size:
        params.append(("pageSize", page_size))
    if view:
        params.append(("view", view))
    if filter_by_formula:
        params.append(("filterByFormula", filter_by_formula))
    for name in fields or []:
        params.append(("fields[]", name))
    for i, spec in enumerate(sort or []):
        params.append((f"sort[{i}][field]", spec["field"]))
        if spec.get("direction"):
            params.append((f"sort[{i}][direction]", spec["direction"]))
    if offset:
        params.append(("offset", offset))

    return await ctx.client.request_json(table_path(ctx.base_id, table_id), params=params)


async def get_record(ctx: ToolContext, record_id: str, table: str | None = None) -> dict[str, Any]:
    table_id = await ctx.resolve_table(table)
    return await ctx.client.request_json(table_path(ctx.base_id, table_id, record_id))


async def create_record(
    ctx: ToolContext,
    fields: dict[str, Any],
    table: str | None = None,
    typecast: bool = False,
) -> dict[str, Any]:
    """Create one record; ``typecast`` lets Airtable coerce string values."""
    table_id = await ctx.resolve_table(table)
    body: dict[str, Any] = {"fields": fields}
    if typecast:
        body["typecast"] = True
    return await ctx.client.request_json(
        table_path(ctx.base_id, table_id), method="POST", body=body
    )


async def update_record(
    ctx: ToolContext,
    record_id: str,
    fields: dict[str, Any],
    table: str | None = None,
    typecast: bool = False,
) -> dict[str, Any]:
    """Patch the given fields of one record, leaving the others untouched."""
    table_id = await ctx.resolve_table(table)
    body: dict[str, Any] = {"fields": fields}
    if typecast:
        body["typecast"] = True
    return await ctx.client.request_json(
        table_path(ctx.base_id, table_id, record_id), method="PATCH", body=body
    )


async def delete_record(
    ctx: ToolContext, record_id: str, table: str | None = None
) -> dict[str, Any]:
    table_id = await ctx.resolve_table(table)
    return await ctx.client.request_json(
        table_path(ctx.base_id, table_id, record_id), method="DELETE"
    )
