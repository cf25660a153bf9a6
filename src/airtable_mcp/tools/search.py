"""Search tool: route a query to one table or to every table in the base."""

from __future__ import annotations

from typing import Any

from airtable_mcp.core.search import FederatedSearch, TableSearcher
from airtable_mcp.tools.base import ToolContext

DEFAULT_SEARCH_MAX_RECORDS = 10


async def search_records(
    ctx: ToolContext,
    searcher: TableSearcher,
    federated: FederatedSearch,
    query: str,
    table: str | None = None,
    all_tables: bool = False,
    max_records: int = DEFAULT_SEARCH_MAX_RECORDS,
    page_size: int | None = None,
    offset: str | None = None,
    fields: list[str] | None = None,
) -> dict[str, Any]:
    """Search records whose text fields contain *query* (case-insensitive).

    With ``all_tables`` every table is searched and ``max_records`` applies per
    table; federated results are not paginated.
    """
    if all_tables:
        if offset is not None:
            raise ValueError("offset is not supported when all_tables is true")
        page = await federated.search_all(
            query, max_records, page_size=page_size, fields=fields
        )
        return page.to_dict()

    page = await searcher.search(
        ctx.pick_table(table),
        query,
        max_records,
        page_size=page_size,
        offset=offset,
        fields=fields,
    )
    return page.to_dict()
