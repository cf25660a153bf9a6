"""Tests for the search tool's routing between single-table and federated search."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from airtable_mcp.core.search import SearchHit, SearchPage
from airtable_mcp.errors import TableRequiredError
from airtable_mcp.tools.base import ToolContext
from airtable_mcp.tools.search import search_records

pytestmark = pytest.mark.unit


@pytest.fixture
def searcher() -> AsyncMock:
    mock = AsyncMock()
    mock.search.return_value = SearchPage(
        hits=[SearchHit(record_id="rec1", table="Contacts", fields={"Name": "Ada"})],
        offset="itr2",
    )
    return mock


@pytest.fixture
def federated() -> AsyncMock:
    mock = AsyncMock()
    mock.search_all.return_value = SearchPage(
        hits=[SearchHit(record_id="rec9", table="Projects")]
    )
    return mock


class TestSearchRecords:
    async def test_single_table(
        self, tool_ctx: ToolContext, searcher: AsyncMock, federated: AsyncMock
    ) -> None:
        result = await search_records(
            tool_ctx, searcher, federated, "ada", table="Contacts", max_records=3, offset="itr1"
        )

        searcher.search.assert_awaited_once_with(
            "Contacts", "ada", 3, page_size=None, offset="itr1", fields=None
        )
        federated.search_all.assert_not_awaited()
        assert result == {
            "records": [
                {
                    "id": "rec1",
                    "table": "Contacts",
                    "fields": {"Name": "Ada"},
                    "createdTime": None,
                }
            ],
            "offset": "itr2",
        }

    async def test_single_table_uses_default(
        self, tool_ctx: ToolContext, searcher: AsyncMock, federated: AsyncMock
    ) -> None:
        tool_ctx.default_table = "Projects"
        await search_records(tool_ctx, searcher, federated, "x")
        assert searcher.search.await_args.args[0] == "Projects"

    async def test_single_table_requires_table(
        self, tool_ctx: ToolContext, searcher: AsyncMock, federated: AsyncMock
    ) -> None:
        with pytest.raises(TableRequiredError):
            await search_records(tool_ctx, searcher, federated, "x")

    async def test_all_tables(
        self, tool_ctx: ToolContext, searcher: AsyncMock, federated: AsyncMock
    ) -> None:
        result = await search_records(
            tool_ctx, searcher, federated, "x", all_tables=True, max_records=4, fields=["Name"]
        )

        federated.search_all.assert_awaited_once_with("x", 4, page_size=None, fields=["Name"])
        searcher.search.assert_not_awaited()
        assert "offset" not in result
        assert result["records"][0]["table"] == "Projects"

    async def test_all_tables_needs_no_table(
        self, tool_ctx: ToolContext, searcher: AsyncMock, federated: AsyncMock
    ) -> None:
        await search_records(tool_ctx, searcher, federated, "x", all_tables=True)
        federated.search_all.assert_awaited_once()

    async def test_all_tables_rejects_offset(
        self, tool_ctx: ToolContext, searcher: AsyncMock, federated: AsyncMock
    ) -> None:
        with pytest.raises(ValueError, match="offset"):
            await search_records(
                tool_ctx, searcher, federated, "x", all_tables=True, offset="itr1"
            )
