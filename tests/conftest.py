"""Shared fixtures for the airtable_mcp test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from airtable_mcp.client import AirtableClient
from airtable_mcp.core.directory import TableDirectory
from airtable_mcp.tools.base import ToolContext
from tests.fakes import API_URL, BASE_ID, FakeAirtable


@pytest.fixture
def fake_airtable() -> FakeAirtable:
    return FakeAirtable()


@pytest.fixture
def http_client(fake_airtable: FakeAirtable) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_airtable.handler))


@pytest.fixture
def client(http_client: httpx.AsyncClient) -> AirtableClient:
    return AirtableClient(api_key="patTESTKEY.secret", api_url=API_URL, http_client=http_client)


@pytest.fixture
def directory(client: AirtableClient) -> TableDirectory:
    return TableDirectory(client, BASE_ID)


@pytest.fixture
def tool_ctx(client: AirtableClient, directory: TableDirectory) -> ToolContext:
    return ToolContext(client=client, base_id=BASE_ID, directory=directory)


@pytest.fixture
def mock_mcp() -> MagicMock:
    """A mock MCP server that captures registered tools by name."""
    mcp = MagicMock()
    tools: dict[str, Any] = {}

    def tool_decorator(*_decorator_args, **decorator_kwargs):
        declared_name = decorator_kwargs.get("name")

        def decorator(fn):
            tools[declared_name or fn.__name__] = fn
            return fn

        return decorator

    mcp.tool = tool_decorator
    mcp._registered_tools = tools
    return mcp
