"""Airtable MCP daemon: builds the MCP server and runs it.

Startup sequence:
1. Configure logging and telemetry
2. Create the Airtable client, table directory and searchers
3. Create the FastMCP server and register every tool (wrapped in a span)
4. Register the ``/health`` route
5. Serve over SSE, streamable HTTP, or stdio

Shutdown stops the HTTP server and closes the Airtable client.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, Literal

import httpx
import uvicorn
from fastmcp import FastMCP
from pydantic import BaseModel, Field
from starlette.requests import Request
from starlette.responses import JSONResponse

from airtable_mcp.client import AirtableClient
from airtable_mcp.config import ServiceConfig
from airtable_mcp.core.directory import TableDirectory
from airtable_mcp.core.formula import SearchFormulaBuilder
from airtable_mcp.core.logging import configure_logging
from airtable_mcp.core.search import FederatedSearch, TableSearcher
from airtable_mcp.core.telemetry import init_telemetry, tool_span
from airtable_mcp.errors import TableRequiredError
from airtable_mcp.tools import records, schema, webhooks
from airtable_mcp.tools.base import ToolContext, table_required_message
from airtable_mcp.tools.search import DEFAULT_SEARCH_MAX_RECORDS, search_records

logger = logging.getLogger(__name__)

SERVER_NAME = "Airtable MCP"
Transport = Literal["sse", "http", "stdio"]

PageSize = Annotated[int, Field(ge=1, le=100)] | None


class SortSpec(BaseModel):
    """One sort key for ``airtable_list``."""

    field: str
    direction: Literal["asc", "desc"] | None = None


class _SpanWrappingMCP:
    """Proxy around FastMCP that wraps every tool handler in a ``tool_span``.

    Registered tool names are recorded for the health route. All other
    attribute access is forwarded to the underlying FastMCP instance.
    """

    def __init__(self, mcp: FastMCP, service_name: str) -> None:
        self._mcp = mcp
        self._service_name = service_name
        self.registered_tool_names: list[str] = []

    def tool(self, *args: Any, **kwargs: Any) -> Callable[[Any], Any]:
        declared_name = kwargs.get("name")
        original_decorator = self._mcp.tool(*args, **kwargs)

        def wrapper(fn):  # noqa: ANN001, ANN202
            tool_name = declared_name or fn.__name__
            self.registered_tool_names.append(tool_name)

            @functools.wraps(fn)
            async def instrumented(*args, **kwargs):  # noqa: ANN002, ANN003, ANN202
                with tool_span(tool_name, service_name=self._service_name):
                    return await fn(*args, **kwargs)

            return original_decorator(instrumented)

        return wrapper

    def __getattr__(self, name: str) -> Any:
        return getattr(self._mcp, name)


def _table_required_as_message(
    fn: Callable[..., Awaitable[dict[str, Any]]],
) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Turn a missing table into a user-facing message instead of a tool error."""

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> dict[str, Any]:
        try:
            return await fn(*args, **kwargs)
        except TableRequiredError as exc:
            return table_required_message(exc)

    return wrapper


class AirtableDaemon:
    """Owns the Airtable client, the table directory and the MCP server."""

    def __init__(
        self,
        config: ServiceConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self._http_client = http_client
        self._sleep = sleep
        self.client: AirtableClient | None = None
        self.directory: TableDirectory | None = None
        self.searcher: TableSearcher | None = None
        self.federated: FederatedSearch | None = None
        self.mcp: FastMCP | None = None
        self._tool_names: list[str] = []
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task | None = None

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._tool_names)

    def build(self) -> FastMCP:
        """Create the client, directory, searchers and MCP server."""
        airtable = self.config.airtable
        self.client = AirtableClient(
            api_key=airtable.api_key,
            api_url=airtable.api_url,
            timeout=airtable.timeout_seconds,
            http_client=self._http_client,
        )
        self.directory = TableDirectory(
            self.client,
            airtable.base_id,
            static_table_ids=airtable.table_ids,
            ttl_seconds=airtable.directory_ttl_seconds,
        )
        formula_builder = SearchFormulaBuilder(self.client, airtable.base_id, self.directory)
        self.searcher = TableSearcher(
            self.client, airtable.base_id, self.directory, formula_builder
        )
        self.federated = FederatedSearch(
            self.client,
            airtable.base_id,
            self.searcher,
            batch_size=airtable.search_batch_size,
            batch_delay=airtable.search_batch_delay_seconds,
            sleep=self._sleep,
        )

        self.mcp = FastMCP(SERVER_NAME)
        self._register_tools()
        self._register_health_route()
        return self.mcp

    def health_payload(self) -> dict[str, Any]:
        return {"ok": True, "tools": self.tool_names}

    # ------------------------------------------------------------------
    # Tool registration
    # ------------------------------------------------------------------

    def _register_tools(self) -> None:
        assert self.mcp is not None
        assert self.client is not None and self.directory is not None
        assert self.searcher is not None and self.federated is not None

        mcp = _SpanWrappingMCP(self.mcp, self.config.name)
        ctx = ToolContext(
            client=self.client,
            base_id=self.config.airtable.base_id,
            directory=self.directory,
            default_table=self.config.airtable.default_table,
        )
        searcher = self.searcher
        federated = self.federated

        @mcp.tool()
        async def airtable_tables() -> dict[str, Any]:
            """List the tables of the base with their fields and views."""
            return await records.list_tables(ctx)

        @mcp.tool()
        @_table_required_as_message
        async def airtable_list(
            table: str | None = None,
            max_records: int = records.DEFAULT_MAX_RECORDS,
            page_size: PageSize = None,
            view: str | None = None,
            filter_by_formula: str | None = None,
            fields: list[str] | None = None,
            sort: list[SortSpec] | None = None,
            offset: str | None = None,
        ) -> dict[str, Any]:
            """List records of a table (defaults to DEFAULT_TABLE).

            Supports Airtable's view, filterByFormula, field projection, sort
            and offset pagination.
            """
            return await records.list_records(
                ctx,
                table=table,
                max_records=max_records,
                page_size=page_size,
                view=view,
                filter_by_formula=filter_by_formula,
                fields=fields,
                sort=[s.model_dump(exclude_none=True) for s in sort] if sort else None,
                offset=offset,
            )

        @mcp.tool()
        @_table_required_as_message
        async def airtable_get(id: str, table: str | None = None) -> dict[str, Any]:
            """Fetch one record by its record id."""
            return await records.get_record(ctx, id, table=table)

        @mcp.tool()
        @_table_required_as_message
        async def airtable_create(
            fields: dict[str, Any],
            table: str | None = None,
            typecast: bool = False,
        ) -> dict[str, Any]:
            """Create a record from a field name → value mapping."""
            return await records.create_record(ctx, fields, table=table, typecast=typecast)

        @mcp.tool()
        @_table_required_as_message
        async def airtable_update(
            id: str,
            fields: dict[str, Any],
            table: str | None = None,
            typecast: bool = False,
        ) -> dict[str, Any]:
            """Update the given fields of a record."""
            return await records.update_record(
                ctx, id, fields, table=table, typecast=typecast
            )

        @mcp.tool()
        @_table_required_as_message
        async def airtable_delete(id: str, table: str | None = None) -> dict[str, Any]:
            """Delete a record."""
            return await records.delete_record(ctx, id, table=table)

        @mcp.tool()
        @_table_required_as_message
        async def airtable_search(
            query: str,
            table: str | None = None,
            all_tables: bool = False,
            max_records: int = DEFAULT_SEARCH_MAX_RECORDS,
            page_size: PageSize = None,
            offset: str | None = None,
            fields: list[str] | None = None,
        ) -> dict[str, Any]:
            """Search records whose text fields contain ``query``.

            Searches one table (defaults to DEFAULT_TABLE) or, with
            ``all_tables``, every table in the base. ``fields`` restricts the
            match to the named fields; otherwise text fields are discovered
            from the schema.
            """
            return await search_records(
                ctx,
                searcher,
                federated,
                query,
                table=table,
                all_tables=all_tables,
                max_records=max_records,
                page_size=page_size,
                offset=offset,
                fields=fields,
            )

        @mcp.tool()
        async def airtable_create_table(
            name: str,
            fields: list[dict[str, Any]],
            description: str | None = None,
        ) -> dict[str, Any]:
            """Create a table. The first field becomes the primary field."""
            return await schema.create_table(ctx, name, fields, description=description)

        @mcp.tool()
        @_table_required_as_message
        async def airtable_update_table(
            table: str | None = None,
            name: str | None = None,
            description: str | None = None,
        ) -> dict[str, Any]:
            """Rename a table or change its description."""
            return await schema.update_table(ctx, table=table, name=name, description=description)

        @mcp.tool()
        @_table_required_as_message
        async def airtable_create_field(
            name: str,
            type: str,
            table: str | None = None,
            options: dict[str, Any] | None = None,
            description: str | None = None,
        ) -> dict[str, Any]:
            """Add a field to a table."""
            return await schema.create_field(
                ctx, name, type, table=table, options=options, description=description
            )

        @mcp.tool()
        async def airtable_list_webhooks() -> dict[str, Any]:
            """List the webhooks registered on the base."""
            return await webhooks.list_webhooks(ctx)

        @mcp.tool()
        async def airtable_create_webhook(
            notification_url: str,
            specification: dict[str, Any],
        ) -> dict[str, Any]:
            """Register a webhook that posts change notifications to a URL."""
            return await webhooks.create_webhook(ctx, notification_url, specification)

        @mcp.tool()
        async def airtable_delete_webhook(webhook_id: str) -> dict[str, Any]:
            """Remove a webhook."""
            return await webhooks.delete_webhook(ctx, webhook_id)

        self._tool_names = list(mcp.registered_tool_names)

    def _register_health_route(self) -> None:
        assert self.mcp is not None

        @self.mcp.custom_route("/health", methods=["GET"])
        async def health(request: Request) -> JSONResponse:  # noqa: ARG001
            return JSONResponse(self.health_payload())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _init_observability(self) -> None:
        logging_config = self.config.logging
        configure_logging(
            level=logging_config.level,
            fmt=logging_config.format,
            log_root=logging_config.log_root,
            service_name=self.config.name,
        )
        init_telemetry(self.config.name)

    async def start(
        self,
        transport: Transport = "sse",
        host: str = "0.0.0.0",
        port: int = 8000,
    ) -> None:
        """Serve the MCP app over HTTP in a background task.

        ``sse`` exposes ``/sse``; ``http`` exposes streamable HTTP at ``/mcp``.
        """
        if transport == "stdio":
            raise ValueError("use run_stdio() for the stdio transport")
        self._init_observability()

        mcp = self.mcp or self.build()
        app = mcp.http_app(transport="sse") if transport == "sse" else mcp.http_app(path="/mcp")

        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="info",
            timeout_graceful_shutdown=0,
        )
        self._server = uvicorn.Server(config)
        self._server_task = asyncio.create_task(self._server.serve())
        logger.info(
            "%s serving %d tool(s) over %s on %s:%d",
            SERVER_NAME,
            len(self._tool_names),
            transport,
            host,
            port,
        )

    async def wait(self) -> None:
        """Block until the background server task finishes."""
        if self._server_task is not None:
            await self._server_task

    async def run_stdio(self) -> None:
        """Serve the MCP protocol over stdin/stdout until the client disconnects."""
        self._init_observability()
        mcp = self.mcp or self.build()
        try:
            await mcp.run_async(transport="stdio")
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop the HTTP server (if any) and close the Airtable client."""
        logger.info("Shutting down %s", SERVER_NAME)
        if self._server is not None:
            self._server.should_exit = True
        if self._server_task is not None:
            try:
                await self._server_task
            except Exception:
                logger.exception("Error while stopping MCP server")
            self._server_task = None
            self._server = None
        if self.client is not None:
            await self.client.aclose()
            self.client = None
