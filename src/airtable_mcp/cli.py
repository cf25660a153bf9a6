"""CLI for Airtable MCP: serve the MCP server and inspect the configured base."""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys

import click

from airtable_mcp import __version__
from airtable_mcp.config import ServiceConfig, load_config
from airtable_mcp.credentials import redact
from airtable_mcp.daemon import AirtableDaemon
from airtable_mcp.errors import AirtableError, ConfigError

logger = logging.getLogger(__name__)


def _load_or_exit() -> ServiceConfig:
    try:
        return load_config()
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Airtable MCP: MCP tools over one Airtable base."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(name)s: %(message)s")


@cli.command()
@click.option(
    "--transport",
    type=click.Choice(["sse", "http", "stdio"]),
    default="sse",
    show_default=True,
    help="MCP transport: SSE at /sse, streamable HTTP at /mcp, or stdio.",
)
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", type=int, default=8000, show_default=True)
def serve(transport: str, host: str, port: int) -> None:
    """Start the MCP server."""
    config = _load_or_exit()
    daemon = AirtableDaemon(config)
    if transport == "stdio":
        asyncio.run(daemon.run_stdio())
        return
    asyncio.run(_run_http(daemon, transport, host, port))


async def _run_http(daemon: AirtableDaemon, transport: str, host: str, port: int) -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await daemon.start(transport=transport, host=host, port=port)  # type: ignore[arg-type]
    server_done = asyncio.create_task(daemon.wait())
    stop_wait = asyncio.create_task(stop.wait())
    await asyncio.wait({server_done, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
    stop_wait.cancel()
    await daemon.shutdown()


@cli.command()
def tables() -> None:
    """Print the base's tables as JSON."""
    config = _load_or_exit()
    try:
        payload = asyncio.run(_fetch_tables(config))
    except AirtableError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(json.dumps(payload, indent=2))


async def _fetch_tables(config: ServiceConfig) -> list[dict]:
    daemon = AirtableDaemon(config)
    daemon.build()
    assert daemon.client is not None
    try:
        tables = await daemon.client.list_tables(config.airtable.base_id)
    finally:
        await daemon.shutdown()
    return [{"id": t.get("id"), "name": t.get("name")} for t in tables]


@cli.command()
def check() -> None:
    """Validate configuration and print the effective settings (secrets redacted)."""
    config = _load_or_exit()
    airtable = config.airtable
    click.echo(f"Base:            {airtable.base_id}")
    click.echo(f"API URL:         {airtable.api_url}")
    click.echo(f"API key:         {redact(airtable.api_key)}")
    click.echo(f"Default table:   {airtable.default_table or '(none)'}")
    click.echo(f"Static tables:   {len(airtable.table_ids)}")
    click.echo(f"Log level:       {config.logging.level} ({config.logging.format})")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
