"""Webhook tools: list, register and remove base webhooks."""

from __future__ import annotations

from typing import Any

from airtable_mcp.client import encode_segment, expect_ok
from airtable_mcp.tools.base import ToolContext


def _webhooks_path(ctx: ToolContext) -> str:
    return f"bases/{encode_segment(ctx.base_id)}/webhooks"


async def list_webhooks(ctx: ToolContext) -> dict[str, Any]:
    return await ctx.client.request_json(_webhooks_path(ctx))


async def create_webhook(
    ctx: ToolContext,
    notification_url: str,
    specification: dict[str, Any],
) -> dict[str, Any]:
    """Register a webhook; ``specification`` is Airtable's ``options`` object."""
    body = {"notificationUrl": notification_url, "specification": specification}
    return await ctx.client.request_json(_webhooks_path(ctx), method="POST", body=body)


async def delete_webhook(ctx: ToolContext, webhook_id: str) -> dict[str, Any]:
    """Remove a webhook. Airtable answers a successful delete with an empty body."""
    response = await ctx.client.call(
        f"{_webhooks_path(ctx)}/{encode_segment(webhook_id)}", method="DELETE"
    )
    if response.ok and not response.payload:
        return {"deleted": True, "id": webhook_id}
    return expect_ok(response)
