"""Forwarding tools over the Airtable REST API.

Each function takes a :class:`~airtable_mcp.tools.base.ToolContext` first and
relays one REST call. The daemon registers them as MCP tools.
"""
