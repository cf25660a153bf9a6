"""Airtable MCP: MCP tools over the Airtable REST API with federated search."""

__version__ = "0.1.0"
