"""Authenticated request/response primitive for the Airtable REST API.

Every call carries the bearer credential and a JSON content type. HTTP error
statuses are returned to the caller as data; only network failures raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from airtable_mcp.credentials import redact
from airtable_mcp.errors import AirtableRequestError, AirtableTransportError

logger = logging.getLogger(__name__)

QueryParams = dict[str, Any] | list[tuple[str, Any]]


@dataclass(frozen=True)
class AirtableResponse:
    """Status and parsed JSON body of one API call."""

    status_code: int
    payload: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def encode_segment(value: str) -> str:
    """Percent-encode *value* as a single URL path segment."""
    return quote(value, safe="")


def table_path(base_id: str, table: str, record_id: str | None = None) -> str:
    """Return the records path for *table* (and optionally one record)."""
    path = f"{base_id}/{encode_segment(table)}"
    if record_id is not None:
        path += f"/{encode_segment(record_id)}"
    return path


class AirtableClient:
    """Thin async wrapper around ``httpx.AsyncClient`` for the Airtable API."""

    def __init__(
        self,
        *,
        api_key: str,
        api_url: str = "https://api.airtable.com/v0",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_http_client = http_client is None
        self._http_client = (
            http_client
            if http_client is not None
            else httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=10.0))
        )
        self._api_url = api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        logger.debug("AirtableClient: configured for %s (key=%s)", self._api_url, redact(api_key))

    async def call(
        self,
        path: str,
        method: str = "GET",
        *,
        params: QueryParams | None = None,
        body: Any = None,
    ) -> AirtableResponse:
        """Issue one request and return its status and parsed JSON body.

        Raises
        ------
        AirtableTransportError
            When the request cannot be sent or no response is received.
        """
        url = f"{self._api_url}/{path.lstrip('/')}"
        try:
            response = await self._http_client.request(
                method,
                url,
                params=params,
                json=body,
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            raise AirtableTransportError(f"{method} {path} failed: {exc}") from exc

        try:
            payload = response.json() if response.content else None
        except ValueError:
            payload = None
        return AirtableResponse(status_code=response.status_code, payload=payload)

    async def request_json(
        self,
        path: str,
        method: str = "GET",
        *,
        params: QueryParams | None = None,
        body: Any = None,
    ) -> dict[str, Any]:
        """Like :meth:`call`, but raise for non-2xx or non-object responses."""
        return expect_ok(await self.call(path, method, params=params, body=body))

    async def list_tables(self, base_id: str) -> list[dict[str, Any]]:
        """Return the ``tables`` list from the base's schema metadata."""
        payload = await self.request_json(f"meta/bases/{encode_segment(base_id)}/tables")
        tables = payload.get("tables")
        if not isinstance(tables, list):
            raise AirtableRequestError(
                status_code=200,
                message="schema metadata response is missing a 'tables' list",
                payload=payload,
            )
        return [t for t in tables if isinstance(t, dict)]

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()


def expect_ok(response: AirtableResponse) -> dict[str, Any]:
    """Return the response payload, raising ``AirtableRequestError`` on failure."""
    if not response.ok:
        raise AirtableRequestError(
            status_code=response.status_code,
            message=safe_error_message(response.payload),
            payload=response.payload,
        )
    if not isinstance(response.payload, dict):
        raise AirtableRequestError(
            status_code=response.status_code,
            message="Airtable API payload must be a JSON object",
            payload=response.payload,
        )
    return response.payload


def safe_error_message(payload: Any) -> str:
    """Extract a short, single-line error message from an Airtable error body."""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message") or error.get("type")
            if isinstance(message, str) and message.strip():
                return " ".join(message.split())[:200]
        if isinstance(error, str) and error.strip():
            return " ".join(error.split())[:200]
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return " ".join(message.split())[:200]
    return "unknown error"
