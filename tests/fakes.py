"""In-memory Airtable served through ``httpx.MockTransport``."""

from __future__ import annotations

import itertools
import json
from typing import Any

import httpx

BASE_ID = "appTESTBASE0001"
API_URL = "https://api.airtable.test/v0"


def make_table(table_id: str, name: str, fields: list[tuple[str, str]]) -> dict[str, Any]:
    return {
        "id": table_id,
        "name": name,
        "fields": [
            {"id": f"fld{i:011d}", "name": field_name, "type": field_type}
            for i, (field_name, field_type) in enumerate(fields)
        ],
    }


DEFAULT_TABLES = [
    make_table(
        "tblContacts00001",
        "Contacts",
        [("Name", "singleLineText"), ("Email", "email"), ("Age", "number")],
    ),
    make_table(
        "tblProjects00001",
        "Projects",
        [("Title", "singleLineText"), ("Notes", "multilineText"), ("Done", "checkbox")],
    ),
]


class FakeAirtable:
    """Minimal stateful stand-in for the Airtable REST API.

    Records are stored per table id. Listing requests are recorded so tests
    can inspect the query parameters that were sent.
    """

    def __init__(self, tables: list[dict[str, Any]] | None = None) -> None:
        self.tables: list[dict[str, Any]] = list(DEFAULT_TABLES if tables is None else tables)
        self.records: dict[str, list[dict[str, Any]]] = {t["id"]: [] for t in self.tables}
        self.requests: list[httpx.Request] = []
        self.failing_tables: set[str] = set()
        self.meta_status = 200
        self.next_offset: str | None = None
        self._ids = itertools.count(1)

    # -- helpers -----------------------------------------------------------

    @property
    def meta_calls(self) -> int:
        return sum(1 for r in self.requests if "/meta/bases/" in r.url.path)

    def listing_requests(self) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == "GET" and "/meta/" not in r.url.path and len(self._parts(r)) == 2
        ]

    def add_record(self, table_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        record = {
            "id": f"rec{next(self._ids):014d}",
            "createdTime": "2026-01-01T00:00:00.000Z",
            "fields": dict(fields),
        }
        self.records.setdefault(table_id, []).append(record)
        return record

    def _find_table(self, ref: str) -> dict[str, Any] | None:
        for table in self.tables:
            if ref in (table["id"], table["name"]):
                return table
        return None

    @staticmethod
    def _parts(request: httpx.Request) -> list[str]:
        # /v0/<base>/<table>[/<record>]
        return request.url.path.split("/")[2:]

    # -- transport -----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = self._parts(request)

        if parts[:2] == ["meta", "bases"]:
            if self.meta_status != 200:
                return httpx.Response(
                    self.meta_status, json={"error": {"type": "SERVER_ERROR", "message": "meta"}}
                )
            return httpx.Response(200, json={"tables": self.tables})

        table = self._find_table(parts[1])
        if table is None:
            return httpx.Response(
                404, json={"error": {"type": "TABLE_NOT_FOUND", "message": "Could not find table"}}
            )
        if table["id"] in self.failing_tables:
            return httpx.Response(500, json={"error": {"type": "SERVER_ERROR", "message": "boom"}})

        rows = self.records.setdefault(table["id"], [])
        record_id = parts[2] if len(parts) > 2 else None

        if record_id is None and request.method == "GET":
            max_records = int(request.url.params.get("maxRecords", "100"))
            payload: dict[str, Any] = {"records": rows[:max_records]}
            if self.next_offset is not None:
                payload["offset"] = self.next_offset
            return httpx.Response(200, json=payload)

        if record_id is None and request.method == "POST":
            body = json.loads(request.content)
            return httpx.Response(200, json=self.add_record(table["id"], body["fields"]))

        record = next((r for r in rows if r["id"] == record_id), None)
        if record is None:
            return httpx.Response(
                404, json={"error": {"type": "NOT_FOUND", "message": "Record not found"}}
            )
        if request.method == "GET":
            return httpx.Response(200, json=record)
        if request.method == "PATCH":
            record["fields"].update(json.loads(request.content)["fields"])
            return httpx.Response(200, json=record)
        if request.method == "DELETE":
            rows.remove(record)
            return httpx.Response(200, json={"id": record_id, "deleted": True})
        return httpx.Response(405)
