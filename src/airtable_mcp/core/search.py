"""Record search: one table at a time, or federated across the whole base.

Federated search visits tables in fixed-size batches. Tables within a batch
are searched concurrently; batches run strictly one after another with a
pause in between. A failing table contributes no hits and never fails the
overall search.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from airtable_mcp.client import table_path
from airtable_mcp.core.formula import SearchFormula

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 3
DEFAULT_BATCH_DELAY_SECONDS = 0.3


@dataclass(frozen=True)
class SearchHit:
    """One matching record, tagged with the table reference it was found under."""

    record_id: str
    table: str
    fields: dict[str, Any] = field(default_factory=dict)
    created_time: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.record_id,
            "table": self.table,
            "fields": self.fields,
            "createdTime": self.created_time,
        }


@dataclass(frozen=True)
class SearchPage:
    """Hits from one search plus the continuation token, if any."""

    hits: list[SearchHit]
    offset: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"records": [hit.to_dict() for hit in self.hits]}
        if self.offset is not None:
            result["offset"] = self.offset
        return result


def _to_hit(record: dict[str, Any], table_ref: str) -> SearchHit:
    return SearchHit(
        record_id=str(record.get("id", "")),
        table=table_ref,
        fields=dict(record.get("fields") or {}),
        created_time=record.get("createdTime"),
    )


def partition(items: Sequence[Any], size: int) -> list[list[Any]]:
    """Split *items* into consecutive chunks of at most *size*."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class TableSearcher:
    """Execute one bounded, optionally paginated search against one table."""

    def __init__(self, client: Any, base_id: str, directory: Any, formula_builder: Any) -> None:
        self._client = client
        self._base_id = base_id
        self._directory = directory
        self._formula_builder = formula_builder

    async def search(
        self,
        table_ref: str,
        query: str,
        max_records: int,
        *,
        page_size: int | None = None,
        offset: str | None = None,
        fields: Sequence[str] | None = None,
        tables: Sequence[dict[str, Any]] | None = None,
    ) -> SearchPage:
        """Search *table_ref* for *query*.

        Resolution and remote failures propagate. A formula that cannot be
        built degrades to an unfiltered listing.
        """
        table_id = await self._directory.resolve(table_ref)

        try:
            formula = await self._formula_builder.build(table_ref, query, fields, tables=tables)
        except Exception as exc:
            logger.warning(
                "Could not build search formula for %r (%s); searching unfiltered",
                table_ref,
                exc,
            )
            formula = SearchFormula(expression="")

        params: list[tuple[str, Any]] = [("maxRecords", max_records)]
        if page_size is not None:
            params.append(("pageSize", page_size))
        if offset is not None:
            params.append(("offset", offset))
        if formula:
            params.append(("filterByFormula", formula.expression))

        payload = await self._client.request_json(
            table_path(self._base_id, table_id), params=params
        )
        records = payload.get("records") or []
        hits = [_to_hit(record, table_ref) for record in records if isinstance(record, dict)]
        next_offset = payload.get("offset")
        return SearchPage(hits=hits, offset=next_offset if isinstance(next_offset, str) else None)


class FederatedSearch:
    """Search every table in the base in rate-limited concurrent batches."""

    def __init__(
        self,
        client: Any,
        base_id: str,
        searcher: TableSearcher,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._base_id = base_id
        self._searcher = searcher
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._sleep = sleep

    async def search_all(
        self,
        query: str,
        max_records_per_table: int,
        *,
        page_size: int | None = None,
        fields: Sequence[str] | None = None,
    ) -> SearchPage:
        """Search all tables and return the merged hits in table order.

        Federated results carry no continuation token.
        """
        tables = await self._client.list_tables(self._base_id)
        refs = [ref for ref in (t.get("name") or t.get("id") for t in tables) if ref]
        batches = partition(refs, self._batch_size)

        hits: list[SearchHit] = []
        for index, batch in enumerate(batches):
            results = await asyncio.gather(
                *(
                    self._search_or_empty(
                        ref,
                        query,
                        max_records_per_table,
                        page_size=page_size,
                        fields=fields,
                        tables=tables,
                    )
                    for ref in batch
                )
            )
            for table_hits in results:
                hits.extend(table_hits)
            if index < len(batches) - 1:
                await self._sleep(self._batch_delay)

        logger.debug(
            "Federated search over %d table(s) in %d batch(es) returned %d hit(s)",
            len(refs),
            len(batches),
            len(hits),
        )
        return SearchPage(hits=hits)

    async def _search_or_empty(
        self,
        table_ref: str,
        query: str,
        max_records: int,
        **kwargs: Any,
    ) -> list[SearchHit]:
        try:
            page = await self._searcher.search(table_ref, query, max_records, **kwargs)
        except Exception as exc:
            logger.warning("Federated search skipped table %r: %s", table_ref, exc)
            return []
        return page.hits
