"""Table directory: a time-bounded cache of table name → table identifier.

Identifier-shaped inputs (``tbl`` followed by at least ten alphanumerics) are
returned unchanged without touching the cache. Names are looked up in the
current snapshot, which is refreshed when missing or older than the TTL. A
miss triggers exactly one forced refresh before ``TableNotFoundError``.

Snapshots are immutable and replaced wholesale. Concurrent refreshes are not
serialised; the last one to complete wins.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from airtable_mcp.errors import TableNotFoundError

logger = logging.getLogger(__name__)

TABLE_ID_PATTERN = re.compile(r"^tbl[A-Za-z0-9]{10,}$")
DEFAULT_TTL_SECONDS = 300.0


def is_table_id(value: str) -> bool:
    """Return True when *value* already has the shape of a table identifier."""
    return TABLE_ID_PATTERN.match(value) is not None


@dataclass(frozen=True)
class DirectorySnapshot:
    """One complete name → identifier mapping as of ``captured_at``."""

    captured_at: float
    by_name: Mapping[str, str] = field(default_factory=dict)

    def age(self, now: float) -> float:
        return now - self.captured_at


class TableDirectory:
    """Resolve table names to identifiers against the base's schema metadata.

    Parameters
    ----------
    client:
        ``AirtableClient`` used for the metadata listing call.
    base_id:
        Base whose tables are listed.
    static_table_ids:
        Optional name → identifier allowlist seeding every refresh. Names
        reported by the service override seeded entries.
    ttl_seconds:
        Snapshot lifetime before a lookup forces a refresh.
    clock:
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        client: Any,
        base_id: str,
        *,
        static_table_ids: Mapping[str, str] | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._base_id = base_id
        self._static_table_ids = dict(static_table_ids or {})
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot: DirectorySnapshot | None = None

    @property
    def snapshot(self) -> DirectorySnapshot | None:
        return self._snapshot

    def invalidate(self) -> None:
        """Drop the current snapshot so the next name lookup refreshes."""
        self._snapshot = None

    async def resolve(self, name_or_id: str) -> str:
        """Return the table identifier for *name_or_id*.

        Raises
        ------
        TableNotFoundError
            If the name is still unknown after one forced refresh.
        """
        if is_table_id(name_or_id):
            return name_or_id

        snapshot = self._snapshot
        if snapshot is None or snapshot.age(self._clock()) > self._ttl_seconds:
            snapshot = await self.refresh()

        table_id = snapshot.by_name.get(name_or_id)
        if table_id is not None:
            return table_id

        logger.debug("TableDirectory: %r not in snapshot; forcing one refresh", name_or_id)
        snapshot = await self.refresh()
        table_id = snapshot.by_name.get(name_or_id)
        if table_id is None:
            raise TableNotFoundError(name_or_id)
        return table_id

    async def refresh(self) -> DirectorySnapshot:
        """Rebuild the snapshot from the static seed plus the listed tables."""
        by_name = dict(self._static_table_ids)
        tables = await self._client.list_tables(self._base_id)
        for table in tables:
            name = table.get("name")
            table_id = table.get("id")
            if isinstance(name, str) and isinstance(table_id, str):
                by_name[name] = table_id

        snapshot = DirectorySnapshot(
            captured_at=self._clock(),
            by_name=MappingProxyType(by_name),
        )
        self._snapshot = snapshot
        logger.debug("TableDirectory: refreshed with %d table(s)", len(by_name))
        return snapshot
