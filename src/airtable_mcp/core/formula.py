"""Search formula synthesis for Airtable's ``filterByFormula`` parameter."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from airtable_mcp.errors import TableNotFoundError

logger = logging.getLogger(__name__)

TEXT_FIELD_TYPES = frozenset({"singleLineText", "multilineText", "richText", "email", "url"})
MAX_SEARCH_FIELDS = 12


@dataclass(frozen=True)
class SearchFormula:
    """A filter expression and the fields it was built from.

    An empty ``expression`` means "no filter".
    """

    expression: str
    fields: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.expression)


def escape_formula_string(value: str) -> str:
    """Escape *value* for use inside a double-quoted formula string literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def text_fields_for_table(
    tables: Sequence[dict[str, Any]],
    table_id: str,
    limit: int = MAX_SEARCH_FIELDS,
) -> list[str]:
    """Return up to *limit* text-bearing field names of *table_id*, in schema order."""
    for table in tables:
        if table.get("id") != table_id:
            continue
        names: list[str] = []
        for schema_field in table.get("fields") or []:
            if schema_field.get("type") in TEXT_FIELD_TYPES and schema_field.get("name"):
                names.append(schema_field["name"])
                if len(names) >= limit:
                    break
        return names
    raise TableNotFoundError(table_id)


def compose_formula(query: str, fields: Sequence[str]) -> SearchFormula:
    """OR together a case-insensitive substring match of *query* on each field.

    Field names containing ``}`` cannot be referenced safely and are skipped.
    """
    unsafe = [name for name in fields if "}" in name]
    if unsafe:
        logger.warning("Skipping field name(s) that cannot be referenced: %r", unsafe)
        fields = [name for name in fields if "}" not in name]
    if not fields:
        return SearchFormula(expression="", fields=())
    needle = escape_formula_string(query)
    predicates = [f'FIND(LOWER("{needle}"), LOWER({{{name}}}&""))' for name in fields]
    return SearchFormula(expression=f"OR({', '.join(predicates)})", fields=tuple(fields))


class SearchFormulaBuilder:
    """Build search formulas from explicit fields or the base's text fields."""

    def __init__(self, client: Any, base_id: str, directory: Any) -> None:
        self._client = client
        self._base_id = base_id
        self._directory = directory

    async def build(
        self,
        table_ref: str,
        query: str,
        explicit_fields: Sequence[str] | None = None,
        *,
        tables: Sequence[dict[str, Any]] | None = None,
    ) -> SearchFormula:
        """Return the formula matching *query* in *table_ref*.

        ``explicit_fields`` always wins over auto-discovery. ``tables`` may
        carry schema metadata the caller already fetched.
        """
        if explicit_fields:
            return compose_formula(query, list(explicit_fields))

        table_id = await self._directory.resolve(table_ref)
        if tables is None:
            tables = await self._client.list_tables(self._base_id)
        fields = text_fields_for_table(tables, table_id)
        if not fields:
            logger.debug("No text fields in %r; searching unfiltered", table_ref)
        return compose_formula(query, fields)
