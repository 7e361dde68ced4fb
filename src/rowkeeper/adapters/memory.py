"""In-process adapters for the id generator and storage ports."""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rowkeeper.domain.errors import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rowkeeper.domain.rows import Row


@dataclass
class InMemoryIdGenerator:
    """Counter per entity key, advanced under a lock.

    ``calls`` records every reservation that reached the counter.
    """

    start_at: int = 1
    _next: dict[str, int] = field(default_factory=dict[str, int])
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    calls: list[tuple[str, int]] = field(default_factory=list[tuple[str, int]])

    def reserve(self, entity_key: str, count: int) -> int:
        if count < 0:
            raise ValueError("count must not be negative")
        if count == 0:
            return 0
        with self._lock:
            start = self._next.get(entity_key, self.start_at)
            self._next[entity_key] = start + count
            self.calls.append((entity_key, count))
            return start

    def current_value(self, entity_key: str) -> int:
        with self._lock:
            return self._next.get(entity_key, self.start_at) - 1


@dataclass
class InMemoryStorage:
    """Tables as lists of row dicts with an optional unique key column per table."""

    unique_columns: dict[str, str] = field(default_factory=dict[str, str])
    tables: defaultdict[str, list[Row]] = field(
        default_factory=lambda: defaultdict[str, list["Row"]](list)
    )

    def execute_insert(self, table: str, row: Row) -> int:
        self._check_unique(table, [row])
        self.tables[table].append(dict(row))
        return 1

    def execute_bulk_insert(self, table: str, rows: Sequence[Row]) -> int:
        self._check_unique(table, rows)
        self.tables[table].extend(dict(row) for row in rows)
        return len(rows)

    def rows(self, table: str, *, order_by: str | None = None) -> list[Row]:
        stored = list(self.tables.get(table, []))
        if order_by is not None:
            stored.sort(key=lambda row: row[order_by])  # type: ignore[arg-type, return-value]
        return stored

    def _check_unique(self, table: str, rows: Sequence[Row]) -> None:
        column = self.unique_columns.get(table)
        if column is None:
            return
        seen = {row[column] for row in self.tables.get(table, [])}
        for row in rows:
            value = row[column]
            if value in seen:
                raise PersistenceError(
                    f"Duplicate value {value!r} for {table}.{column}", table=table
                )
            seen.add(value)
