"""Port for writing entity rows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rowkeeper.domain.rows import Row


@runtime_checkable
class StorageExecutor(Protocol):
    """Persistence collaborator used by the commit strategies.

    Both calls return the number of affected rows and raise ``PersistenceError``
    when storage rejects the write. ``execute_bulk_insert`` is all-or-nothing.
    """

    def execute_insert(self, table: str, row: Row) -> int: ...

    def execute_bulk_insert(self, table: str, rows: Sequence[Row]) -> int: ...


__all__ = ["StorageExecutor"]
