"""Commit executor: key planning followed by row or bulk persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from rowkeeper.domain.errors import PersistenceError
from rowkeeper.domain.rows import to_row

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rowkeeper.domain.keys import KeyGenerationPlanner
    from rowkeeper.domain.metadata import EntityMetadata
    from rowkeeper.domain.ports.storage import StorageExecutor

log = logging.getLogger(__name__)


class CommitStrategy(StrEnum):
    ROW = "row"
    BULK = "bulk"


@dataclass(slots=True)
class CommitExecutor:
    """Drain a materialised batch into storage.

    Planning runs once, before the strategy is chosen, so both strategies see
    identical key values; they differ only in how rows reach storage.
    """

    storage: StorageExecutor
    planner: KeyGenerationPlanner

    def commit(
        self,
        batch: Sequence[object],
        metadata: EntityMetadata,
        strategy: CommitStrategy = CommitStrategy.ROW,
    ) -> int:
        if not batch:
            return 0

        assignment = self.planner.assign_keys(
            batch, metadata.primary_key, entity_key=metadata.entity_key
        )
        log.debug(
            "Committing %d %s rows (%s, %d generated keys)",
            len(batch),
            metadata.table,
            strategy,
            assignment.assigned,
        )

        if CommitStrategy(strategy) is CommitStrategy.BULK:
            affected = self._bulk_insert(batch, metadata)
        else:
            affected = self._insert_rows(batch, metadata)

        log.info("Committed %d rows into %s via %s insert", affected, metadata.table, strategy)
        return affected

    def _insert_rows(self, batch: Sequence[object], metadata: EntityMetadata) -> int:
        affected = 0
        for index, item in enumerate(batch):
            row = to_row(item, metadata)
            try:
                affected += self.storage.execute_insert(metadata.table, row)
            except PersistenceError as exc:
                if exc.index is None:
                    exc.index = index
                raise
            except Exception as exc:
                raise PersistenceError(
                    f"Insert of row {index} into {metadata.table} failed: {exc}",
                    table=metadata.table,
                    index=index,
                ) from exc
        return affected

    def _bulk_insert(self, batch: Sequence[object], metadata: EntityMetadata) -> int:
        rows = [to_row(item, metadata) for item in batch]
        try:
            return self.storage.execute_bulk_insert(metadata.table, rows)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(
                f"Bulk insert of {len(rows)} rows into {metadata.table} failed: {exc}",
                table=metadata.table,
            ) from exc
