"""Change tracking for pending entity insertions."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar

from rowkeeper.domain.commit import CommitExecutor, CommitStrategy
from rowkeeper.domain.keys import KeyGenerationPlanner
from rowkeeper.domain.metadata import resolve_metadata

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rowkeeper.domain.metadata import EntityMetadata
    from rowkeeper.domain.ports.id_generation import IdGenerator
    from rowkeeper.domain.ports.storage import StorageExecutor

log = logging.getLogger(__name__)

TEntity = TypeVar("TEntity")


class TrackingState(StrEnum):
    CLEAN = "clean"
    PENDING = "pending"


class DbSet(Generic[TEntity]):
    """Ordered set of entities of one type waiting to be inserted.

    Items are kept exactly as added; nothing is inspected until a commit.
    Iterables passed to :meth:`add_all` or :meth:`bulk_insert` are copied into the
    pending buffer on the spot and never iterated again. A successful commit
    clears the buffer; a failed one leaves it untouched for inspection or a
    retry with the keys that were already assigned.
    """

    def __init__(
        self,
        entity_type: type[TEntity],
        *,
        storage: StorageExecutor,
        id_generator: IdGenerator,
        default_strategy: CommitStrategy = CommitStrategy.ROW,
    ) -> None:
        self._entity_type = entity_type
        self._default_strategy = CommitStrategy(default_strategy)
        self._metadata: EntityMetadata = resolve_metadata(entity_type)
        self._executor = CommitExecutor(
            storage=storage, planner=KeyGenerationPlanner(id_generator=id_generator)
        )
        self._pending: list[TEntity] = []

    @property
    def entity_type(self) -> type[TEntity]:
        return self._entity_type

    @property
    def metadata(self) -> EntityMetadata:
        return self._metadata

    @property
    def default_strategy(self) -> CommitStrategy:
        return self._default_strategy

    @property
    def pending(self) -> tuple[TEntity, ...]:
        return tuple(self._pending)

    @property
    def state(self) -> TrackingState:
        return TrackingState.PENDING if self._pending else TrackingState.CLEAN

    def __len__(self) -> int:
        return len(self._pending)

    def add(self, item: TEntity) -> None:
        """Track a single entity for insertion."""

        self._check_type(item)
        self._pending.append(item)

    def add_all(self, items: Iterable[TEntity]) -> None:
        """Track every entity produced by ``items``, consuming it once."""

        materialized = list(items)
        for item in materialized:
            self._check_type(item)
        self._pending.extend(materialized)

    def clear(self) -> None:
        self._pending.clear()

    def commit_changes(self) -> int:
        """Insert the pending entities one row at a time."""

        return self._commit(CommitStrategy.ROW)

    def bulk_insert(self, items: Iterable[TEntity] | None = None) -> int:
        """Insert the pending entities, plus ``items`` if given, in one bulk load."""

        if items is not None:
            self.add_all(items)
        return self._commit(CommitStrategy.BULK)

    def commit(self, strategy: CommitStrategy | None = None) -> int:
        """Commit with ``strategy``, falling back to the set's default strategy."""

        effective = self._default_strategy if strategy is None else CommitStrategy(strategy)
        return self._commit(effective)

    def _commit(self, strategy: CommitStrategy) -> int:
        batch = tuple(self._pending)
        affected = self._executor.commit(batch, self._metadata, strategy)
        self._pending.clear()
        return affected

    def _check_type(self, item: object) -> None:
        if not isinstance(item, self._entity_type):
            raise TypeError(
                f"{type(item).__name__} cannot be tracked by a DbSet of "
                f"{self._entity_type.__name__}"
            )
