"""Surrogate key planning for a materialised batch."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rowkeeper.domain.errors import GenerationError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from rowkeeper.domain.metadata import PrimaryKeyMetadata
    from rowkeeper.domain.ports.id_generation import IdGenerator

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GeneratedKeyBlock:
    """Contiguous ascending range ``[start, start + count)``."""

    start: int
    count: int

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.start + self.count))

    @property
    def last(self) -> int | None:
        return self.start + self.count - 1 if self.count else None


@dataclass(frozen=True, slots=True)
class KeyAssignment:
    """Outcome of one planning call."""

    block: GeneratedKeyBlock | None = None

    @property
    def assigned(self) -> int:
        return 0 if self.block is None else self.block.count


@dataclass(slots=True)
class KeyGenerationPlanner:
    """Assigns generated keys to the items of a batch that still lack one."""

    id_generator: IdGenerator

    def assign_keys(
        self,
        batch: Sequence[object],
        primary_key: PrimaryKeyMetadata,
        *,
        entity_key: str,
    ) -> KeyAssignment:
        """Reserve exactly one block for ``batch`` and hand it out in order.

        ``batch`` must already be materialised; it is walked once. Items whose key
        differs from the default are skipped in place and never overwritten. No
        key is touched unless the reservation succeeds.
        """

        if not primary_key.is_generated:
            return KeyAssignment()

        needing = [item for item in batch if primary_key.needs_key(item)]
        if not needing:
            log.debug("All %d %s keys already set; nothing to reserve", len(batch), entity_key)
            return KeyAssignment()

        start = self.id_generator.reserve(entity_key, len(needing))
        if not isinstance(start, int) or isinstance(start, bool):
            raise GenerationError(
                f"Id generator returned a non-integer start {start!r} for {entity_key}",
                entity_key=entity_key,
                count=len(needing),
            )
        block = GeneratedKeyBlock(start=start, count=len(needing))
        for item, value in zip(needing, block, strict=True):
            primary_key.set_key(item, value)

        log.debug(
            "Assigned %s keys %d..%s to %d of %d items",
            entity_key,
            block.start,
            block.last,
            block.count,
            len(batch),
        )
        return KeyAssignment(block=block)
