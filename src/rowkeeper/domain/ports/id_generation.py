"""Port for reserving blocks of surrogate keys."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IdGenerator(Protocol):
    """Atomically reserves contiguous key ranges per counter.

    ``reserve(key, n)`` returns ``start`` such that ``[start, start + n)`` is never
    handed out again for ``key``, to this or any other caller. ``n == 0`` must not
    touch the backing store. Failures raise ``GenerationError`` and consume nothing.
    """

    def reserve(self, entity_key: str, count: int) -> int: ...


__all__ = ["IdGenerator"]
