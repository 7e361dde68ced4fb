"""Errors raised by the change-tracking and commit pipeline."""

from __future__ import annotations


class RowkeeperError(RuntimeError):
    """Base class for pipeline failures."""


class MetadataError(RowkeeperError):
    """Raised when an entity type has no resolvable key metadata."""


class GenerationError(RowkeeperError):
    """Raised when a key block could not be reserved atomically."""

    def __init__(self, message: str, *, entity_key: str, count: int) -> None:
        super().__init__(message)
        self.entity_key = entity_key
        self.count = count


class PersistenceError(RowkeeperError):
    """Raised when storage rejects one or more rows.

    ``index`` is the position of the rejected row within the batch for row-by-row
    commits and ``None`` for bulk loads, which fail as a unit.
    """

    def __init__(self, message: str, *, table: str, index: int | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.index = index


class ConversionError(RowkeeperError):
    """Raised when a converter cannot encode or decode a value."""
