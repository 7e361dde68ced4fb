"""Change tracking, key planning and commit pipeline."""

from __future__ import annotations

from .commit import CommitExecutor, CommitStrategy
from .converters import Converter, DelimitedListConverter, JsonConverter
from .errors import (
    ConversionError,
    GenerationError,
    MetadataError,
    PersistenceError,
    RowkeeperError,
)
from .keys import GeneratedKeyBlock, KeyAssignment, KeyGenerationPlanner
from .metadata import (
    ColumnBinding,
    EntityMetadata,
    KeyGeneration,
    PrimaryKeyMetadata,
    column_field,
    entity,
    key_field,
    resolve_metadata,
    resolve_primary_key,
)
from .rows import Row, from_row, to_row
from .tracking import DbSet, TrackingState

__all__ = [
    "ColumnBinding",
    "CommitExecutor",
    "CommitStrategy",
    "ConversionError",
    "Converter",
    "DbSet",
    "DelimitedListConverter",
    "EntityMetadata",
    "GeneratedKeyBlock",
    "GenerationError",
    "JsonConverter",
    "KeyAssignment",
    "KeyGeneration",
    "KeyGenerationPlanner",
    "MetadataError",
    "PersistenceError",
    "PrimaryKeyMetadata",
    "Row",
    "RowkeeperError",
    "TrackingState",
    "column_field",
    "entity",
    "from_row",
    "key_field",
    "resolve_metadata",
    "resolve_primary_key",
    "to_row",
]
