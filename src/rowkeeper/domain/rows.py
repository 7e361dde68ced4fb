"""Translate entities to storage rows and back."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, TypeAlias, TypeVar

from rowkeeper.domain.errors import ConversionError
from rowkeeper.domain.metadata import resolve_metadata

if TYPE_CHECKING:
    from collections.abc import Mapping

    from rowkeeper.domain.metadata import EntityMetadata

Row: TypeAlias = dict[str, object]

T = TypeVar("T")


def to_row(entity: object, metadata: EntityMetadata) -> Row:
    """Return the storage row for ``entity`` with converters applied."""

    row: Row = {}
    for binding in metadata.columns:
        value = getattr(entity, binding.attribute)
        try:
            row[binding.column] = binding.to_storage(value)
        except ConversionError as exc:
            raise ConversionError(
                f"Cannot convert {metadata.table}.{binding.column}: {exc}"
            ) from exc
    return row


def from_row(entity_type: type[T], row: Mapping[str, object]) -> T:
    """Rebuild an entity from a storage row, applying inverse converters.

    Columns missing from ``row`` fall back to the field defaults.
    """

    metadata = resolve_metadata(entity_type)
    init_fields = {field.name for field in dataclasses.fields(entity_type) if field.init}
    kwargs: dict[str, object] = {}
    late: dict[str, object] = {}
    for binding in metadata.columns:
        if binding.column not in row:
            continue
        value = binding.from_storage(row[binding.column])
        if binding.attribute in init_fields:
            kwargs[binding.attribute] = value
        else:
            late[binding.attribute] = value
    instance = entity_type(**kwargs)
    for attribute, value in late.items():
        setattr(instance, attribute, value)
    return instance
