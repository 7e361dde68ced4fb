"""Declarative entity metadata and its resolution into immutable records.

Entities are dataclasses marked with :func:`entity`. Exactly one field is
declared with :func:`key_field`; further fields may use :func:`column_field` to
rename the column or attach a converter. Every other dataclass field maps to a
column of the same name.

Resolution happens once per entity type; :func:`resolve_metadata` caches its
result for the lifetime of the process.
"""

from __future__ import annotations

import dataclasses
from dataclasses import MISSING, dataclass
from enum import StrEnum
from functools import cache
from typing import TYPE_CHECKING, Any, Final, TypeVar

from rowkeeper.domain.errors import MetadataError

if TYPE_CHECKING:
    from collections.abc import Callable

    from rowkeeper.domain.converters import Converter

TABLE_ATTRIBUTE: Final[str] = "__rowkeeper_table__"
_KEY_MARKER: Final[str] = "rowkeeper.key"
_COLUMN_MARKER: Final[str] = "rowkeeper.column"

T = TypeVar("T")


class KeyGeneration(StrEnum):
    """How a surrogate key is produced."""

    NONE = "none"
    CUSTOM = "custom"
    STORE_MANAGED = "store_managed"


@dataclass(frozen=True, slots=True)
class _KeyOptions:
    generation: KeyGeneration
    column: str | None


@dataclass(frozen=True, slots=True)
class _ColumnOptions:
    column: str | None
    converter: Converter | None


def entity(*, table: str | None = None) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass as a persistent entity stored in ``table``."""

    def decorate(cls: type[T]) -> type[T]:
        setattr(cls, TABLE_ATTRIBUTE, table or cls.__name__.lower())
        return cls

    return decorate


def key_field(
    generation: KeyGeneration = KeyGeneration.NONE,
    *,
    column: str | None = None,
    default: object = 0,
) -> Any:
    """Declare the surrogate key field; ``default`` is the unassigned value."""

    return dataclasses.field(
        default=default,
        metadata={_KEY_MARKER: _KeyOptions(generation=KeyGeneration(generation), column=column)},
    )


def column_field(
    *,
    name: str | None = None,
    converter: Converter | None = None,
    default: Any = MISSING,
    default_factory: Any = MISSING,
) -> Any:
    """Declare a mapped field with an optional column name and converter."""

    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata={_COLUMN_MARKER: _ColumnOptions(column=name, converter=converter)},
    )


@dataclass(frozen=True, slots=True)
class PrimaryKeyMetadata:
    """Resolved surrogate key description for one entity type."""

    entity_type: type
    attribute: str
    column: str
    generation: KeyGeneration
    default: object

    @property
    def is_generated(self) -> bool:
        return self.generation is not KeyGeneration.NONE

    def get_key(self, entity: object) -> object:
        return getattr(entity, self.attribute)

    def set_key(self, entity: object, value: object) -> None:
        setattr(entity, self.attribute, value)

    def needs_key(self, entity: object) -> bool:
        """Return whether the planner has to assign a key to ``entity``."""

        return self.is_generated and self.get_key(entity) == self.default


@dataclass(frozen=True, slots=True)
class ColumnBinding:
    """Mapping of one entity attribute onto a storage column."""

    attribute: str
    column: str
    converter: Converter | None = None

    def to_storage(self, value: object) -> object:
        return value if self.converter is None else self.converter.convert(value)

    def from_storage(self, value: object) -> object:
        return value if self.converter is None else self.converter.convert_back(value)


@dataclass(frozen=True, slots=True)
class EntityMetadata:
    """Everything the commit pipeline needs to know about an entity type."""

    entity_type: type
    table: str
    primary_key: PrimaryKeyMetadata
    columns: tuple[ColumnBinding, ...]

    @property
    def entity_key(self) -> str:
        """Name of the id-store counter backing generated keys."""

        return self.table


@cache
def resolve_metadata(entity_type: type) -> EntityMetadata:
    """Resolve and cache the metadata of ``entity_type``.

    Raises:
        MetadataError: if the type is not a declared entity or its key is unusable.
    """

    name = getattr(entity_type, "__qualname__", repr(entity_type))
    if not dataclasses.is_dataclass(entity_type):
        raise MetadataError(f"{name} is not a dataclass")
    table = getattr(entity_type, TABLE_ATTRIBUTE, None)
    if not isinstance(table, str):
        raise MetadataError(f"{name} is not declared with @entity")

    primary_key: PrimaryKeyMetadata | None = None
    columns: list[ColumnBinding] = []
    for field in dataclasses.fields(entity_type):
        key_options = field.metadata.get(_KEY_MARKER)
        if isinstance(key_options, _KeyOptions):
            if primary_key is not None:
                raise MetadataError(
                    f"{name} declares more than one key field: "
                    f"{primary_key.attribute!r} and {field.name!r}"
                )
            primary_key = _build_primary_key(entity_type, field, key_options)
            columns.append(ColumnBinding(attribute=field.name, column=primary_key.column))
            continue
        column_options = field.metadata.get(_COLUMN_MARKER)
        if isinstance(column_options, _ColumnOptions):
            columns.append(
                ColumnBinding(
                    attribute=field.name,
                    column=column_options.column or field.name,
                    converter=column_options.converter,
                )
            )
        else:
            columns.append(ColumnBinding(attribute=field.name, column=field.name))

    if primary_key is None:
        raise MetadataError(f"{name} declares no key field")

    return EntityMetadata(
        entity_type=entity_type,
        table=table,
        primary_key=primary_key,
        columns=tuple(columns),
    )


def resolve_primary_key(entity_type: type) -> PrimaryKeyMetadata:
    return resolve_metadata(entity_type).primary_key


def _build_primary_key(
    entity_type: type, field: dataclasses.Field[Any], options: _KeyOptions
) -> PrimaryKeyMetadata:
    name = entity_type.__qualname__
    if options.generation is not KeyGeneration.NONE:
        default = field.default
        # generated keys come from an integer counter
        if type(default) is not int:
            raise MetadataError(
                f"{name}.{field.name} uses {options.generation} generation but its "
                f"default {default!r} is not an int"
            )
        if entity_type.__dataclass_params__.frozen:  # type: ignore[attr-defined]
            raise MetadataError(f"{name} is frozen; generated keys cannot be assigned")
    return PrimaryKeyMetadata(
        entity_type=entity_type,
        attribute=field.name,
        column=options.column or field.name,
        generation=options.generation,
        default=field.default,
    )
