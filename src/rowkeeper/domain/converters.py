"""Per-property value converters between domain and storage representations."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from rowkeeper.domain.errors import ConversionError


@runtime_checkable
class Converter(Protocol):
    """Bidirectional transform bound to one entity property.

    ``convert`` runs on write (domain -> storage), ``convert_back`` on read
    (storage -> domain). Implementations must be deterministic and satisfy
    ``convert_back(convert(v)) == v`` for every value they accept.
    """

    def convert(self, value: object) -> object: ...

    def convert_back(self, value: object) -> object: ...


@dataclass(frozen=True, slots=True)
class DelimitedListConverter:
    """Store a list of strings as a single delimited column.

    ``None`` and ``[]`` are both written as ``None``; reading ``None`` or ``""``
    yields ``[]``, never ``None``.
    """

    separator: str = "#"

    def __post_init__(self) -> None:
        if not self.separator:
            raise ValueError("separator must not be empty")

    def convert(self, value: object) -> str | None:
        if value is None:
            return None
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ConversionError(f"Expected a list of strings, got {type(value).__name__}")
        if not value:
            return None
        parts: list[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ConversionError(f"Expected str items, got {type(item).__name__}")
            if not item:
                raise ConversionError("Empty items cannot be stored in a delimited column")
            if self.separator in item:
                raise ConversionError(f"Item {item!r} contains the separator {self.separator!r}")
            parts.append(item)
        return self.separator.join(parts)

    def convert_back(self, value: object) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, str):
            raise ConversionError(f"Expected a delimited string, got {type(value).__name__}")
        if not value:
            return []
        return value.split(self.separator)


@dataclass(frozen=True, slots=True)
class JsonConverter:
    """Store JSON-serialisable values as compact text."""

    def convert(self, value: object) -> str | None:
        if value is None:
            return None
        try:
            return json.dumps(value, sort_keys=True, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise ConversionError(f"Value is not JSON serialisable: {exc}") from exc

    def convert_back(self, value: object) -> object:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ConversionError(f"Expected JSON text, got {type(value).__name__}")
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise ConversionError(f"Invalid JSON payload: {exc}") from exc
