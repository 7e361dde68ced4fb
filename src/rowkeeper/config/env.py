"""Environment variable access with blank values treated as unset."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable


def optional_env_var(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def require_env_vars(names: Iterable[str]) -> dict[str, str]:
    """Return ``{name: value}`` for every name, or raise listing all missing ones."""

    found = {name: optional_env_var(name) for name in names}
    missing = tuple(sorted(name for name, value in found.items() if value is None))
    if missing:
        raise MissingConfigurationError(
            f"Missing configuration for: {', '.join(missing)}", variables=missing
        )
    return {name: value for name, value in found.items() if value is not None}


def require_env_var(name: str) -> str:
    return require_env_vars((name,))[name]
