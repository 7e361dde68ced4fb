"""Commit pipeline defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from rowkeeper.domain.commit import CommitStrategy

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_ID_STORE_TABLE: Final[str] = "id_store"


@dataclass(frozen=True, slots=True)
class IdStoreConfig:
    table_name: str = DEFAULT_ID_STORE_TABLE


@dataclass(frozen=True, slots=True)
class CommitConfig:
    default_strategy: CommitStrategy = CommitStrategy.ROW


def get_id_store_config() -> IdStoreConfig:
    table_name = optional_env_var("ROWKEEPER_ID_STORE_TABLE")
    if table_name is None:
        return IdStoreConfig()
    if not table_name.replace("_", "").isalnum():
        raise ConfigurationError(
            f"Invalid id store table name: {table_name!r}",
            variables=("ROWKEEPER_ID_STORE_TABLE",),
        )
    return IdStoreConfig(table_name=table_name)


def get_commit_config() -> CommitConfig:
    raw = optional_env_var("ROWKEEPER_COMMIT_STRATEGY")
    if raw is None:
        return CommitConfig()
    try:
        strategy = CommitStrategy(raw.lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in CommitStrategy)
        raise ConfigurationError(
            f"Unknown commit strategy {raw!r}; expected one of: {choices}",
            variables=("ROWKEEPER_COMMIT_STRATEGY",),
        ) from exc
    return CommitConfig(default_strategy=strategy)
