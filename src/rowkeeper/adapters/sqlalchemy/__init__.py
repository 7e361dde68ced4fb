"""SQLAlchemy adapter package for rowkeeper."""

from __future__ import annotations

from .engine import build_engine, enable_sqlite_savepoints
from .id_generator import SqlAlchemyIdGenerator, create_id_store, id_store_table
from .storage import SqlAlchemyStorageExecutor
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyIdGenerator",
    "SqlAlchemyStorageExecutor",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "build_engine",
    "configured_engine",
    "create_id_store",
    "enable_sqlite_savepoints",
    "id_store_table",
    "is_started",
    "shutdown",
    "startup",
]
