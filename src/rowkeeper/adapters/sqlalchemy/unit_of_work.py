"""SQLAlchemy-backed unit of work handing out tracked entity sets.

:func:`startup` binds the adapter to one engine for the whole process. Every
:class:`SqlAlchemyUnitOfWork` then opens its own session on that engine and
shares the engine-wide id generator, so key reservations made by different
units of work never overlap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from rowkeeper.adapters.sqlalchemy.engine import build_engine
from rowkeeper.adapters.sqlalchemy.id_generator import SqlAlchemyIdGenerator, create_id_store
from rowkeeper.adapters.sqlalchemy.storage import SqlAlchemyStorageExecutor
from rowkeeper.config import get_commit_config, get_database_uri, get_id_store_config
from rowkeeper.domain.tracking import DbSet

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

TEntity = TypeVar("TEntity")


class StartupError(RuntimeError):
    """Raised when the adapter or a unit of work is used in the wrong lifecycle state."""


@dataclass(frozen=True, slots=True)
class _Runtime:
    engine: Engine
    session_factory: sessionmaker[Session]
    id_generator: SqlAlchemyIdGenerator


_runtime: _Runtime | None = None


def _require_runtime() -> _Runtime:
    if _runtime is None:
        raise StartupError(
            "SQLAlchemy adapter not initialised. Call rowkeeper.adapters.sqlalchemy."
            "unit_of_work.startup() before requesting a unit of work."
        )
    return _runtime


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
    create_store: bool = True,
) -> None:
    """Bind the adapter to ``engine`` (or one built from ``database_uri``).

    The id store table is created unless ``create_store`` is false. A second
    call replaces the binding only with ``force=True``; the previous engine is
    left to its owner.
    """

    global _runtime  # noqa: PLW0603
    if _runtime is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or build_engine(database_uri or get_database_uri())
    table_name = get_id_store_config().table_name
    if create_store:
        create_id_store(resolved_engine, table_name=table_name)

    _runtime = _Runtime(
        engine=resolved_engine,
        session_factory=sessionmaker(bind=resolved_engine, expire_on_commit=False),
        id_generator=SqlAlchemyIdGenerator(resolved_engine, table_name=table_name),
    )
    log.debug("SQLAlchemy adapter bound to %s", resolved_engine.url)


def configured_engine() -> Engine | None:
    return None if _runtime is None else _runtime.engine


def is_started() -> bool:
    return _runtime is not None


def shutdown() -> None:
    """Dispose the bound engine and unbind the adapter."""

    global _runtime  # noqa: PLW0603
    if _runtime is not None:
        _runtime.engine.dispose()
    _runtime = None


class SqlAlchemyUnitOfWork:
    """Session-scoped boundary for committing tracked entity sets.

    Rows written by ``DbSet`` commits become durable on :meth:`commit`. Key
    reservations run in their own transactions and survive a rollback.
    """

    def __init__(self) -> None:
        runtime = _require_runtime()
        self.session_factory = runtime.session_factory
        self.id_generator = runtime.id_generator
        self.default_strategy = get_commit_config().default_strategy
        self._session: Session | None = None
        self._sets: dict[type, DbSet[object]] = {}

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self.session_factory()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._sets.clear()
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open; use it as a context manager")
        return self._session

    def db_set(self, entity_type: type[TEntity]) -> DbSet[TEntity]:
        """Return the tracked set for ``entity_type``, creating it on first use."""

        tracked = self._sets.get(entity_type)
        if tracked is None:
            tracked = DbSet(
                entity_type,
                storage=SqlAlchemyStorageExecutor(self.session),
                id_generator=self.id_generator,
                default_strategy=self.default_strategy,
            )
            self._sets[entity_type] = tracked  # type: ignore[assignment]
        return tracked  # type: ignore[return-value]

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
