"""Engine construction helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import create_engine, event

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

BEGIN_IMMEDIATE_OPTION: Final[str] = "rowkeeper_begin_immediate"


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """Let SQLAlchemy own transaction boundaries on pysqlite connections.

    pysqlite defers ``BEGIN`` on its own, which breaks ``SAVEPOINT`` handling;
    the bulk strategy relies on savepoints to fail as a unit. Connections with
    the ``rowkeeper_begin_immediate`` execution option take the write lock up
    front, which keeps concurrent counter updates from failing as deadlocks.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(  # pyright: ignore[reportUnusedFunction]
        dbapi_connection: Any, _connection_record: object
    ) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection: Connection) -> None:  # pyright: ignore[reportUnusedFunction]
        if connection.get_execution_options().get(BEGIN_IMMEDIATE_OPTION):
            connection.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            connection.exec_driver_sql("BEGIN")

    return engine


def build_engine(database_uri: str) -> Engine:
    engine = create_engine(database_uri, future=True)
    if engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(engine)
    return engine
