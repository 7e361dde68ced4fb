"""Id generator backed by a counter table.

Each entity key owns one row ``(table_name, last_id)``. A reservation of ``n``
keys advances ``last_id`` by ``n`` inside a single transaction: the ``UPDATE``
takes the row lock first, so concurrent reservations in this or any other
process serialise on it and read back disjoint ranges.
"""

from __future__ import annotations

import logging
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, MetaData, String, Table, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from rowkeeper.adapters.sqlalchemy.engine import BEGIN_IMMEDIATE_OPTION
from rowkeeper.config.commit import DEFAULT_ID_STORE_TABLE
from rowkeeper.domain.errors import GenerationError

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)

id_store_metadata = MetaData()


@cache
def id_store_table(table_name: str = DEFAULT_ID_STORE_TABLE) -> Table:
    """Return the counter table definition for ``table_name``."""

    return Table(
        table_name,
        id_store_metadata,
        Column("table_name", String(100), primary_key=True),
        Column("last_id", Integer, nullable=False),
    )


def create_id_store(engine: Engine, *, table_name: str = DEFAULT_ID_STORE_TABLE) -> None:
    """Create the counter table if it does not exist yet."""

    id_store_table(table_name).create(engine, checkfirst=True)
    log.info("Id store table %s is ready", table_name)


class SqlAlchemyIdGenerator:
    """Reserve key blocks from the counter table in an independent transaction."""

    def __init__(self, engine: Engine, *, table_name: str = DEFAULT_ID_STORE_TABLE) -> None:
        self.engine = engine
        self.table = id_store_table(table_name)

    def reserve(self, entity_key: str, count: int) -> int:
        if count < 0:
            raise ValueError("count must not be negative")
        if count == 0:
            return 0
        try:
            with self.engine.connect() as connection:
                connection.execution_options(**{BEGIN_IMMEDIATE_OPTION: True})
                with connection.begin():
                    last_id = self._advance(connection, entity_key, count)
        except SQLAlchemyError as exc:
            log.warning("Reserving %d %s keys failed: %s", count, entity_key, exc)
            raise GenerationError(
                f"Could not reserve {count} keys for {entity_key}: {exc}",
                entity_key=entity_key,
                count=count,
            ) from exc
        start = last_id - count + 1
        log.debug("Reserved %s keys %d..%d", entity_key, start, last_id)
        return start

    def current_value(self, entity_key: str) -> int:
        """Return the last handed out key for ``entity_key`` (0 if none)."""

        stmt = select(self.table.c.last_id).where(self.table.c.table_name == entity_key)
        try:
            with self.engine.connect() as connection:
                value = connection.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise GenerationError(
                f"Could not read the {entity_key} counter: {exc}",
                entity_key=entity_key,
                count=0,
            ) from exc
        return 0 if value is None else int(value)

    def _advance(self, connection: Connection, entity_key: str, count: int) -> int:
        if not self._increment(connection, entity_key, count):
            try:
                with connection.begin_nested():
                    connection.execute(
                        insert(self.table).values(table_name=entity_key, last_id=count)
                    )
                return count
            except IntegrityError:
                # another caller created the counter first
                if not self._increment(connection, entity_key, count):
                    raise
        stmt = select(self.table.c.last_id).where(self.table.c.table_name == entity_key)
        return int(connection.execute(stmt).scalar_one())

    def _increment(self, connection: Connection, entity_key: str, count: int) -> bool:
        stmt = (
            update(self.table)
            .where(self.table.c.table_name == entity_key)
            .values(last_id=self.table.c.last_id + count)
        )
        return connection.execute(stmt).rowcount == 1
