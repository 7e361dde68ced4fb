"""Storage executor writing rows through a SQLAlchemy session."""

from __future__ import annotations

import logging
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import column, insert, table
from sqlalchemy.exc import SQLAlchemyError

from rowkeeper.domain.errors import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import TableClause
    from sqlalchemy.orm import Session

    from rowkeeper.domain.rows import Row

log = logging.getLogger(__name__)


@cache
def _table_clause(name: str, columns: tuple[str, ...]) -> TableClause:
    return table(name, *(column(col) for col in columns))


class SqlAlchemyStorageExecutor:
    """Issue inserts on the session's connection without any schema knowledge.

    Transaction control stays with the owner of ``session``; a bulk insert runs
    inside a SAVEPOINT so a rejected load leaves no partial rows behind.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def execute_insert(self, table: str, row: Row) -> int:
        stmt = insert(_table_clause(table, tuple(row)))
        try:
            self.session.execute(stmt, row)
        except SQLAlchemyError as exc:
            log.warning("Insert into %s rejected: %s", table, exc)
            raise PersistenceError(f"Insert into {table} rejected: {exc}", table=table) from exc
        return 1

    def execute_bulk_insert(self, table: str, rows: Sequence[Row]) -> int:
        if not rows:
            return 0
        stmt = insert(_table_clause(table, tuple(rows[0])))
        try:
            with self.session.begin_nested():
                self.session.execute(stmt, list(rows))
        except SQLAlchemyError as exc:
            log.warning("Bulk insert of %d rows into %s rejected: %s", len(rows), table, exc)
            raise PersistenceError(
                f"Bulk insert of {len(rows)} rows into {table} rejected: {exc}", table=table
            ) from exc
        return len(rows)
