from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session  # noqa: TC002

from rowkeeper.adapters.sqlalchemy import SqlAlchemyStorageExecutor
from rowkeeper.domain.errors import PersistenceError
from rowkeeper.domain.ports import StorageExecutor
from tests.helpers.people import accounts_table, people_table


def test_executor_satisfies_port(sqlite_session: Session) -> None:
    assert isinstance(SqlAlchemyStorageExecutor(sqlite_session), StorageExecutor)


def test_execute_insert_writes_one_row(sqlite_session: Session) -> None:
    executor = SqlAlchemyStorageExecutor(sqlite_session)

    affected = executor.execute_insert("people", {"id": 1, "FirstName": "Milan", "age": 32})
    sqlite_session.commit()

    assert affected == 1
    row = sqlite_session.execute(select(people_table)).one()
    assert (row.id, row.FirstName, row.age, row.Address) == (1, "Milan", 32, None)


def test_execute_bulk_insert_writes_all_rows(sqlite_session: Session) -> None:
    executor = SqlAlchemyStorageExecutor(sqlite_session)

    affected = executor.execute_bulk_insert(
        "accounts", [{"id": 1, "owner": "Milan"}, {"id": 2, "owner": "Peter"}]
    )
    sqlite_session.commit()

    assert affected == 2
    owners = sqlite_session.execute(
        select(accounts_table.c.owner).order_by(accounts_table.c.id)
    ).scalars()
    assert list(owners) == ["Milan", "Peter"]


def test_execute_bulk_insert_of_nothing(sqlite_session: Session) -> None:
    assert SqlAlchemyStorageExecutor(sqlite_session).execute_bulk_insert("accounts", []) == 0


def test_rejected_insert_is_a_persistence_error(sqlite_session: Session) -> None:
    executor = SqlAlchemyStorageExecutor(sqlite_session)
    executor.execute_insert("accounts", {"id": 1, "owner": "Milan"})

    with pytest.raises(PersistenceError) as exc:
        executor.execute_insert("accounts", {"id": 1, "owner": "Peter"})

    assert exc.value.table == "accounts"


def test_rejected_bulk_insert_leaves_no_rows(sqlite_session: Session) -> None:
    executor = SqlAlchemyStorageExecutor(sqlite_session)
    executor.execute_insert("accounts", {"id": 1, "owner": "Milan"})

    with pytest.raises(PersistenceError):
        executor.execute_bulk_insert(
            "accounts",
            [{"id": 2, "owner": "Peter"}, {"id": 3, "owner": "Milada"}, {"id": 1, "owner": "X"}],
        )
    sqlite_session.commit()

    ids = sqlite_session.execute(select(accounts_table.c.id)).scalars()
    assert list(ids) == [1]
