from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, select

from rowkeeper.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from rowkeeper.domain import (
    CommitStrategy,
    DbSet,
    PersistenceError,
    TrackingState,
    from_row,
)
from tests.helpers.people import Account, Foo, Person, accounts_table, make_people, people_table

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def _read_people(engine: Engine) -> list[Person]:
    with engine.connect() as connection:
        rows = connection.execute(select(people_table).order_by(people_table.c.id)).mappings()
        return [from_row(Person, row) for row in rows]


def test_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_db_set_is_shared_within_a_unit_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        people = uow.db_set(Person)

        assert isinstance(people, DbSet)
        assert uow.db_set(Person) is people
        assert uow.db_set(Foo) is not people


def test_insert_data_round_trips_converted_columns(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork], sqlite_engine: Engine
) -> None:
    with sqlite_unit_of_work() as uow:
        people = uow.db_set(Person)
        people.add(
            Person(
                id=1,
                first_name="Milan",
                last_name="Martiniak",
                age=32,
                address=["Petzvalova", "Pekna", "Zelena"],
            )
        )
        people.add(
            Person(id=2, first_name="Peter", last_name="Juráček", age=14, address=["Novozámocká"])
        )
        assert people.commit_changes() == 2
        uow.commit()

    milan = _read_people(sqlite_engine)[0]
    assert milan.id == 1
    assert milan.age == 32
    assert milan.first_name == "Milan"
    assert milan.last_name == "Martiniak"
    assert milan.address == ["Petzvalova", "Pekna", "Zelena"]


@pytest.mark.parametrize("commit", [DbSet.commit_changes, DbSet.bulk_insert])
def test_generates_primary_keys(
    commit: object,
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    sqlite_engine: Engine,
) -> None:
    source_people = make_people("Milan", "Peter", "Milada")
    with sqlite_unit_of_work() as uow:
        people = uow.db_set(Person)
        people.add_all(source_people)
        commit(people)  # type: ignore[operator]
        uow.commit()

    assert [person.id for person in source_people] == [1, 2, 3]
    stored = _read_people(sqlite_engine)
    assert [(person.id, person.first_name) for person in stored] == [
        (1, "Milan"),
        (2, "Peter"),
        (3, "Milada"),
    ]
    assert all(person.address == [] for person in stored)


def test_does_not_generate_primary_key_if_filled(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork], sqlite_engine: Engine
) -> None:
    source_people = make_people("Milan", "Peter", "Milada", ids=[5, 7, 9])
    with sqlite_unit_of_work() as uow:
        people = uow.db_set(Person)
        people.add_all(source_people)
        people.commit_changes()
        uow.commit()
        assert uow.id_generator.current_value("people") == 0

    assert [person.id for person in source_people] == [5, 7, 9]
    stored = _read_people(sqlite_engine)
    assert [(person.id, person.first_name) for person in stored] == [
        (5, "Milan"),
        (7, "Peter"),
        (9, "Milada"),
    ]


def test_does_not_generate_primary_key_if_key_is_not_generated(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork], sqlite_engine: Engine
) -> None:
    items = [Foo(), Foo(), Foo()]
    with sqlite_unit_of_work() as uow:
        foos = uow.db_set(Foo)
        foos.add_all(items)
        foos.commit_changes()
        uow.commit()

    assert [item.id for item in items] == [0, 0, 0]
    assert [person.id for person in _read_people(sqlite_engine)] == [0, 0, 0]


def test_bulk_insert_iterates_source_once(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    iteration_count = 0

    def source_items() -> Iterator[Person]:
        nonlocal iteration_count
        iteration_count += 1
        yield Person(id=5, first_name="Milan")

    with sqlite_unit_of_work() as uow:
        uow.db_set(Person).bulk_insert(source_items())
        uow.commit()

    assert iteration_count == 1


def test_keys_continue_across_units_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    first = [Account(owner="Milan"), Account(owner="Peter")]
    second = [Account(owner="Milada")]
    with sqlite_unit_of_work() as uow:
        uow.db_set(Account).bulk_insert(first)
        uow.commit()
    with sqlite_unit_of_work() as uow:
        uow.db_set(Account).add_all(second)
        uow.db_set(Account).commit_changes()
        uow.commit()

    assert [account.id for account in first + second] == [1, 2, 3]


def test_rolled_back_commit_retires_its_keys(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork], sqlite_engine: Engine
) -> None:
    accounts = [Account(owner="Milan"), Account(owner="Peter")]
    with pytest.raises(RuntimeError, match="abort"), sqlite_unit_of_work() as uow:
        uow.db_set(Account).add_all(accounts)
        uow.db_set(Account).commit_changes()
        raise RuntimeError("abort")

    with sqlite_unit_of_work() as uow:
        fresh = Account(owner="Milada")
        uow.db_set(Account).add(fresh)
        uow.db_set(Account).commit_changes()
        uow.commit()

    assert [account.id for account in accounts] == [1, 2]
    assert fresh.id == 3
    with sqlite_engine.connect() as connection:
        ids = connection.execute(select(accounts_table.c.id)).scalars().all()
    assert ids == [3]


def test_failed_bulk_insert_keeps_batch_pending(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork], sqlite_engine: Engine
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.db_set(Account).add(Account(id=100, owner="Milan"))
        uow.db_set(Account).commit_changes()
        uow.commit()

    with sqlite_unit_of_work() as uow:
        accounts = uow.db_set(Account)
        accounts.add_all([Account(owner="Peter"), Account(id=100, owner="Duplicate")])
        with pytest.raises(PersistenceError):
            accounts.bulk_insert()

        assert accounts.state is TrackingState.PENDING
        assert [account.id for account in accounts.pending] == [1, 100]
        uow.commit()

    with sqlite_engine.connect() as connection:
        owners = connection.execute(select(accounts_table.c.owner)).scalars().all()
    assert owners == ["Milan"]


def test_db_set_uses_configured_commit_strategy(
    monkeypatch: pytest.MonkeyPatch,
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    monkeypatch.setenv("ROWKEEPER_COMMIT_STRATEGY", "bulk")

    with sqlite_unit_of_work() as uow:
        assert uow.db_set(Person).default_strategy is CommitStrategy.BULK


def test_db_set_outside_context_raises(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()

    with pytest.raises(StartupError):
        uow.db_set(Person)


def test_unit_of_work_cannot_be_entered_twice(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()
    with uow, pytest.raises(StartupError, match="already open"):
        uow.__enter__()

    with uow:
        assert uow.db_set(Person).state is TrackingState.CLEAN
