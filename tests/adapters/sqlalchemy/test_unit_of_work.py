from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from tests.helpers.accounts import make_account
from usersweep.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyAccountUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from usersweep.domain.model import DELETE_MARKER_KEY, MARKER_MODULE

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyAccountUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_repositories_require_an_open_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(StartupError):
        _ = SqlAlchemyAccountUnitOfWork().repositories


def test_unit_of_work_persists_accounts_and_markers(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyAccountUnitOfWork() as uow:
        uow.repositories.accounts.add(make_account(5, providers={"oidc"}))
        uow.repositories.markers.set(MARKER_MODULE, 5, DELETE_MARKER_KEY, "stamp")
        uow.commit()

    with SqlAlchemyAccountUnitOfWork() as uow:
        account = uow.repositories.accounts.get(5)
        marker = uow.repositories.markers.get(MARKER_MODULE, 5, DELETE_MARKER_KEY)

    assert account is not None
    assert account.providers == frozenset({"oidc"})
    assert marker == "stamp"


def test_exception_rolls_back_pending_changes(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyAccountUnitOfWork() as uow:
        uow.repositories.accounts.add(make_account(5))
        raise RuntimeError("boom")

    with SqlAlchemyAccountUnitOfWork() as uow:
        assert uow.repositories.accounts.get(5) is None


def test_shutdown_resets_state(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    shutdown()

    assert configured_engine() is None
    assert not is_started()
