from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from legacylink.adapters.sqlalchemy import create_all_tables, create_legacy_tables, start_mappers
from legacylink.adapters.sqlalchemy.migrations import upgrade_head
from legacylink.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLegacyUnitOfWork,
    SqlAlchemyLinkingUnitOfWork,
    shutdown,
    startup,
)
from tests.helpers.current_records import CurrentDatabase
from tests.helpers.legacy_records import LegacyDatabase
from tests.helpers.world import seed_current, seed_legacy

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("LEGACY_DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@dataclass(frozen=True, slots=True)
class UnitOfWorkFactories:
    legacy: Callable[[], SqlAlchemyLegacyUnitOfWork]
    linking: Callable[[], SqlAlchemyLinkingUnitOfWork]


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # file-backed so worker threads share the database
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'current.db'}", future=True)
    start_mappers()
    create_all_tables(engine)
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def legacy_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'legacy.db'}", future=True)
    create_legacy_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def current_db(sqlite_engine: Engine) -> CurrentDatabase:
    return CurrentDatabase(sqlite_engine)


@pytest.fixture
def legacy_db(legacy_engine: Engine) -> LegacyDatabase:
    return LegacyDatabase(legacy_engine)


@pytest.fixture
def uow_factories(sqlite_engine: Engine, legacy_engine: Engine) -> Iterator[UnitOfWorkFactories]:
    startup(engine=sqlite_engine, legacy_engine=legacy_engine, force=True, migrate=False)
    try:
        yield UnitOfWorkFactories(
            legacy=SqlAlchemyLegacyUnitOfWork,
            linking=SqlAlchemyLinkingUnitOfWork,
        )
    finally:
        shutdown()


@pytest.fixture
def seeded(
    current_db: CurrentDatabase,
    legacy_db: LegacyDatabase,
    uow_factories: UnitOfWorkFactories,
) -> UnitOfWorkFactories:
    """The estate described in ``tests.helpers.world``, ready to link."""

    seed_legacy(legacy_db)
    seed_current(current_db)
    return uow_factories
