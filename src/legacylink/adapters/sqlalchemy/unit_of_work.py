"""SQLAlchemy-backed units of work for the current-system and legacy databases."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from legacylink.adapters.sqlalchemy.legacy import SqlAlchemyLegacyRecordReader
from legacylink.adapters.sqlalchemy.mappings import start_mappers
from legacylink.adapters.sqlalchemy.migrations import upgrade_head
from legacylink.adapters.sqlalchemy.repositories import (
    SqlAlchemyClientDirectory,
    SqlAlchemyEquipmentLinkRepository,
    SqlAlchemyEquipmentRepository,
)
from legacylink.config.linking import DEFAULT_QUERY_CHUNK_SIZE
from legacylink.config.storage import get_database_uri, get_legacy_database_uri
from legacylink.domain.ports.unit_of_work import (
    LegacyRepositories,
    LinkingRepositories,
    RepositoryCollection,
)

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    label: str
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                f"SQLAlchemy adapter not initialised ({self.label} database). Call "
                "legacylink.adapters.sqlalchemy.unit_of_work.startup() before requesting "
                "a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState(label="current")
_LEGACY_STATE = _AdapterState(label="legacy")


def startup(
    *,
    engine: Engine | None = None,
    legacy_engine: Engine | None = None,
    database_uri: str | None = None,
    legacy_database_uri: str | None = None,
    force: bool = False,
    migrate: bool = True,
) -> None:
    """Initialise both engines, the mappers and the link table migration."""

    if is_started() and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_database_uri(), future=True)
    resolved_legacy_engine = legacy_engine or create_engine(
        legacy_database_uri or get_legacy_database_uri(), future=True
    )
    start_mappers()
    if migrate:
        upgrade_head(engine=resolved_engine)

    _STATE.engine = resolved_engine
    _LEGACY_STATE.engine = resolved_legacy_engine


def configured_engine() -> Engine | None:
    """Return the current-system engine managed by the adapter (if any)."""

    return _STATE.engine


def configured_legacy_engine() -> Engine | None:
    return _LEGACY_STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None or _LEGACY_STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engines and reset state (primarily for tests)."""

    for state in (_STATE, _LEGACY_STATE):
        if state.engine is not None:
            state.engine.dispose()
        state.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    _state: ClassVar[_AdapterState] = _STATE

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = self._state.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyLinkingUnitOfWork(BaseSqlAlchemyUnitOfWork[LinkingRepositories]):
    """Unit of work over the current-system database."""

    def _build_repositories(self, session: Session) -> LinkingRepositories:
        return LinkingRepositories(
            equipment=SqlAlchemyEquipmentRepository(session),
            links=SqlAlchemyEquipmentLinkRepository(session),
            clients=SqlAlchemyClientDirectory(session),
        )


class SqlAlchemyLegacyUnitOfWork(BaseSqlAlchemyUnitOfWork[LegacyRepositories]):
    """Read-only unit of work over the legacy database; ``commit`` has nothing to flush."""

    _state: ClassVar[_AdapterState] = _LEGACY_STATE

    def __init__(self, *, chunk_size: int = DEFAULT_QUERY_CHUNK_SIZE) -> None:
        super().__init__()
        self.chunk_size = chunk_size

    def _build_repositories(self, session: Session) -> LegacyRepositories:
        return LegacyRepositories(
            records=SqlAlchemyLegacyRecordReader(session, chunk_size=self.chunk_size)
        )


if TYPE_CHECKING:
    from legacylink.domain.ports.unit_of_work import LegacyUnitOfWork, LinkingUnitOfWork

    _uow_linking_check: LinkingUnitOfWork = SqlAlchemyLinkingUnitOfWork()
    _uow_legacy_check: LegacyUnitOfWork = SqlAlchemyLegacyUnitOfWork()
