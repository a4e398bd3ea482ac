"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from legacylink.domain.ports.persistence import (
        ClientDirectory,
        EquipmentLinkRepository,
        EquipmentRepository,
        LegacyRecordReader,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class LegacyRepositories(RepositoryCollection):
    """Read-only legacy database access."""

    records: LegacyRecordReader


@dataclass(slots=True)
class LinkingRepositories(RepositoryCollection):
    """Current-system repositories touched by linking and reporting."""

    equipment: EquipmentRepository
    links: EquipmentLinkRepository
    clients: ClientDirectory


type LegacyUnitOfWork = UnitOfWork[LegacyRepositories]
type LinkingUnitOfWork = UnitOfWork[LinkingRepositories]
