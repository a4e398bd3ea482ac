"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    ClientCounts,
    ClientDirectory,
    EquipmentCounts,
    EquipmentLinkRepository,
    EquipmentRepository,
    LegacyRecordReader,
)
from .unit_of_work import (
    LegacyRepositories,
    LegacyUnitOfWork,
    LinkingRepositories,
    LinkingUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ClientCounts",
    "ClientDirectory",
    "EquipmentCounts",
    "EquipmentLinkRepository",
    "EquipmentRepository",
    "LegacyRecordReader",
    "LegacyRepositories",
    "LegacyUnitOfWork",
    "LinkingRepositories",
    "LinkingUnitOfWork",
    "RepositoryCollection",
    "UnitOfWork",
]
