"""SQLAlchemy adapter package for legacylink."""

from __future__ import annotations

from .legacy import SqlAlchemyLegacyRecordReader, create_legacy_tables, legacy_metadata
from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyClientDirectory,
    SqlAlchemyEquipmentLinkRepository,
    SqlAlchemyEquipmentRepository,
)
from .unit_of_work import (
    SqlAlchemyLegacyUnitOfWork,
    SqlAlchemyLinkingUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyClientDirectory",
    "SqlAlchemyEquipmentLinkRepository",
    "SqlAlchemyEquipmentRepository",
    "SqlAlchemyLegacyRecordReader",
    "SqlAlchemyLegacyUnitOfWork",
    "SqlAlchemyLinkingUnitOfWork",
    "StartupError",
    "create_all_tables",
    "create_legacy_tables",
    "legacy_metadata",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
