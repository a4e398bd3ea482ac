"""SQLAlchemy mapping metadata for the current-system tables.

``equipment``, ``client`` and ``legacy_customer_account`` belong to the host
application and are only read; ``equipment_client_link`` is the one table this
package writes and migrates.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Integer,
    PrimaryKeyConstraint,
    String,
    Table,
    TypeDecorator,
    orm,
)
from sqlalchemy.orm import configure_mappers

from legacylink.domain.model import (
    Client,
    Equipment,
    EquipmentLink,
    LegacyCustomerAccount,
    LinkingMethod,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _method_values(enum_cls: type[LinkingMethod]) -> list[str]:
    return [member.value for member in enum_cls]


LinkingMethodType = Enum(
    LinkingMethod,
    native_enum=False,
    values_callable=_method_values,
    length=32,
)

mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Host application tables -----------------------------------------------------

equipment_table = Table(
    "equipment",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("qr_code", String, nullable=True),
    Column("legacy_source_id", String, nullable=True, index=True),
    Column("is_active", Boolean, nullable=False, default=True),
)

client_table = Table(
    "client",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String, nullable=False),
    Column("legacy_customer_id", Integer, nullable=True, index=True),
    Column("related_user_id", String, nullable=True, index=True),
)

legacy_customer_account_table = Table(
    "legacy_customer_account",
    mapper_registry.metadata,
    Column("legacy_customer_id", Integer, nullable=False),
    Column("user_id", String, nullable=False),
    PrimaryKeyConstraint("legacy_customer_id", "user_id"),
)

# Engine-owned table ----------------------------------------------------------

equipment_client_link_table = Table(
    "equipment_client_link",
    mapper_registry.metadata,
    Column(
        "equipment_id",
        Integer,
        ForeignKey("equipment.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("client_id", Integer, nullable=False, index=True),
    Column("method", LinkingMethodType, nullable=False),
    Column("legacy_customer_id", Integer, nullable=True),
    Column("linked_at", UTCDateTime, nullable=False),
    Column("linked_by", String, nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the current-system records."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Equipment, equipment_table)
    mapper_registry.map_imperatively(Client, client_table)
    mapper_registry.map_imperatively(LegacyCustomerAccount, legacy_customer_account_table)
    mapper_registry.map_imperatively(EquipmentLink, equipment_client_link_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create the host tables and the link table (test and standalone setups)."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
