"""Builders and probes for the current-system test database."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from legacylink.adapters.sqlalchemy.mappings import (
    client_table,
    equipment_client_link_table,
    equipment_table,
    legacy_customer_account_table,
)
from legacylink.domain.model import LinkingMethod

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.engine import Engine


@dataclass(slots=True)
class CurrentDatabase:
    engine: Engine

    def _insert(self, table: Table, **values: object) -> None:
        with self.engine.begin() as connection:
            connection.execute(table.insert().values(**values))

    def add_equipment(
        self,
        equipment_id: int,
        legacy_source_id: str | None,
        *,
        name: str | None = None,
        qr_code: str | None = None,
    ) -> None:
        self._insert(
            equipment_table,
            id=equipment_id,
            name=name or f"Equipment {equipment_id}",
            qr_code=qr_code,
            legacy_source_id=legacy_source_id,
            is_active=True,
        )

    def add_client(
        self,
        client_id: int,
        name: str,
        *,
        legacy_customer_id: int | None = None,
        related_user_id: str | None = None,
    ) -> None:
        self._insert(
            client_table,
            id=client_id,
            name=name,
            legacy_customer_id=legacy_customer_id,
            related_user_id=related_user_id,
        )

    def add_account(self, legacy_customer_id: int, user_id: str) -> None:
        self._insert(
            legacy_customer_account_table,
            legacy_customer_id=legacy_customer_id,
            user_id=user_id,
        )

    def add_link(self, equipment_id: int, client_id: int, method: LinkingMethod) -> None:
        self._insert(
            equipment_client_link_table,
            equipment_id=equipment_id,
            client_id=client_id,
            method=method,
            linked_at=datetime(2024, 1, 1, tzinfo=UTC),
        )

    def links(self) -> dict[int, tuple[int, LinkingMethod]]:
        """Return ``equipment_id -> (client_id, method)`` for every stored link."""

        link = equipment_client_link_table.c
        with self.engine.connect() as connection:
            rows = connection.execute(
                select(link.equipment_id, link.client_id, link.method).order_by(link.equipment_id)
            )
            return {row.equipment_id: (row.client_id, row.method) for row in rows}
