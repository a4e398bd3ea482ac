"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from sqlalchemy import and_, delete, exists, func, insert, literal, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.exc import IntegrityError

from legacylink.adapters.sqlalchemy.mappings import (
    client_table,
    equipment_client_link_table,
    equipment_table,
    legacy_customer_account_table,
)
from legacylink.domain.model import (
    Client,
    Equipment,
    EquipmentLink,
    LegacyCustomerAccount,
    LinkingMethod,
)
from legacylink.domain.ports.persistence import ClientCounts, EquipmentCounts

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import Session

log = logging.getLogger(__name__)


def _has_legacy_source_id() -> ColumnElement[bool]:
    column = equipment_table.c.legacy_source_id
    return and_(column.is_not(None), func.trim(column) != "")


def _has_link() -> ColumnElement[bool]:
    return exists().where(equipment_client_link_table.c.equipment_id == equipment_table.c.id)


class SqlAlchemyEquipmentRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def linkable(self, *, scope: Collection[int] | None = None) -> list[Equipment]:
        stmt = select(Equipment).where(_has_legacy_source_id())
        return self._scoped(stmt, scope)

    def linkable_without_link(self, *, scope: Collection[int] | None = None) -> list[Equipment]:
        stmt = select(Equipment).where(_has_legacy_source_id()).where(~_has_link())
        return self._scoped(stmt, scope)

    def unlinked_page(self, *, offset: int, limit: int) -> list[Equipment]:
        stmt = (
            select(Equipment)
            .where(~_has_link())
            .order_by(equipment_table.c.id)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())

    def count_unlinked(self) -> int:
        stmt = select(func.count()).select_from(equipment_table).where(~_has_link())
        return self.session.execute(stmt).scalar_one()

    def linked_to_client(self, client_id: int) -> list[tuple[Equipment, EquipmentLink]]:
        stmt = (
            select(Equipment, EquipmentLink)
            .join(
                EquipmentLink,
                equipment_client_link_table.c.equipment_id == equipment_table.c.id,
            )
            .where(equipment_client_link_table.c.client_id == client_id)
            .order_by(equipment_table.c.id)
        )
        return [(row[0], row[1]) for row in self.session.execute(stmt)]

    def legacy_source_ids(self) -> list[str]:
        stmt = (
            select(equipment_table.c.legacy_source_id)
            .where(_has_legacy_source_id())
            .order_by(equipment_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def counts(self) -> EquipmentCounts:
        total = self.session.execute(select(func.count()).select_from(equipment_table)).scalar_one()
        with_legacy = self.session.execute(
            select(func.count()).select_from(equipment_table).where(_has_legacy_source_id())
        ).scalar_one()
        linked = self.session.execute(
            select(func.count())
            .select_from(equipment_table)
            .where(_has_legacy_source_id())
            .where(_has_link())
        ).scalar_one()
        return EquipmentCounts(
            total=total,
            with_legacy_source_id=with_legacy,
            linked_with_legacy_source_id=linked,
        )

    def _scoped(self, stmt: Select[tuple[Equipment]], scope: Collection[int] | None) -> list[Equipment]:
        if scope is not None:
            if not scope:
                return []
            stmt = stmt.where(equipment_table.c.id.in_(sorted(set(scope))))
        return list(self.session.execute(stmt.order_by(equipment_table.c.id)).scalars())


class SqlAlchemyEquipmentLinkRepository:
    """Write-once link store.

    ``add_if_absent`` never overwrites: it inserts only when the equipment has
    no link yet and reports whether it did.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_if_absent(self, link: EquipmentLink) -> bool:
        values = {
            "equipment_id": link.equipment_id,
            "client_id": link.client_id,
            "method": link.method,
            "legacy_customer_id": link.legacy_customer_id,
            "linked_at": link.linked_at,
            "linked_by": link.linked_by,
        }
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            stmt = equipment_client_link_table.insert().prefix_with("OR IGNORE").values(**values)
            return self.session.execute(stmt).rowcount == 1
        if dialect == "postgresql":
            stmt = (
                postgresql_insert(equipment_client_link_table)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["equipment_id"])
            )
            return self.session.execute(stmt).rowcount == 1
        return self._insert_when_missing(values)

    def _insert_when_missing(self, values: dict[str, object]) -> bool:
        table = equipment_client_link_table
        source = select(
            *(literal(value, type_=table.c[name].type).label(name) for name, value in values.items())
        ).where(~exists().where(table.c.equipment_id == values["equipment_id"]))
        stmt = insert(table).from_select(list(values), source)
        try:
            with self.session.begin_nested():
                return self.session.execute(stmt).rowcount == 1
        except IntegrityError:
            log.debug("Link for equipment %s was written concurrently", values["equipment_id"])
            return False

    def get(self, equipment_id: int) -> EquipmentLink | None:
        return self.session.get(EquipmentLink, equipment_id)

    def remove_for_equipment(self, equipment_ids: Collection[int]) -> int:
        if not equipment_ids:
            return 0
        stmt = delete(equipment_client_link_table).where(
            equipment_client_link_table.c.equipment_id.in_(sorted(set(equipment_ids)))
        )
        return self.session.execute(stmt).rowcount

    def count_by_method(self) -> dict[LinkingMethod, int]:
        method = equipment_client_link_table.c.method
        stmt = select(method, func.count()).group_by(method)
        return {LinkingMethod(row[0]): row[1] for row in self.session.execute(stmt)}

    def count_with_existing_client(self) -> int:
        stmt = select(func.count()).select_from(
            equipment_client_link_table.join(
                client_table, equipment_client_link_table.c.client_id == client_table.c.id
            )
        )
        return self.session.execute(stmt).scalar_one()


class SqlAlchemyClientDirectory:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, client_id: int) -> Client | None:
        return self.session.get(Client, client_id)

    def by_legacy_customer_ids(self, cus_ids: Collection[int]) -> list[Client]:
        if not cus_ids:
            return []
        stmt = (
            select(Client)
            .where(client_table.c.legacy_customer_id.in_(sorted(set(cus_ids))))
            .order_by(client_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def accounts_for_legacy_customers(
        self, cus_ids: Collection[int]
    ) -> list[LegacyCustomerAccount]:
        if not cus_ids:
            return []
        account = legacy_customer_account_table.c
        stmt = (
            select(LegacyCustomerAccount)
            .where(account.legacy_customer_id.in_(sorted(set(cus_ids))))
            .order_by(account.legacy_customer_id, account.user_id)
        )
        return list(self.session.execute(stmt).scalars())

    def by_related_user_ids(self, user_ids: Collection[str]) -> list[Client]:
        if not user_ids:
            return []
        stmt = (
            select(Client)
            .where(client_table.c.related_user_id.in_(sorted(set(user_ids))))
            .order_by(client_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def counts(self) -> ClientCounts:
        column = client_table.c
        stmt = select(
            func.count(),
            func.count(column.related_user_id),
            func.count(column.legacy_customer_id),
        ).select_from(client_table)
        total, with_user, with_legacy = self.session.execute(stmt).one()
        return ClientCounts(
            total=total,
            with_related_user_id=with_user,
            with_legacy_customer_id=with_legacy,
        )


if TYPE_CHECKING:
    from legacylink.domain.ports.persistence import (
        ClientDirectory,
        EquipmentLinkRepository,
        EquipmentRepository,
    )

    _session_stub = cast("Session", object())
    _equipment_check: EquipmentRepository = SqlAlchemyEquipmentRepository(_session_stub)
    _link_check: EquipmentLinkRepository = SqlAlchemyEquipmentLinkRepository(_session_stub)
    _client_check: ClientDirectory = SqlAlchemyClientDirectory(_session_stub)
