"""Read-only access to the legacy (TBS) schema.

The legacy tables are declared on their own ``MetaData`` with the original
column names; the ``key`` of each column is the snake_case name used in code.
Nothing is mapped onto domain classes: rows are read with Core ``select()``
and turned into frozen records.
"""

from __future__ import annotations

import logging
from itertools import islice
from typing import TYPE_CHECKING, Any, Final, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    func,
    select,
)

from legacylink.config.linking import DEFAULT_QUERY_CHUNK_SIZE
from legacylink.domain.model import (
    ContractEvidence,
    LegacyCustomer,
    LegacyEquipmentItem,
    OrderOutEvidence,
    SalesChainEvidence,
    VisitEvidence,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterator

    from sqlalchemy import Select
    from sqlalchemy.engine import Engine, Row
    from sqlalchemy.orm import Session

log = logging.getLogger(__name__)

legacy_metadata: Final[MetaData] = MetaData()

order_out_item_table = Table(
    "Stk_Order_Out_Items",
    legacy_metadata,
    Column("OOI_ID", Integer, key="ooi_id", primary_key=True),
    Column("OO_ID", Integer, key="oo_id", nullable=True),
    Column("item_ID", Integer, key="item_id", nullable=True),
    Column("Quantity", Numeric(18, 3), key="quantity", nullable=True),
    Column("Item_DateExpire", DateTime, key="expiration_date", nullable=True),
    Column("SerialNum", String, key="serial_number", nullable=True),
    Column("DevicePlace", String, key="device_place", nullable=True),
)

order_out_table = Table(
    "Stk_Order_Out",
    legacy_metadata,
    Column("OO_ID", Integer, key="oo_id", primary_key=True),
    Column("Cus_ID", Integer, key="cus_id", nullable=True),
    Column("SI_ID", Integer, key="si_id", nullable=True),
)

item_table = Table(
    "Stk_Items",
    legacy_metadata,
    Column("item_ID", Integer, key="item_id", primary_key=True),
    Column("ItemCode", String, key="item_code", nullable=True),
    Column("ItemName_Ar", String, key="name_ar", nullable=True),
    Column("ItemName_En", String, key="name_en", nullable=True),
)

customer_table = Table(
    "Stk_Customers",
    legacy_metadata,
    Column("Cus_ID", Integer, key="cus_id", primary_key=True),
    Column("Cus_Name", String, key="name", nullable=True),
    Column("Cus_Tel", String, key="phone", nullable=True),
    Column("Cus_Mobile", String, key="mobile", nullable=True),
    Column("Cus_address", String, key="address", nullable=True),
    Column("Cus_Email", String, key="email", nullable=True),
)

visiting_table = Table(
    "MNT_Visiting",
    legacy_metadata,
    Column("VisitingId", Integer, key="visiting_id", primary_key=True),
    Column("Cus_ID", Integer, key="cus_id", nullable=True),
    Column("ContractId", Integer, key="contract_id", nullable=True),
    Column("VisitingDate", DateTime, key="visiting_date", nullable=True),
    Column("IS_Cancelled", Boolean, key="is_cancelled", nullable=True),
)

visiting_report_table = Table(
    "MNT_VisitingReport",
    legacy_metadata,
    Column("VisitingReportId", Integer, key="visiting_report_id", primary_key=True),
    Column("VisitingId", Integer, key="visiting_id", nullable=True),
    Column("OOI_ID", Integer, key="ooi_id", nullable=True),
    Column("ReportDate", DateTime, key="report_date", nullable=True),
)

maintenance_contract_table = Table(
    "MNT_MaintenanceContract",
    legacy_metadata,
    Column("ContractId", Integer, key="contract_id", primary_key=True),
    Column("Cus_ID", Integer, key="cus_id", nullable=True),
    Column("StartDate", DateTime, key="start_date", nullable=True),
    Column("EndDate", DateTime, key="end_date", nullable=True),
)

maintenance_contract_item_table = Table(
    "MNT_MaintenanceContract_Items",
    legacy_metadata,
    Column("ContractItemId", Integer, key="contract_item_id", primary_key=True),
    Column("ContractId", Integer, key="contract_id", nullable=True),
    Column("OOI_ID", Integer, key="ooi_id", nullable=True),
)

sales_invoice_table = Table(
    "Stk_Sales_Inv",
    legacy_metadata,
    Column("SI_ID", Integer, key="si_id", primary_key=True),
    Column("SC_ID", Integer, key="sc_id", nullable=True),
    Column("ContractId", Integer, key="contract_id", nullable=True),
)

sales_contract_table = Table(
    "Stk_Sales_Contract",
    legacy_metadata,
    Column("SC_ID", Integer, key="sc_id", primary_key=True),
    Column("Cus_ID", Integer, key="cus_id", nullable=True),
    Column("SC_Name", String, key="name", nullable=True),
)


def create_legacy_tables(engine: Engine) -> None:
    """Create the legacy tables (tests and local fixtures only)."""

    log.info("Creating legacy tables")
    legacy_metadata.create_all(engine)


def _chunked(values: Collection[int], size: int) -> Iterator[list[int]]:
    iterator = iter(sorted(set(values)))
    while chunk := list(islice(iterator, size)):
        yield chunk


class SqlAlchemyLegacyRecordReader:
    """Batched, read-only queries over the legacy schema.

    ``IN`` lists are split into chunks of ``chunk_size`` ids to stay below the
    bind-parameter limits of the legacy drivers.
    """

    def __init__(self, session: Session, *, chunk_size: int = DEFAULT_QUERY_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.session = session
        self.chunk_size = chunk_size

    def order_out_items(self, ooi_ids: Collection[int]) -> dict[int, LegacyEquipmentItem]:
        ooi = order_out_item_table.c
        items: dict[int, LegacyEquipmentItem] = {}
        for chunk in _chunked(ooi_ids, self.chunk_size):
            stmt = (
                select(
                    ooi.ooi_id,
                    ooi.oo_id,
                    ooi.item_id,
                    ooi.serial_number,
                    ooi.quantity,
                    ooi.expiration_date,
                    item_table.c.item_code,
                    item_table.c.name_ar,
                    item_table.c.name_en,
                    order_out_table.c.cus_id,
                )
                .select_from(
                    order_out_item_table.outerjoin(
                        item_table, ooi.item_id == item_table.c.item_id
                    ).outerjoin(order_out_table, ooi.oo_id == order_out_table.c.oo_id)
                )
                .where(ooi.ooi_id.in_(chunk))
            )
            for row in self.session.execute(stmt):
                items[row.ooi_id] = LegacyEquipmentItem(
                    ooi_id=row.ooi_id,
                    oo_id=row.oo_id,
                    item_id=row.item_id,
                    serial_number=row.serial_number,
                    model_name=row.name_ar,
                    model_name_en=row.name_en,
                    item_code=row.item_code,
                    quantity=row.quantity,
                    expiration_date=row.expiration_date,
                    legacy_customer_id=row.cus_id,
                )
        return items

    def visit_evidence(self, ooi_ids: Collection[int]) -> list[VisitEvidence]:
        report = visiting_report_table.c
        visit = visiting_table.c

        def build(chunk: list[int]) -> Select[Any]:
            return (
                select(report.ooi_id, report.visiting_report_id, visit.visiting_id, visit.cus_id)
                .select_from(
                    visiting_report_table.join(
                        visiting_table, report.visiting_id == visit.visiting_id
                    )
                )
                .where(report.ooi_id.in_(chunk))
                .order_by(visit.visiting_id, report.visiting_report_id)
            )

        return [
            VisitEvidence(
                ooi_id=row.ooi_id,
                visiting_report_id=row.visiting_report_id,
                visiting_id=row.visiting_id,
                cus_id=row.cus_id,
            )
            for row in self._rows(build, ooi_ids)
        ]

    def contract_evidence(self, ooi_ids: Collection[int]) -> list[ContractEvidence]:
        contract_item = maintenance_contract_item_table.c
        contract = maintenance_contract_table.c

        def build(chunk: list[int]) -> Select[Any]:
            return (
                select(
                    contract_item.ooi_id,
                    contract_item.contract_id,
                    contract.contract_id.label("found_contract_id"),
                    contract.cus_id,
                )
                .select_from(
                    maintenance_contract_item_table.outerjoin(
                        maintenance_contract_table,
                        contract_item.contract_id == contract.contract_id,
                    )
                )
                .where(contract_item.ooi_id.in_(chunk))
                .where(contract_item.contract_id.is_not(None))
                .order_by(contract_item.contract_id, contract_item.contract_item_id)
            )

        return [
            ContractEvidence(
                ooi_id=row.ooi_id,
                contract_id=row.contract_id,
                contract_found=row.found_contract_id is not None,
                cus_id=row.cus_id,
            )
            for row in self._rows(build, ooi_ids)
        ]

    def sales_chain_evidence(self, ooi_ids: Collection[int]) -> list[SalesChainEvidence]:
        ooi = order_out_item_table.c
        order_out = order_out_table.c
        invoice = sales_invoice_table.c
        contract = sales_contract_table.c

        def build(chunk: list[int]) -> Select[Any]:
            return (
                select(
                    ooi.ooi_id,
                    ooi.oo_id,
                    order_out.oo_id.label("found_oo_id"),
                    order_out.si_id,
                    invoice.si_id.label("found_si_id"),
                    invoice.sc_id,
                    contract.sc_id.label("found_sc_id"),
                    contract.cus_id,
                )
                .select_from(
                    order_out_item_table.outerjoin(order_out_table, ooi.oo_id == order_out.oo_id)
                    .outerjoin(sales_invoice_table, order_out.si_id == invoice.si_id)
                    .outerjoin(sales_contract_table, invoice.sc_id == contract.sc_id)
                )
                .where(ooi.ooi_id.in_(chunk))
                .order_by(ooi.ooi_id)
            )

        return [
            SalesChainEvidence(
                ooi_id=row.ooi_id,
                oo_id=row.oo_id,
                order_out_found=row.found_oo_id is not None,
                si_id=row.si_id,
                invoice_found=row.found_si_id is not None,
                sc_id=row.sc_id,
                contract_found=row.found_sc_id is not None,
                cus_id=row.cus_id,
            )
            for row in self._rows(build, ooi_ids)
        ]

    def order_out_evidence(self, ooi_ids: Collection[int]) -> list[OrderOutEvidence]:
        ooi = order_out_item_table.c
        order_out = order_out_table.c

        def build(chunk: list[int]) -> Select[Any]:
            return (
                select(
                    ooi.ooi_id,
                    ooi.oo_id,
                    order_out.oo_id.label("found_oo_id"),
                    order_out.cus_id,
                )
                .select_from(
                    order_out_item_table.outerjoin(order_out_table, ooi.oo_id == order_out.oo_id)
                )
                .where(ooi.ooi_id.in_(chunk))
                .order_by(ooi.ooi_id)
            )

        return [
            OrderOutEvidence(
                ooi_id=row.ooi_id,
                oo_id=row.oo_id,
                order_out_found=row.found_oo_id is not None,
                cus_id=row.cus_id,
            )
            for row in self._rows(build, ooi_ids)
        ]

    def customers(self, cus_ids: Collection[int]) -> dict[int, LegacyCustomer]:
        customer = customer_table.c

        def build(chunk: list[int]) -> Select[Any]:
            return (
                select(
                    customer.cus_id,
                    customer.name,
                    customer.phone,
                    customer.mobile,
                    customer.address,
                    customer.email,
                )
                .where(customer.cus_id.in_(chunk))
                .order_by(customer.cus_id)
            )

        return {
            row.cus_id: LegacyCustomer(
                cus_id=row.cus_id,
                name=row.name,
                phone=row.phone,
                mobile=row.mobile,
                address=row.address,
                email=row.email,
            )
            for row in self._rows(build, cus_ids)
        }

    def visiting_report_counts(self) -> dict[int, int]:
        """Return visiting-report row counts per referenced order-out item id."""

        report = visiting_report_table.c
        stmt = (
            select(report.ooi_id, func.count().label("reports"))
            .where(report.ooi_id.is_not(None))
            .group_by(report.ooi_id)
        )
        return {row.ooi_id: row.reports for row in self.session.execute(stmt)}

    def _rows(
        self,
        build: Callable[[list[int]], Select[Any]],
        ids: Collection[int],
    ) -> Iterator[Row[Any]]:
        for chunk in _chunked(ids, self.chunk_size):
            yield from self.session.execute(build(chunk))


if TYPE_CHECKING:
    from legacylink.domain.ports.persistence import LegacyRecordReader

    _session_stub = cast("Session", object())
    _reader_check: LegacyRecordReader = SqlAlchemyLegacyRecordReader(_session_stub)
