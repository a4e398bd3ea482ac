"""Read-only records from the decommissioned legacy (TBS) database.

The engine never mutates these. Evidence rows are the flattened result of one
join path each and keep every intermediate key so a broken chain can be
reported precisely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from decimal import Decimal


@dataclass(frozen=True, slots=True, kw_only=True)
class LegacyEquipmentItem:
    """One order-out item (``Stk_Order_Out_Items``) with its catalogue data."""

    ooi_id: int
    oo_id: int | None = None
    item_id: int | None = None
    serial_number: str | None = None
    model_name: str | None = None
    model_name_en: str | None = None
    item_code: str | None = None
    quantity: Decimal | None = None
    expiration_date: datetime | None = None
    legacy_customer_id: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class LegacyCustomer:
    cus_id: int
    name: str | None = None
    phone: str | None = None
    mobile: str | None = None
    address: str | None = None
    email: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class VisitEvidence:
    """Visiting report line referencing an order-out item."""

    ooi_id: int
    visiting_report_id: int
    visiting_id: int
    cus_id: int | None


@dataclass(frozen=True, slots=True, kw_only=True)
class ContractEvidence:
    """Maintenance contract item referencing an order-out item.

    ``contract_found`` is false when the contract item points at a contract row
    that does not exist.
    """

    ooi_id: int
    contract_id: int
    contract_found: bool
    cus_id: int | None


@dataclass(frozen=True, slots=True, kw_only=True)
class SalesChainEvidence:
    """Order-out item -> order-out -> sales invoice -> sales contract."""

    ooi_id: int
    oo_id: int | None
    order_out_found: bool
    si_id: int | None
    invoice_found: bool
    sc_id: int | None
    contract_found: bool
    cus_id: int | None


@dataclass(frozen=True, slots=True, kw_only=True)
class OrderOutEvidence:
    """Order-out item -> order-out header."""

    ooi_id: int
    oo_id: int | None
    order_out_found: bool
    cus_id: int | None
