"""Domain records for legacy equipment linking."""

from __future__ import annotations

from .directory import Client, Equipment, EquipmentLink, LegacyCustomerAccount, parse_ooi_id
from .enums import LINKING_PRIORITY, LinkingMethod
from .legacy import (
    ContractEvidence,
    LegacyCustomer,
    LegacyEquipmentItem,
    OrderOutEvidence,
    SalesChainEvidence,
    VisitEvidence,
)

__all__ = [
    "LINKING_PRIORITY",
    "Client",
    "ContractEvidence",
    "Equipment",
    "EquipmentLink",
    "LegacyCustomer",
    "LegacyCustomerAccount",
    "LegacyEquipmentItem",
    "LinkingMethod",
    "OrderOutEvidence",
    "SalesChainEvidence",
    "VisitEvidence",
    "parse_ooi_id",
]
