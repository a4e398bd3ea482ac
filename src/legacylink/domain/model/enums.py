"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class LinkingMethod(StrEnum):
    """Evidence trail that produced (or corroborates) an equipment-to-client link."""

    VIA_VISITS = "ViaVisits"
    VIA_MAINTENANCE_CONTRACTS = "ViaMaintenanceContracts"
    VIA_SALES_INVOICES = "ViaSalesInvoices"
    VIA_ORDER_OUT = "ViaOrderOut"


# First successful method wins, in this order.
LINKING_PRIORITY: Final[tuple[LinkingMethod, ...]] = (
    LinkingMethod.VIA_VISITS,
    LinkingMethod.VIA_MAINTENANCE_CONTRACTS,
    LinkingMethod.VIA_SALES_INVOICES,
    LinkingMethod.VIA_ORDER_OUT,
)
