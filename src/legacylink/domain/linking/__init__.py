"""Equipment-to-client linking: strategies, client resolution and the orchestrator."""

from __future__ import annotations

from .client_resolution import ClientKey, ClientMatch, ClientResolver
from .contracts import LinkingStrategy, StrategyEvidence
from .orchestrator import CancellationToken, LinkingOrchestrator, run_linking
from .results import EquipmentLinkingResult, LinkingMethodResult
from .strategies import (
    MaintenanceContractsStrategy,
    OrderOutStrategy,
    SalesInvoicesStrategy,
    VisitsStrategy,
    build_strategies,
    build_strategy,
    evaluate_all,
    ordered_methods,
    valid_customer_id,
)

__all__ = [
    "CancellationToken",
    "ClientKey",
    "ClientMatch",
    "ClientResolver",
    "EquipmentLinkingResult",
    "LinkingMethodResult",
    "LinkingOrchestrator",
    "LinkingStrategy",
    "MaintenanceContractsStrategy",
    "OrderOutStrategy",
    "SalesInvoicesStrategy",
    "StrategyEvidence",
    "VisitsStrategy",
    "build_strategies",
    "build_strategy",
    "evaluate_all",
    "ordered_methods",
    "run_linking",
    "valid_customer_id",
]
