"""Immutable summaries produced by a linking run."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from legacylink.domain.model import LinkingMethod

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class LinkingMethodResult:
    """Per-strategy tally for one run.

    Each equipment item considered by the run is counted exactly once across
    all method results (linked, skipped or errored). ``errors`` holds every
    resolution error message the strategy produced, including those for items
    a lower-priority strategy later linked.
    """

    method: LinkingMethod
    success: bool = True
    linked_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    evaluated_count: int = 0
    error_message: str | None = None
    errors: tuple[str, ...] = ()
    duration: timedelta = timedelta(0)

    @property
    def method_name(self) -> str:
        return self.method.value


@dataclass(frozen=True, slots=True, kw_only=True)
class EquipmentLinkingResult:
    """Outcome of one ``run_linking`` invocation."""

    success: bool
    message: str
    start_time: datetime
    end_time: datetime
    method_results: tuple[LinkingMethodResult, ...] = ()
    total_considered: int = 0
    cancelled: bool = False
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def total_linked(self) -> int:
        return sum(result.linked_count for result in self.method_results)

    @property
    def total_skipped(self) -> int:
        return sum(result.skipped_count for result in self.method_results)

    @property
    def total_errors(self) -> int:
        return sum(result.error_count for result in self.method_results)

    def method_result(self, method: LinkingMethod) -> LinkingMethodResult | None:
        for result in self.method_results:
            if result.method is method:
                return result
        return None

    @property
    def via_visits(self) -> LinkingMethodResult | None:
        return self.method_result(LinkingMethod.VIA_VISITS)

    @property
    def via_maintenance_contracts(self) -> LinkingMethodResult | None:
        return self.method_result(LinkingMethod.VIA_MAINTENANCE_CONTRACTS)

    @property
    def via_sales_invoices(self) -> LinkingMethodResult | None:
        return self.method_result(LinkingMethod.VIA_SALES_INVOICES)

    @property
    def via_order_out(self) -> LinkingMethodResult | None:
        return self.method_result(LinkingMethod.VIA_ORDER_OUT)
