"""The four legacy evidence trails, each mapping order-out items to customers.

Each strategy joins in memory over rows fetched by the legacy reader, so the
same rules apply whatever store backs the reader. Rows arrive ordered by
ascending legacy id and the first usable row wins.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from legacylink.domain.model import LINKING_PRIORITY, LinkingMethod

from .contracts import StrategyEvidence

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from legacylink.domain.ports import LegacyRecordReader

    from .contracts import LinkingStrategy


def valid_customer_id(cus_id: int | None) -> int | None:
    """Return ``cus_id`` when it identifies a customer; null and zero ids do not."""

    if cus_id is None or cus_id <= 0:
        return None
    return cus_id


@dataclass(slots=True)
class _EvidenceStrategy(ABC):
    reader: LegacyRecordReader
    method: ClassVar[LinkingMethod]

    def resolve_all(self, ooi_ids: Collection[int]) -> StrategyEvidence:
        evidence = StrategyEvidence(method=self.method)
        unique_ids = sorted(set(ooi_ids))
        if unique_ids:
            self._collect(unique_ids, evidence)
        return evidence

    def resolve(self, ooi_id: int) -> int | None:
        return self.resolve_all((ooi_id,)).candidates.get(ooi_id)

    @abstractmethod
    def _collect(self, ooi_ids: list[int], evidence: StrategyEvidence) -> None: ...


@dataclass(slots=True)
class VisitsStrategy(_EvidenceStrategy):
    """Visiting report line -> visit -> visit customer (lowest visit id first)."""

    method: ClassVar[LinkingMethod] = LinkingMethod.VIA_VISITS

    def _collect(self, ooi_ids: list[int], evidence: StrategyEvidence) -> None:
        rows = sorted(
            self.reader.visit_evidence(ooi_ids),
            key=lambda row: (row.visiting_id, row.visiting_report_id),
        )
        for row in rows:
            cus_id = valid_customer_id(row.cus_id)
            if cus_id is None:
                evidence.record_skip(row.ooi_id, "visits found but none carries a customer id")
            else:
                evidence.record_candidate(row.ooi_id, cus_id)


@dataclass(slots=True)
class MaintenanceContractsStrategy(_EvidenceStrategy):
    """Contract item -> maintenance contract -> contract customer."""

    method: ClassVar[LinkingMethod] = LinkingMethod.VIA_MAINTENANCE_CONTRACTS

    def _collect(self, ooi_ids: list[int], evidence: StrategyEvidence) -> None:
        rows = sorted(self.reader.contract_evidence(ooi_ids), key=lambda row: row.contract_id)
        for row in rows:
            if not row.contract_found:
                evidence.record_skip(row.ooi_id, f"maintenance contract {row.contract_id} missing")
            elif (cus_id := valid_customer_id(row.cus_id)) is None:
                evidence.record_skip(
                    row.ooi_id, f"maintenance contract {row.contract_id} has no customer id"
                )
            else:
                evidence.record_candidate(row.ooi_id, cus_id)


@dataclass(slots=True)
class SalesInvoicesStrategy(_EvidenceStrategy):
    """Order-out item -> order-out -> sales invoice -> sales contract -> customer."""

    method: ClassVar[LinkingMethod] = LinkingMethod.VIA_SALES_INVOICES

    def _collect(self, ooi_ids: list[int], evidence: StrategyEvidence) -> None:
        rows = sorted(
            self.reader.sales_chain_evidence(ooi_ids),
            key=lambda row: (row.si_id or 0, row.sc_id or 0),
        )
        for row in rows:
            if row.oo_id is None or not row.order_out_found:
                evidence.record_skip(row.ooi_id, "order-out header missing")
            elif row.si_id is None:
                evidence.record_skip(row.ooi_id, f"order-out {row.oo_id} has no sales invoice")
            elif not row.invoice_found:
                evidence.record_skip(row.ooi_id, f"sales invoice {row.si_id} missing")
            elif row.sc_id is None:
                evidence.record_skip(row.ooi_id, f"sales invoice {row.si_id} has no sales contract")
            elif not row.contract_found:
                evidence.record_skip(row.ooi_id, f"sales contract {row.sc_id} missing")
            elif (cus_id := valid_customer_id(row.cus_id)) is None:
                evidence.record_skip(row.ooi_id, f"sales contract {row.sc_id} has no customer id")
            else:
                evidence.record_candidate(row.ooi_id, cus_id)


@dataclass(slots=True)
class OrderOutStrategy(_EvidenceStrategy):
    """Order-out item -> its order-out header's customer."""

    method: ClassVar[LinkingMethod] = LinkingMethod.VIA_ORDER_OUT

    def _collect(self, ooi_ids: list[int], evidence: StrategyEvidence) -> None:
        for row in self.reader.order_out_evidence(ooi_ids):
            if row.oo_id is None or not row.order_out_found:
                evidence.record_skip(row.ooi_id, "order-out header missing")
            elif (cus_id := valid_customer_id(row.cus_id)) is None:
                evidence.record_skip(row.ooi_id, f"order-out {row.oo_id} has no customer id")
            else:
                evidence.record_candidate(row.ooi_id, cus_id)


STRATEGY_TYPES: dict[LinkingMethod, type[_EvidenceStrategy]] = {
    LinkingMethod.VIA_VISITS: VisitsStrategy,
    LinkingMethod.VIA_MAINTENANCE_CONTRACTS: MaintenanceContractsStrategy,
    LinkingMethod.VIA_SALES_INVOICES: SalesInvoicesStrategy,
    LinkingMethod.VIA_ORDER_OUT: OrderOutStrategy,
}


def ordered_methods(methods: Iterable[LinkingMethod] | None = None) -> tuple[LinkingMethod, ...]:
    """Return ``methods`` (default: all) in priority order, without duplicates."""

    if methods is None:
        return LINKING_PRIORITY
    wanted = {LinkingMethod(method) for method in methods}
    return tuple(method for method in LINKING_PRIORITY if method in wanted)


def build_strategy(method: LinkingMethod, reader: LegacyRecordReader) -> LinkingStrategy:
    return STRATEGY_TYPES[method](reader)


def build_strategies(
    reader: LegacyRecordReader,
    methods: Iterable[LinkingMethod] | None = None,
) -> tuple[LinkingStrategy, ...]:
    return tuple(build_strategy(method, reader) for method in ordered_methods(methods))


def evaluate_all(
    reader: LegacyRecordReader,
    ooi_ids: Collection[int],
) -> dict[LinkingMethod, StrategyEvidence]:
    """Run every strategy independently against the same items (no priority cut-off)."""

    return {strategy.method: strategy.resolve_all(ooi_ids) for strategy in build_strategies(reader)}
