"""In-memory stand-ins for the legacy reader and the client directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from legacylink.domain.ports.persistence import ClientCounts

if TYPE_CHECKING:
    from collections.abc import Collection

    from legacylink.domain.model import (
        Client,
        ContractEvidence,
        LegacyCustomer,
        LegacyCustomerAccount,
        LegacyEquipmentItem,
        OrderOutEvidence,
        SalesChainEvidence,
        VisitEvidence,
    )


@dataclass
class FakeLegacyReader:
    items: list[LegacyEquipmentItem] = field(default_factory=list)
    visits: list[VisitEvidence] = field(default_factory=list)
    contracts: list[ContractEvidence] = field(default_factory=list)
    sales_chains: list[SalesChainEvidence] = field(default_factory=list)
    order_outs: list[OrderOutEvidence] = field(default_factory=list)
    legacy_customers: list[LegacyCustomer] = field(default_factory=list)

    def order_out_items(self, ooi_ids: Collection[int]) -> dict[int, LegacyEquipmentItem]:
        return {item.ooi_id: item for item in self.items if item.ooi_id in ooi_ids}

    def visit_evidence(self, ooi_ids: Collection[int]) -> list[VisitEvidence]:
        return [row for row in self.visits if row.ooi_id in ooi_ids]

    def contract_evidence(self, ooi_ids: Collection[int]) -> list[ContractEvidence]:
        return [row for row in self.contracts if row.ooi_id in ooi_ids]

    def sales_chain_evidence(self, ooi_ids: Collection[int]) -> list[SalesChainEvidence]:
        return [row for row in self.sales_chains if row.ooi_id in ooi_ids]

    def order_out_evidence(self, ooi_ids: Collection[int]) -> list[OrderOutEvidence]:
        return [row for row in self.order_outs if row.ooi_id in ooi_ids]

    def customers(self, cus_ids: Collection[int]) -> dict[int, LegacyCustomer]:
        return {row.cus_id: row for row in self.legacy_customers if row.cus_id in cus_ids}

    def visiting_report_counts(self) -> dict[int, int]:
        counts: dict[int, int] = {}
        for row in self.visits:
            counts[row.ooi_id] = counts.get(row.ooi_id, 0) + 1
        return counts


@dataclass
class FakeClientDirectory:
    clients: list[Client] = field(default_factory=list)
    accounts: list[LegacyCustomerAccount] = field(default_factory=list)
    lookups: int = 0

    def get(self, client_id: int) -> Client | None:
        return next((client for client in self.clients if client.id == client_id), None)

    def by_legacy_customer_ids(self, cus_ids: Collection[int]) -> list[Client]:
        self.lookups += 1
        return [client for client in self.clients if client.legacy_customer_id in cus_ids]

    def accounts_for_legacy_customers(
        self, cus_ids: Collection[int]
    ) -> list[LegacyCustomerAccount]:
        return [account for account in self.accounts if account.legacy_customer_id in cus_ids]

    def by_related_user_ids(self, user_ids: Collection[str]) -> list[Client]:
        return [client for client in self.clients if client.related_user_id in user_ids]

    def counts(self) -> ClientCounts:
        return ClientCounts(
            total=len(self.clients),
            with_related_user_id=sum(1 for c in self.clients if c.related_user_id is not None),
            with_legacy_customer_id=sum(
                1 for c in self.clients if c.legacy_customer_id is not None
            ),
        )
