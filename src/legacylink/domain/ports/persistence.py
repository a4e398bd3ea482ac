"""Ports for reading the legacy schema and the current-system directory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

    from legacylink.domain.model import (
        Client,
        ContractEvidence,
        Equipment,
        EquipmentLink,
        LegacyCustomer,
        LegacyCustomerAccount,
        LegacyEquipmentItem,
        LinkingMethod,
        OrderOutEvidence,
        SalesChainEvidence,
        VisitEvidence,
    )


@dataclass(frozen=True, slots=True)
class ClientCounts:
    total: int
    with_related_user_id: int
    with_legacy_customer_id: int


@dataclass(frozen=True, slots=True)
class EquipmentCounts:
    total: int
    with_legacy_source_id: int
    linked_with_legacy_source_id: int


@runtime_checkable
class LegacyRecordReader(Protocol):
    """Read-only access to the legacy tables, batched by order-out item id.

    Evidence rows are returned in a stable order (ascending legacy record ids) so
    that ties resolve identically on every run.
    """

    def order_out_items(self, ooi_ids: Collection[int]) -> dict[int, LegacyEquipmentItem]: ...

    def visit_evidence(self, ooi_ids: Collection[int]) -> list[VisitEvidence]: ...

    def contract_evidence(self, ooi_ids: Collection[int]) -> list[ContractEvidence]: ...

    def sales_chain_evidence(self, ooi_ids: Collection[int]) -> list[SalesChainEvidence]: ...

    def order_out_evidence(self, ooi_ids: Collection[int]) -> list[OrderOutEvidence]: ...

    def customers(self, cus_ids: Collection[int]) -> dict[int, LegacyCustomer]: ...

    def visiting_report_counts(self) -> dict[int, int]: ...


@runtime_checkable
class ClientDirectory(Protocol):
    """Read-only access to current-system clients by their legacy-compatible keys."""

    def get(self, client_id: int) -> Client | None: ...

    def by_legacy_customer_ids(self, cus_ids: Collection[int]) -> list[Client]: ...

    def accounts_for_legacy_customers(
        self, cus_ids: Collection[int]
    ) -> list[LegacyCustomerAccount]: ...

    def by_related_user_ids(self, user_ids: Collection[str]) -> list[Client]: ...

    def counts(self) -> ClientCounts: ...


@runtime_checkable
class EquipmentRepository(Protocol):
    """Current-system equipment, queried relative to the link store."""

    def linkable(self, *, scope: Collection[int] | None = None) -> list[Equipment]: ...

    def linkable_without_link(self, *, scope: Collection[int] | None = None) -> list[Equipment]: ...

    def unlinked_page(self, *, offset: int, limit: int) -> list[Equipment]: ...

    def count_unlinked(self) -> int: ...

    def linked_to_client(self, client_id: int) -> list[tuple[Equipment, EquipmentLink]]: ...

    def legacy_source_ids(self) -> list[str]: ...

    def counts(self) -> EquipmentCounts: ...


@runtime_checkable
class EquipmentLinkRepository(Protocol):
    """Append-only-if-absent store of equipment-to-client links."""

    def add_if_absent(self, link: EquipmentLink) -> bool: ...

    def get(self, equipment_id: int) -> EquipmentLink | None: ...

    def remove_for_equipment(self, equipment_ids: Collection[int]) -> int: ...

    def count_by_method(self) -> dict[LinkingMethod, int]: ...

    def count_with_existing_client(self) -> int: ...
