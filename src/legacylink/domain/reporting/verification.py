"""Per-client deep dive: which strategies still back each committed link."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from legacylink.domain.linking.client_resolution import ClientResolver
from legacylink.domain.linking.strategies import evaluate_all
from legacylink.domain.model import LINKING_PRIORITY, LinkingMethod

if TYPE_CHECKING:
    from legacylink.domain.linking.client_resolution import ClientMatch
    from legacylink.domain.linking.contracts import StrategyEvidence
    from legacylink.domain.linking.orchestrator import (
        LegacyUnitOfWorkFactory,
        LinkingUnitOfWorkFactory,
    )
    from legacylink.domain.model import Equipment, EquipmentLink

log = getLogger(__name__)


class ClientNotFoundError(LookupError):
    """Raised when verification is requested for a client that does not exist."""

    def __init__(self, client_id: int) -> None:
        super().__init__(f"Client {client_id} not found")
        self.client_id = client_id


@dataclass(frozen=True, slots=True, kw_only=True)
class EquipmentVerificationItem:
    equipment_id: int
    equipment_name: str
    legacy_source_id: str | None
    linked_method: LinkingMethod
    linking_methods: tuple[LinkingMethod, ...] = ()
    is_linked: bool = True


@dataclass(frozen=True, slots=True, kw_only=True)
class ClientEquipmentVerification:
    """Verification report for one client.

    ``linking_methods`` on each item lists the strategies whose legacy customer
    currently resolves to this client. The per-method counters count linked
    equipment corroborated by that strategy.
    """

    client_id: int
    client_name: str
    legacy_customer_id: int | None
    related_user_id: str | None
    total_equipment: int
    equipment_from_visits: int
    equipment_from_contracts: int
    equipment_from_sales_invoices: int
    equipment_from_order_out: int
    equipment: tuple[EquipmentVerificationItem, ...] = ()
    issues: tuple[str, ...] = ()


def verify_client_equipment(
    client_id: int,
    *,
    legacy_uow_factory: LegacyUnitOfWorkFactory,
    linking_uow_factory: LinkingUnitOfWorkFactory,
) -> ClientEquipmentVerification:
    """Re-evaluate every strategy for the equipment linked to ``client_id``.

    Links are never modified; disagreements are reported as issues.
    """

    with linking_uow_factory() as uow:
        client = uow.repositories.clients.get(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        linked = uow.repositories.equipment.linked_to_client(client_id)
        ooi_ids = sorted(
            {equipment.legacy_ooi_id for equipment, _ in linked if equipment.legacy_ooi_id is not None}
        )
        evidence: dict[LinkingMethod, StrategyEvidence] = {}
        matches: dict[int, ClientMatch | None] = {}
        names: dict[int, str] = {}
        if ooi_ids:
            with legacy_uow_factory() as legacy:
                reader = legacy.repositories.records
                evidence = evaluate_all(reader, ooi_ids)
                cus_ids = {
                    cus_id for found in evidence.values() for cus_id in found.candidates.values()
                }
                names = {
                    cus_id: customer.name
                    for cus_id, customer in reader.customers(cus_ids).items()
                    if customer.name
                }
            matches = ClientResolver(uow.repositories.clients).resolve(cus_ids)

    issues: list[str] = []
    items = tuple(
        _verify(client_id, equipment, link, evidence, matches, names, issues) for equipment, link in linked
    )
    if issues:
        log.info("Client %s verification found %s issue(s)", client_id, len(issues))

    def corroborated_by(method: LinkingMethod) -> int:
        return sum(1 for item in items if method in item.linking_methods)

    return ClientEquipmentVerification(
        client_id=client.id,
        client_name=client.name,
        legacy_customer_id=client.legacy_customer_id,
        related_user_id=client.related_user_id,
        total_equipment=len(items),
        equipment_from_visits=corroborated_by(LinkingMethod.VIA_VISITS),
        equipment_from_contracts=corroborated_by(LinkingMethod.VIA_MAINTENANCE_CONTRACTS),
        equipment_from_sales_invoices=corroborated_by(LinkingMethod.VIA_SALES_INVOICES),
        equipment_from_order_out=corroborated_by(LinkingMethod.VIA_ORDER_OUT),
        equipment=items,
        issues=tuple(issues),
    )


def _verify(
    client_id: int,
    equipment: Equipment,
    link: EquipmentLink,
    evidence: dict[LinkingMethod, StrategyEvidence],
    matches: dict[int, ClientMatch | None],
    names: dict[int, str],
    issues: list[str],
) -> EquipmentVerificationItem:
    label = f"Equipment {equipment.id} ({equipment.name})"
    ooi_id = equipment.legacy_ooi_id
    corroborating: list[LinkingMethod] = []
    for method in LINKING_PRIORITY:
        found = evidence.get(method)
        cus_id = found.candidates.get(ooi_id) if found is not None and ooi_id is not None else None
        if cus_id is None:
            continue
        match = matches.get(cus_id)
        if match is not None and match.client_id == client_id:
            corroborating.append(method)
            continue
        target = f"client {match.client_id}" if match is not None else "no known client"
        issues.append(
            f"{label}: {method.value} points to legacy customer {_customer_label(cus_id, names)} "
            f"({target}), not client {client_id}"
        )

    if link.method not in corroborating:
        issues.append(
            f"{label}: linked via {link.method.value}, which no longer supports this link"
        )
    if not corroborating:
        issues.append(f"{label}: no linking method supports the link to client {client_id}")

    return EquipmentVerificationItem(
        equipment_id=equipment.id,
        equipment_name=equipment.name,
        legacy_source_id=equipment.legacy_source_id,
        linked_method=link.method,
        linking_methods=tuple(corroborating),
    )


def _customer_label(cus_id: int, names: dict[int, str]) -> str:
    name = names.get(cus_id)
    return f'{cus_id} "{name}"' if name else str(cus_id)
