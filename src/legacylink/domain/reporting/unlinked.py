"""Paged listing of equipment without a client link, with a best-effort reason."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from legacylink.config.linking import LinkingConfig
from legacylink.domain.linking.client_resolution import ClientResolver
from legacylink.domain.linking.strategies import evaluate_all
from legacylink.domain.model import LINKING_PRIORITY

if TYPE_CHECKING:
    from legacylink.domain.linking.client_resolution import ClientMatch
    from legacylink.domain.linking.contracts import StrategyEvidence
    from legacylink.domain.linking.orchestrator import (
        LegacyUnitOfWorkFactory,
        LinkingUnitOfWorkFactory,
    )
    from legacylink.domain.model import Equipment, LegacyEquipmentItem, LinkingMethod

NO_LEGACY_SOURCE_ID = "no legacy source id"
NOT_NUMERIC = "legacy source id is not a numeric order-out item id"
ITEM_NOT_FOUND = "order-out item not found in legacy database"
NO_EVIDENCE = "no linking evidence in legacy database"


@dataclass(frozen=True, slots=True, kw_only=True)
class UnlinkedEquipmentItem:
    id: int
    name: str
    legacy_source_id: str | None
    qr_code: str | None
    customer_id: int | None
    reason: str


@dataclass(frozen=True, slots=True, kw_only=True)
class UnlinkedEquipmentReport:
    total_unlinked: int
    page: int
    page_size: int
    items: tuple[UnlinkedEquipmentItem, ...] = ()

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_unlinked / self.page_size) if self.total_unlinked else 0


def get_unlinked_equipment(
    *,
    legacy_uow_factory: LegacyUnitOfWorkFactory,
    linking_uow_factory: LinkingUnitOfWorkFactory,
    page: int = 1,
    page_size: int | None = None,
    config: LinkingConfig | None = None,
) -> UnlinkedEquipmentReport:
    """Return one 1-based page of unlinked equipment, ordered by equipment id.

    ``page_size`` defaults to the configured default and is capped at the
    configured maximum. The reason for each item is derived by re-evaluating
    every strategy for the items on the page; nothing is written.
    """

    settings = config or LinkingConfig()
    if page < 1:
        raise ValueError(f"page must be at least 1, got {page}")
    size = settings.default_page_size if page_size is None else page_size
    if size < 1:
        raise ValueError(f"page_size must be at least 1, got {size}")
    size = min(size, settings.max_page_size)

    with linking_uow_factory() as uow:
        equipment_repo = uow.repositories.equipment
        total = equipment_repo.count_unlinked()
        equipment = equipment_repo.unlinked_page(offset=(page - 1) * size, limit=size)
        ooi_ids = sorted({item.legacy_ooi_id for item in equipment if item.legacy_ooi_id is not None})

        known: dict[int, LegacyEquipmentItem] = {}
        evidence: dict[LinkingMethod, StrategyEvidence] = {}
        matches: dict[int, ClientMatch | None] = {}
        if ooi_ids:
            with legacy_uow_factory() as legacy:
                reader = legacy.repositories.records
                known = reader.order_out_items(ooi_ids)
                evidence = evaluate_all(reader, ooi_ids)
            matches = ClientResolver(uow.repositories.clients).resolve(
                {cus_id for found in evidence.values() for cus_id in found.candidates.values()}
            )

    items = tuple(_describe(item, known, evidence, matches) for item in equipment)
    return UnlinkedEquipmentReport(total_unlinked=total, page=page, page_size=size, items=items)


def _describe(
    equipment: Equipment,
    known: dict[int, LegacyEquipmentItem],
    evidence: dict[LinkingMethod, StrategyEvidence],
    matches: dict[int, ClientMatch | None],
) -> UnlinkedEquipmentItem:
    customer_id, reason = _reason(equipment, known, evidence, matches)
    return UnlinkedEquipmentItem(
        id=equipment.id,
        name=equipment.name,
        legacy_source_id=equipment.legacy_source_id,
        qr_code=equipment.qr_code,
        customer_id=customer_id,
        reason=reason,
    )


def _reason(
    equipment: Equipment,
    known: dict[int, LegacyEquipmentItem],
    evidence: dict[LinkingMethod, StrategyEvidence],
    matches: dict[int, ClientMatch | None],
) -> tuple[int | None, str]:
    if not equipment.has_legacy_source_id:
        return None, NO_LEGACY_SOURCE_ID
    ooi_id = equipment.legacy_ooi_id
    if ooi_id is None:
        return None, NOT_NUMERIC
    unresolved: int | None = None
    skips: list[str] = []
    for method in LINKING_PRIORITY:
        found = evidence.get(method)
        if found is None:
            continue
        cus_id = found.candidates.get(ooi_id)
        if cus_id is not None:
            if matches.get(cus_id) is not None:
                return cus_id, f"linkable: client resolvable via {method.value} (not linked yet)"
            if unresolved is None:
                unresolved = cus_id
        elif ooi_id in found.skipped:
            skips.append(f"{method.value}: {found.skipped[ooi_id]}")

    if unresolved is not None:
        return unresolved, f"legacy customer id {unresolved} not found in client directory"
    legacy_item = known.get(ooi_id)
    if legacy_item is None and not skips:
        return None, ITEM_NOT_FOUND
    customer_id = legacy_item.legacy_customer_id if legacy_item is not None else None
    if skips:
        return customer_id, "all strategies skipped: " + "; ".join(skips)
    return customer_id, NO_EVIDENCE
