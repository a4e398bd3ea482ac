"""Read-only aggregation over the current linkage state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from legacylink.domain.model import LINKING_PRIORITY, parse_ooi_id

if TYPE_CHECKING:
    from collections.abc import Callable

    from legacylink.domain.linking.orchestrator import (
        LegacyUnitOfWorkFactory,
        LinkingUnitOfWorkFactory,
    )

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class EquipmentLinkingDiagnostics:
    """Snapshot counts; ``linking_method_stats`` comes from stored link metadata."""

    total_equipment: int
    equipment_with_legacy_source_id: int
    equipment_linked_to_admin: int
    equipment_linked_to_clients: int
    equipment_unlinked: int
    total_visiting_reports_with_ooi_id: int
    visiting_reports_matching_equipment: int
    visiting_reports_dangling: int
    equipment_with_matching_visits: int
    equipment_with_matching_clients: int
    total_clients: int
    clients_with_related_user_id: int
    clients_with_legacy_customer_id: int
    linking_method_stats: dict[str, int]
    generated_at: datetime


def get_diagnostics(
    *,
    legacy_uow_factory: LegacyUnitOfWorkFactory,
    linking_uow_factory: LinkingUnitOfWorkFactory,
    clock: Callable[[], datetime] | None = None,
) -> EquipmentLinkingDiagnostics:
    """Count equipment, links, clients and visiting-report references as they are now.

    Nothing is written. Visiting reports live in the legacy database and
    equipment in the current one, so the cross-database match is done on the
    set of order-out item ids the equipment table carries.
    """

    with linking_uow_factory() as uow:
        repositories = uow.repositories
        equipment_counts = repositories.equipment.counts()
        client_counts = repositories.clients.counts()
        by_method = repositories.links.count_by_method()
        linked_to_existing_client = repositories.links.count_with_existing_client()
        legacy_source_ids = repositories.equipment.legacy_source_ids()

    with legacy_uow_factory() as legacy:
        report_counts = legacy.repositories.records.visiting_report_counts()

    equipment_ooi_ids = [
        ooi_id for ooi_id in map(parse_ooi_id, legacy_source_ids) if ooi_id is not None
    ]
    known_ooi_ids = set(equipment_ooi_ids)
    total_reports = sum(report_counts.values())
    matching_reports = sum(
        count for ooi_id, count in report_counts.items() if ooi_id in known_ooi_ids
    )

    diagnostics = EquipmentLinkingDiagnostics(
        total_equipment=equipment_counts.total,
        equipment_with_legacy_source_id=equipment_counts.with_legacy_source_id,
        equipment_linked_to_admin=equipment_counts.total - equipment_counts.with_legacy_source_id,
        equipment_linked_to_clients=equipment_counts.linked_with_legacy_source_id,
        equipment_unlinked=(
            equipment_counts.with_legacy_source_id - equipment_counts.linked_with_legacy_source_id
        ),
        total_visiting_reports_with_ooi_id=total_reports,
        visiting_reports_matching_equipment=matching_reports,
        visiting_reports_dangling=total_reports - matching_reports,
        equipment_with_matching_visits=sum(
            1 for ooi_id in equipment_ooi_ids if ooi_id in report_counts
        ),
        equipment_with_matching_clients=linked_to_existing_client,
        total_clients=client_counts.total,
        clients_with_related_user_id=client_counts.with_related_user_id,
        clients_with_legacy_customer_id=client_counts.with_legacy_customer_id,
        linking_method_stats={
            method.value: by_method.get(method, 0) for method in LINKING_PRIORITY
        },
        generated_at=(clock or (lambda: datetime.now(tz=UTC)))(),
    )
    log.debug("Computed linking diagnostics: %s", diagnostics)
    return diagnostics
