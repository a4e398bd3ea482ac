from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from legacylink.domain.linking import run_linking
from legacylink.domain.model import LinkingMethod
from legacylink.domain.reporting import get_diagnostics

if TYPE_CHECKING:
    from legacylink.domain.reporting import EquipmentLinkingDiagnostics
    from tests.conftest import UnitOfWorkFactories
    from tests.helpers.current_records import CurrentDatabase

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def _diagnostics(factories: UnitOfWorkFactories) -> EquipmentLinkingDiagnostics:
    return get_diagnostics(
        legacy_uow_factory=factories.legacy,
        linking_uow_factory=factories.linking,
        clock=lambda: FIXED_NOW,
    )


def test_diagnostics_before_any_run(seeded: UnitOfWorkFactories) -> None:
    diagnostics = _diagnostics(seeded)

    assert diagnostics.total_equipment == 7
    assert diagnostics.equipment_with_legacy_source_id == 6
    assert diagnostics.equipment_linked_to_admin == 1
    assert diagnostics.equipment_linked_to_clients == 0
    assert diagnostics.equipment_unlinked == 6
    assert diagnostics.total_visiting_reports_with_ooi_id == 2
    assert diagnostics.visiting_reports_matching_equipment == 1
    assert diagnostics.visiting_reports_dangling == 1
    assert diagnostics.equipment_with_matching_visits == 1
    assert diagnostics.total_clients == 3
    assert diagnostics.clients_with_legacy_customer_id == 2
    assert diagnostics.clients_with_related_user_id == 1
    assert diagnostics.linking_method_stats == {
        "ViaVisits": 0,
        "ViaMaintenanceContracts": 0,
        "ViaSalesInvoices": 0,
        "ViaOrderOut": 0,
    }
    assert diagnostics.generated_at == FIXED_NOW


def test_diagnostics_reflect_committed_links(seeded: UnitOfWorkFactories) -> None:
    run_linking(legacy_uow_factory=seeded.legacy, linking_uow_factory=seeded.linking)

    diagnostics = _diagnostics(seeded)

    assert diagnostics.equipment_linked_to_clients == 3
    assert diagnostics.equipment_unlinked == 3
    assert diagnostics.equipment_with_matching_clients == 3
    assert diagnostics.linking_method_stats == {
        "ViaVisits": 1,
        "ViaMaintenanceContracts": 1,
        "ViaSalesInvoices": 1,
        "ViaOrderOut": 0,
    }
    assert (
        diagnostics.equipment_linked_to_clients + diagnostics.equipment_unlinked
        == diagnostics.equipment_with_legacy_source_id
    )


def test_links_to_missing_clients_are_not_matching(
    seeded: UnitOfWorkFactories, current_db: CurrentDatabase
) -> None:
    current_db.add_link(6, 77, LinkingMethod.VIA_ORDER_OUT)

    diagnostics = _diagnostics(seeded)

    assert diagnostics.equipment_linked_to_clients == 1
    assert diagnostics.equipment_with_matching_clients == 0
    assert diagnostics.linking_method_stats["ViaOrderOut"] == 1
