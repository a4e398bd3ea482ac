from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from legacylink.app import (
    equipment_linking_diagnostics,
    link_equipment,
    link_equipment_via,
    unlinked_equipment,
    verify_client,
)
from legacylink.config import LinkingConfig
from legacylink.domain.model import LinkingMethod
from legacylink.domain.reporting import ClientNotFoundError
from tests.helpers.world import ALEX_CLIENT_ID, CAIRO_CLIENT_ID

if TYPE_CHECKING:
    from tests.conftest import UnitOfWorkFactories
    from tests.helpers.current_records import CurrentDatabase

CONFIG = LinkingConfig(query_chunk_size=2)


def test_link_equipment_uses_the_started_adapter(
    seeded: UnitOfWorkFactories, current_db: CurrentDatabase
) -> None:
    result = link_equipment(config=CONFIG, triggered_by="ops")

    assert result.success
    assert result.total_considered == 6
    assert (result.total_linked, result.total_skipped, result.total_errors) == (3, 2, 1)
    assert current_db.links() == {
        1: (CAIRO_CLIENT_ID, LinkingMethod.VIA_VISITS),
        2: (ALEX_CLIENT_ID, LinkingMethod.VIA_SALES_INVOICES),
        4: (CAIRO_CLIENT_ID, LinkingMethod.VIA_MAINTENANCE_CONTRACTS),
    }


def test_reports_follow_a_run(seeded: UnitOfWorkFactories) -> None:
    link_equipment(config=CONFIG)

    diagnostics = equipment_linking_diagnostics(config=CONFIG)
    report = unlinked_equipment(page=1, page_size=2, config=CONFIG)
    verification = verify_client(ALEX_CLIENT_ID, config=CONFIG)

    assert diagnostics.equipment_linked_to_clients == 3
    assert report.total_unlinked == 4
    assert report.total_pages == 2
    assert verification.issues == ()


def test_link_via_single_method(seeded: UnitOfWorkFactories, current_db: CurrentDatabase) -> None:
    result = link_equipment_via(LinkingMethod.VIA_ORDER_OUT, config=CONFIG)

    assert result.method is LinkingMethod.VIA_ORDER_OUT
    assert result.linked_count == 1
    assert current_db.links() == {1: (CAIRO_CLIENT_ID, LinkingMethod.VIA_ORDER_OUT)}


def test_verify_unknown_client(seeded: UnitOfWorkFactories) -> None:
    with pytest.raises(ClientNotFoundError):
        verify_client(404, config=CONFIG)
