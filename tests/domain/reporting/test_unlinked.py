from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from legacylink.config import LinkingConfig
from legacylink.domain.linking import run_linking
from legacylink.domain.reporting import UnlinkedEquipmentReport, get_unlinked_equipment

if TYPE_CHECKING:
    from tests.conftest import UnitOfWorkFactories
    from tests.helpers.current_records import CurrentDatabase
    from tests.helpers.legacy_records import LegacyDatabase


def _report(
    factories: UnitOfWorkFactories,
    *,
    page: int = 1,
    page_size: int | None = None,
    config: LinkingConfig | None = None,
) -> UnlinkedEquipmentReport:
    return get_unlinked_equipment(
        legacy_uow_factory=factories.legacy,
        linking_uow_factory=factories.linking,
        page=page,
        page_size=page_size,
        config=config,
    )


def test_reasons_after_a_run(seeded: UnitOfWorkFactories) -> None:
    run_linking(legacy_uow_factory=seeded.legacy, linking_uow_factory=seeded.linking)

    report = _report(seeded)

    assert report.total_unlinked == 4
    assert report.total_pages == 1
    reasons = {item.id: (item.customer_id, item.reason) for item in report.items}
    assert reasons == {
        3: (999, "legacy customer id 999 not found in client directory"),
        5: (None, "no legacy source id"),
        6: (None, "legacy source id is not a numeric order-out item id"),
        7: (None, "order-out item not found in legacy database"),
    }


def test_visit_evidence_counts_even_without_an_order_out_item_row(
    seeded: UnitOfWorkFactories, legacy_db: LegacyDatabase, current_db: CurrentDatabase
) -> None:
    current_db.add_equipment(11, "880")
    legacy_db.add_visit(60, cus_id=555)
    legacy_db.add_visiting_report(50, visiting_id=60, ooi_id=880)
    run_linking(legacy_uow_factory=seeded.legacy, linking_uow_factory=seeded.linking)

    report = _report(seeded)

    item = next(item for item in report.items if item.id == 11)
    assert item.customer_id == 555
    assert item.reason == "legacy customer id 555 not found in client directory"
    assert 11 not in current_db.links()


def test_linkable_items_name_the_strategy(seeded: UnitOfWorkFactories) -> None:
    report = _report(seeded, page_size=2)

    first = report.items[0]
    assert first.id == 1
    assert first.customer_id == 7
    assert first.reason == "linkable: client resolvable via ViaVisits (not linked yet)"
    assert first.qr_code == "QR-1"
    assert first.legacy_source_id == "401"


def test_all_strategies_skipped_lists_each_reason(
    seeded: UnitOfWorkFactories,
    current_db: CurrentDatabase,
    legacy_db: LegacyDatabase,
) -> None:
    legacy_db.add_order_out_item(704, oo_id=None)
    current_db.add_equipment(11, "704")

    report = _report(seeded, page=2, page_size=7)

    assert [item.id for item in report.items] == [11]
    assert report.items[0].reason == (
        "all strategies skipped: ViaSalesInvoices: order-out header missing; "
        "ViaOrderOut: order-out header missing"
    )


def test_paging_is_one_based_and_ordered_by_id(seeded: UnitOfWorkFactories) -> None:
    run_linking(legacy_uow_factory=seeded.legacy, linking_uow_factory=seeded.linking)

    first = _report(seeded, page=1, page_size=3)
    second = _report(seeded, page=2, page_size=3)
    beyond = _report(seeded, page=5, page_size=3)

    assert [item.id for item in first.items] == [3, 5, 6]
    assert [item.id for item in second.items] == [7]
    assert beyond.items == ()
    assert first.total_pages == second.total_pages == 2


def test_page_size_defaults_and_cap(seeded: UnitOfWorkFactories) -> None:
    config = LinkingConfig(default_page_size=5, max_page_size=6)

    assert _report(seeded, config=config).page_size == 5
    assert _report(seeded, page_size=100, config=config).page_size == 6


@pytest.mark.parametrize(("page", "page_size"), [(0, 10), (-1, 10), (1, 0)])
def test_invalid_paging_raises(seeded: UnitOfWorkFactories, page: int, page_size: int) -> None:
    with pytest.raises(ValueError, match="must be at least 1"):
        _report(seeded, page=page, page_size=page_size)


def test_total_pages_is_zero_for_an_empty_report() -> None:
    assert UnlinkedEquipmentReport(total_unlinked=0, page=1, page_size=50).total_pages == 0
    assert UnlinkedEquipmentReport(total_unlinked=101, page=1, page_size=50).total_pages == 3
