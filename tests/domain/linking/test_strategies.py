from __future__ import annotations

from legacylink.domain.linking import (
    MaintenanceContractsStrategy,
    OrderOutStrategy,
    SalesInvoicesStrategy,
    VisitsStrategy,
    build_strategies,
    evaluate_all,
    ordered_methods,
    valid_customer_id,
)
from legacylink.domain.model import (
    LINKING_PRIORITY,
    ContractEvidence,
    LinkingMethod,
    OrderOutEvidence,
    SalesChainEvidence,
    VisitEvidence,
)
from tests.helpers.fakes import FakeLegacyReader


def _sales_chain(ooi_id: int, **overrides: object) -> SalesChainEvidence:
    values: dict[str, object] = {
        "ooi_id": ooi_id,
        "oo_id": 20,
        "order_out_found": True,
        "si_id": 100,
        "invoice_found": True,
        "sc_id": 200,
        "contract_found": True,
        "cus_id": 9,
    }
    values.update(overrides)
    return SalesChainEvidence(**values)  # type: ignore[arg-type]


def test_valid_customer_id_rejects_null_and_zero() -> None:
    assert valid_customer_id(None) is None
    assert valid_customer_id(0) is None
    assert valid_customer_id(-3) is None
    assert valid_customer_id(7) == 7


def test_visits_prefers_lowest_visit_with_a_customer() -> None:
    reader = FakeLegacyReader(
        visits=[
            VisitEvidence(ooi_id=401, visiting_report_id=5, visiting_id=3, cus_id=9),
            VisitEvidence(ooi_id=401, visiting_report_id=9, visiting_id=1, cus_id=None),
            VisitEvidence(ooi_id=401, visiting_report_id=7, visiting_id=2, cus_id=7),
        ]
    )

    evidence = VisitsStrategy(reader).resolve_all([401])

    assert evidence.method is LinkingMethod.VIA_VISITS
    assert evidence.candidates == {401: 7}
    assert evidence.skipped == {}


def test_visits_without_customer_ids_are_skipped() -> None:
    reader = FakeLegacyReader(
        visits=[
            VisitEvidence(ooi_id=401, visiting_report_id=1, visiting_id=1, cus_id=None),
            VisitEvidence(ooi_id=401, visiting_report_id=2, visiting_id=2, cus_id=0),
        ]
    )

    evidence = VisitsStrategy(reader).resolve_all([401, 402])

    assert evidence.candidates == {}
    assert evidence.skipped == {401: "visits found but none carries a customer id"}


def test_maintenance_contracts_skip_missing_contract_and_missing_customer() -> None:
    reader = FakeLegacyReader(
        contracts=[
            ContractEvidence(ooi_id=601, contract_id=5, contract_found=False, cus_id=None),
            ContractEvidence(ooi_id=602, contract_id=6, contract_found=True, cus_id=0),
            ContractEvidence(ooi_id=603, contract_id=8, contract_found=True, cus_id=12),
            ContractEvidence(ooi_id=603, contract_id=7, contract_found=True, cus_id=7),
        ]
    )

    evidence = MaintenanceContractsStrategy(reader).resolve_all([601, 602, 603])

    assert evidence.candidates == {603: 7}
    assert evidence.skipped == {
        601: "maintenance contract 5 missing",
        602: "maintenance contract 6 has no customer id",
    }


def test_maintenance_contract_match_clears_an_earlier_skip() -> None:
    reader = FakeLegacyReader(
        contracts=[
            ContractEvidence(ooi_id=601, contract_id=1, contract_found=False, cus_id=None),
            ContractEvidence(ooi_id=601, contract_id=2, contract_found=True, cus_id=7),
        ]
    )

    evidence = MaintenanceContractsStrategy(reader).resolve_all([601])

    assert evidence.candidates == {601: 7}
    assert 601 not in evidence.skipped


def test_sales_invoices_name_the_missing_link() -> None:
    reader = FakeLegacyReader(
        sales_chains=[
            _sales_chain(1, oo_id=None, order_out_found=False),
            _sales_chain(2, si_id=None),
            _sales_chain(3, invoice_found=False),
            _sales_chain(4, sc_id=None),
            _sales_chain(5, contract_found=False),
            _sales_chain(6, cus_id=None),
            _sales_chain(7),
        ]
    )

    evidence = SalesInvoicesStrategy(reader).resolve_all(range(1, 8))

    assert evidence.candidates == {7: 9}
    assert evidence.skipped == {
        1: "order-out header missing",
        2: "order-out 20 has no sales invoice",
        3: "sales invoice 100 missing",
        4: "sales invoice 100 has no sales contract",
        5: "sales contract 200 missing",
        6: "sales contract 200 has no customer id",
    }


def test_order_out_uses_header_customer() -> None:
    reader = FakeLegacyReader(
        order_outs=[
            OrderOutEvidence(ooi_id=1, oo_id=10, order_out_found=True, cus_id=7),
            OrderOutEvidence(ooi_id=2, oo_id=11, order_out_found=False, cus_id=None),
            OrderOutEvidence(ooi_id=3, oo_id=12, order_out_found=True, cus_id=None),
        ]
    )

    strategy = OrderOutStrategy(reader)
    evidence = strategy.resolve_all([1, 2, 3])

    assert evidence.candidates == {1: 7}
    assert evidence.skipped == {2: "order-out header missing", 3: "order-out 12 has no customer id"}
    assert strategy.resolve(1) == 7
    assert strategy.resolve(3) is None


def test_empty_input_does_not_touch_the_reader() -> None:
    class _ExplodingReader(FakeLegacyReader):
        def visit_evidence(self, ooi_ids: object) -> list[VisitEvidence]:
            raise AssertionError("reader should not be queried")

    evidence = VisitsStrategy(_ExplodingReader()).resolve_all([])

    assert evidence.candidates == {}
    assert evidence.skipped == {}


def test_ordered_methods_keep_priority_and_drop_duplicates() -> None:
    assert ordered_methods() == LINKING_PRIORITY
    assert ordered_methods(
        [LinkingMethod.VIA_ORDER_OUT, LinkingMethod.VIA_VISITS, LinkingMethod.VIA_ORDER_OUT]
    ) == (LinkingMethod.VIA_VISITS, LinkingMethod.VIA_ORDER_OUT)
    assert ordered_methods([]) == ()


def test_build_strategies_follow_priority() -> None:
    strategies = build_strategies(FakeLegacyReader())

    assert [strategy.method for strategy in strategies] == list(LINKING_PRIORITY)


def test_evaluate_all_runs_every_strategy_independently() -> None:
    reader = FakeLegacyReader(
        visits=[VisitEvidence(ooi_id=501, visiting_report_id=1, visiting_id=1, cus_id=7)],
        sales_chains=[_sales_chain(501)],
        order_outs=[OrderOutEvidence(ooi_id=501, oo_id=20, order_out_found=True, cus_id=None)],
    )

    evidence = evaluate_all(reader, [501])

    assert evidence[LinkingMethod.VIA_VISITS].candidates == {501: 7}
    assert evidence[LinkingMethod.VIA_MAINTENANCE_CONTRACTS].candidates == {}
    assert evidence[LinkingMethod.VIA_SALES_INVOICES].candidates == {501: 9}
    assert evidence[LinkingMethod.VIA_ORDER_OUT].skipped == {501: "order-out 20 has no customer id"}
