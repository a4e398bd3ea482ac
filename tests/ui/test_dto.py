from __future__ import annotations

from datetime import UTC, datetime, timedelta

from legacylink.domain.linking import EquipmentLinkingResult, LinkingMethodResult
from legacylink.domain.model import LinkingMethod
from legacylink.domain.reporting import (
    ClientEquipmentVerification,
    EquipmentVerificationItem,
    UnlinkedEquipmentItem,
    UnlinkedEquipmentReport,
)
from legacylink.ui.dto import (
    ClientEquipmentVerificationDto,
    EquipmentLinkingResultDto,
    UnlinkedEquipmentReportDto,
)

START = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def test_linking_result_uses_camel_case_keys() -> None:
    result = EquipmentLinkingResult(
        success=True,
        message="Linked 2 of 3 equipment item(s); 1 skipped, 0 unresolved",
        start_time=START,
        end_time=START + timedelta(seconds=2),
        method_results=(
            LinkingMethodResult(
                method=LinkingMethod.VIA_VISITS, linked_count=2, evaluated_count=3
            ),
            LinkingMethodResult(
                method=LinkingMethod.VIA_ORDER_OUT, skipped_count=1, evaluated_count=1
            ),
        ),
        total_considered=3,
        warnings=("Legacy customer 7 is carried by several clients [1, 2]; using client 1",),
    )

    wire = EquipmentLinkingResultDto.from_domain(result).to_wire()

    assert wire["totalConsidered"] == 3
    assert wire["totalLinked"] == 2
    assert wire["totalSkipped"] == 1
    assert wire["totalErrors"] == 0
    assert wire["startTime"] == "2025-03-01T12:00:00Z"
    assert wire["viaVisits"]["methodName"] == "ViaVisits"
    assert wire["viaVisits"]["linkedCount"] == 2
    assert wire["viaMaintenanceContracts"] is None
    assert wire["viaSalesInvoices"] is None
    assert wire["viaOrderOut"]["skippedCount"] == 1
    assert wire["cancelled"] is False
    assert len(wire["warnings"]) == 1


def test_unlinked_report_exposes_total_pages() -> None:
    report = UnlinkedEquipmentReport(
        total_unlinked=101,
        page=2,
        page_size=50,
        items=(
            UnlinkedEquipmentItem(
                id=3,
                name="Ultrasound",
                legacy_source_id="502",
                qr_code=None,
                customer_id=999,
                reason="legacy customer id 999 not found in client directory",
            ),
        ),
    )

    wire = UnlinkedEquipmentReportDto.from_domain(report).to_wire()

    assert wire["totalUnlinked"] == 101
    assert wire["pageNumber"] == 2
    assert wire["pageSize"] == 50
    assert wire["totalPages"] == 3
    assert wire["equipment"][0] == {
        "id": 3,
        "name": "Ultrasound",
        "legacySourceId": "502",
        "qrCode": None,
        "customerId": 999,
        "reason": "legacy customer id 999 not found in client directory",
    }


def test_verification_lists_method_names() -> None:
    verification = ClientEquipmentVerification(
        client_id=9,
        client_name="Alexandria Hospital",
        legacy_customer_id=9,
        related_user_id=None,
        total_equipment=1,
        equipment_from_visits=0,
        equipment_from_contracts=0,
        equipment_from_sales_invoices=1,
        equipment_from_order_out=0,
        equipment=(
            EquipmentVerificationItem(
                equipment_id=2,
                equipment_name="Ultrasound",
                legacy_source_id="501",
                linked_method=LinkingMethod.VIA_SALES_INVOICES,
                linking_methods=(LinkingMethod.VIA_SALES_INVOICES,),
            ),
        ),
    )

    wire = ClientEquipmentVerificationDto.from_domain(verification).to_wire()

    assert wire["clientName"] == "Alexandria Hospital"
    assert wire["equipmentFromSalesInvoices"] == 1
    assert wire["equipmentDetails"][0]["linkedMethod"] == "ViaSalesInvoices"
    assert wire["equipmentDetails"][0]["linkingMethods"] == ["ViaSalesInvoices"]
    assert wire["equipmentDetails"][0]["isLinked"] is True
    assert wire["issues"] == []
