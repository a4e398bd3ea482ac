"""Pydantic DTOs handed to the surrounding API layer.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True, mode="json")``).
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from legacylink.domain.linking import EquipmentLinkingResult, LinkingMethodResult
    from legacylink.domain.reporting import (
        ClientEquipmentVerification,
        EquipmentLinkingDiagnostics,
        EquipmentVerificationItem,
        UnlinkedEquipmentItem,
        UnlinkedEquipmentReport,
    )


class LegacyLinkDto(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class LinkingMethodResultDto(LegacyLinkDto):
    method_name: str
    success: bool
    linked_count: int
    skipped_count: int
    error_count: int
    evaluated_count: int
    error_message: str | None = None
    errors: list[str] = []
    duration: timedelta

    @classmethod
    def from_domain(cls, result: LinkingMethodResult) -> LinkingMethodResultDto:
        return cls(
            method_name=result.method_name,
            success=result.success,
            linked_count=result.linked_count,
            skipped_count=result.skipped_count,
            error_count=result.error_count,
            evaluated_count=result.evaluated_count,
            error_message=result.error_message,
            errors=list(result.errors),
            duration=result.duration,
        )


def _method_dto(result: LinkingMethodResult | None) -> LinkingMethodResultDto | None:
    return None if result is None else LinkingMethodResultDto.from_domain(result)


class EquipmentLinkingResultDto(LegacyLinkDto):
    success: bool
    message: str
    start_time: datetime
    end_time: datetime
    duration: timedelta
    via_visits: LinkingMethodResultDto | None = None
    via_maintenance_contracts: LinkingMethodResultDto | None = None
    via_sales_invoices: LinkingMethodResultDto | None = None
    via_order_out: LinkingMethodResultDto | None = None
    total_considered: int
    total_linked: int
    total_skipped: int
    total_errors: int
    cancelled: bool = False
    errors: list[str] = []
    warnings: list[str] = []

    @classmethod
    def from_domain(cls, result: EquipmentLinkingResult) -> EquipmentLinkingResultDto:
        return cls(
            success=result.success,
            message=result.message,
            start_time=result.start_time,
            end_time=result.end_time,
            duration=result.duration,
            via_visits=_method_dto(result.via_visits),
            via_maintenance_contracts=_method_dto(result.via_maintenance_contracts),
            via_sales_invoices=_method_dto(result.via_sales_invoices),
            via_order_out=_method_dto(result.via_order_out),
            total_considered=result.total_considered,
            total_linked=result.total_linked,
            total_skipped=result.total_skipped,
            total_errors=result.total_errors,
            cancelled=result.cancelled,
            errors=list(result.errors),
            warnings=list(result.warnings),
        )


class EquipmentLinkingDiagnosticsDto(LegacyLinkDto):
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

    @classmethod
    def from_domain(cls, diagnostics: EquipmentLinkingDiagnostics) -> EquipmentLinkingDiagnosticsDto:
        return cls(
            total_equipment=diagnostics.total_equipment,
            equipment_with_legacy_source_id=diagnostics.equipment_with_legacy_source_id,
            equipment_linked_to_admin=diagnostics.equipment_linked_to_admin,
            equipment_linked_to_clients=diagnostics.equipment_linked_to_clients,
            equipment_unlinked=diagnostics.equipment_unlinked,
            total_visiting_reports_with_ooi_id=diagnostics.total_visiting_reports_with_ooi_id,
            visiting_reports_matching_equipment=diagnostics.visiting_reports_matching_equipment,
            visiting_reports_dangling=diagnostics.visiting_reports_dangling,
            equipment_with_matching_visits=diagnostics.equipment_with_matching_visits,
            equipment_with_matching_clients=diagnostics.equipment_with_matching_clients,
            total_clients=diagnostics.total_clients,
            clients_with_related_user_id=diagnostics.clients_with_related_user_id,
            clients_with_legacy_customer_id=diagnostics.clients_with_legacy_customer_id,
            linking_method_stats=dict(diagnostics.linking_method_stats),
            generated_at=diagnostics.generated_at,
        )


class UnlinkedEquipmentItemDto(LegacyLinkDto):
    id: int
    name: str
    legacy_source_id: str | None = None
    qr_code: str | None = None
    customer_id: int | None = None
    reason: str

    @classmethod
    def from_domain(cls, item: UnlinkedEquipmentItem) -> UnlinkedEquipmentItemDto:
        return cls(
            id=item.id,
            name=item.name,
            legacy_source_id=item.legacy_source_id,
            qr_code=item.qr_code,
            customer_id=item.customer_id,
            reason=item.reason,
        )


class UnlinkedEquipmentReportDto(LegacyLinkDto):
    total_unlinked: int
    page_number: int
    page_size: int
    equipment: list[UnlinkedEquipmentItemDto] = []

    @computed_field(alias="totalPages")
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_unlinked / self.page_size) if self.total_unlinked else 0

    @classmethod
    def from_domain(cls, report: UnlinkedEquipmentReport) -> UnlinkedEquipmentReportDto:
        return cls(
            total_unlinked=report.total_unlinked,
            page_number=report.page,
            page_size=report.page_size,
            equipment=[UnlinkedEquipmentItemDto.from_domain(item) for item in report.items],
        )


class EquipmentVerificationItemDto(LegacyLinkDto):
    equipment_id: int
    equipment_name: str
    legacy_source_id: str | None = None
    linked_method: str
    linking_methods: list[str] = []
    is_linked: bool = True

    @classmethod
    def from_domain(cls, item: EquipmentVerificationItem) -> EquipmentVerificationItemDto:
        return cls(
            equipment_id=item.equipment_id,
            equipment_name=item.equipment_name,
            legacy_source_id=item.legacy_source_id,
            linked_method=item.linked_method.value,
            linking_methods=[method.value for method in item.linking_methods],
            is_linked=item.is_linked,
        )


class ClientEquipmentVerificationDto(LegacyLinkDto):
    client_id: int
    client_name: str
    legacy_customer_id: int | None = None
    related_user_id: str | None = None
    total_equipment: int
    equipment_from_visits: int
    equipment_from_contracts: int
    equipment_from_sales_invoices: int
    equipment_from_order_out: int
    equipment_details: list[EquipmentVerificationItemDto] = []
    issues: list[str] = []

    @classmethod
    def from_domain(
        cls, verification: ClientEquipmentVerification
    ) -> ClientEquipmentVerificationDto:
        return cls(
            client_id=verification.client_id,
            client_name=verification.client_name,
            legacy_customer_id=verification.legacy_customer_id,
            related_user_id=verification.related_user_id,
            total_equipment=verification.total_equipment,
            equipment_from_visits=verification.equipment_from_visits,
            equipment_from_contracts=verification.equipment_from_contracts,
            equipment_from_sales_invoices=verification.equipment_from_sales_invoices,
            equipment_from_order_out=verification.equipment_from_order_out,
            equipment_details=[
                EquipmentVerificationItemDto.from_domain(item) for item in verification.equipment
            ],
            issues=list(verification.issues),
        )
