"""Read-only reports over the linkage state."""

from __future__ import annotations

from .diagnostics import EquipmentLinkingDiagnostics, get_diagnostics
from .unlinked import UnlinkedEquipmentItem, UnlinkedEquipmentReport, get_unlinked_equipment
from .verification import (
    ClientEquipmentVerification,
    ClientNotFoundError,
    EquipmentVerificationItem,
    verify_client_equipment,
)

__all__ = [
    "ClientEquipmentVerification",
    "ClientNotFoundError",
    "EquipmentLinkingDiagnostics",
    "EquipmentVerificationItem",
    "UnlinkedEquipmentItem",
    "UnlinkedEquipmentReport",
    "get_diagnostics",
    "get_unlinked_equipment",
    "verify_client_equipment",
]
