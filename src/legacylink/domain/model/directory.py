"""Current-system records the engine reads (and the one it writes)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .enums import LinkingMethod


def parse_ooi_id(legacy_source_id: str | None) -> int | None:
    """Return the legacy order-out item id stored in ``legacy_source_id``, if numeric."""

    if legacy_source_id is None:
        return None
    text = legacy_source_id.strip()
    if not text.isdigit():
        return None
    value = int(text)
    return value if value > 0 else None


@dataclass(eq=False)
class Equipment:
    """Equipment row owned by the host application."""

    id: int
    name: str
    qr_code: str | None = None
    legacy_source_id: str | None = None
    is_active: bool = True

    @property
    def has_legacy_source_id(self) -> bool:
        return bool(self.legacy_source_id and self.legacy_source_id.strip())

    @property
    def legacy_ooi_id(self) -> int | None:
        return parse_ooi_id(self.legacy_source_id)


@dataclass(eq=False)
class Client:
    """Client row; only the two legacy-compatible keys matter to the engine."""

    id: int
    name: str
    legacy_customer_id: int | None = None
    related_user_id: str | None = None


@dataclass(eq=False)
class LegacyCustomerAccount:
    """Association between a legacy customer and a current-system user account."""

    legacy_customer_id: int
    user_id: str


@dataclass(eq=False)
class EquipmentLink:
    """Committed equipment-to-client association and the method that produced it."""

    equipment_id: int
    client_id: int
    method: LinkingMethod
    legacy_customer_id: int | None = None
    linked_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    linked_by: str | None = None
