"""Shared linking contract components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

    from legacylink.domain.model import LinkingMethod


@dataclass(slots=True)
class StrategyEvidence:
    """What one strategy found for a batch of order-out item ids.

    ``candidates`` maps an order-out item id to the legacy customer id the
    strategy attributes it to. ``skipped`` holds items for which evidence rows
    exist but none is usable, with the reason. Items with no evidence at all
    appear in neither map.
    """

    method: LinkingMethod
    candidates: dict[int, int] = field(default_factory=dict[int, int])
    skipped: dict[int, str] = field(default_factory=dict[int, str])

    def record_candidate(self, ooi_id: int, cus_id: int) -> None:
        """Keep the first candidate seen for ``ooi_id``; callers feed rows in stable order."""

        if ooi_id in self.candidates:
            return
        self.candidates[ooi_id] = cus_id
        self.skipped.pop(ooi_id, None)

    def record_skip(self, ooi_id: int, reason: str) -> None:
        if ooi_id in self.candidates:
            return
        self.skipped.setdefault(ooi_id, reason)


@runtime_checkable
class LinkingStrategy(Protocol):
    """One evidence trail from an order-out item to a legacy customer."""

    @property
    def method(self) -> LinkingMethod: ...

    def resolve_all(self, ooi_ids: Collection[int]) -> StrategyEvidence: ...

    def resolve(self, ooi_id: int) -> int | None: ...
