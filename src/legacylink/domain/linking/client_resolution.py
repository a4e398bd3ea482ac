"""Resolve legacy customer ids to current-system clients.

Two keys can identify the client for a legacy ``CusId``:

1. ``Client.legacy_customer_id`` carrying the migrated id;
2. ``Client.related_user_id`` matching a user account that the
   legacy-customer/user association table maps to that ``CusId``.

The legacy customer id key is preferred. Whenever the choice is not clear cut
(several clients share a key, or the two keys point at different clients) the
lowest client id is used and a warning is kept for product owners to review.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection

    from legacylink.domain.ports import ClientDirectory

log = getLogger(__name__)


class ClientKey(StrEnum):
    LEGACY_CUSTOMER_ID = "legacy_customer_id"
    RELATED_USER_ID = "related_user_id"


@dataclass(frozen=True, slots=True)
class ClientMatch:
    cus_id: int
    client_id: int
    key: ClientKey


class ClientResolver:
    """Cached ``CusId -> client`` lookup over a :class:`ClientDirectory`."""

    def __init__(self, directory: ClientDirectory) -> None:
        self._directory = directory
        self._cache: dict[int, ClientMatch | None] = {}
        self._warnings: list[str] = []

    @property
    def warnings(self) -> list[str]:
        return list(self._warnings)

    def resolve(self, cus_ids: Collection[int]) -> dict[int, ClientMatch | None]:
        pending = sorted({cus_id for cus_id in cus_ids if cus_id not in self._cache})
        if pending:
            self._load(pending)
        return {cus_id: self._cache[cus_id] for cus_id in cus_ids}

    def _load(self, cus_ids: list[int]) -> None:
        by_legacy_id: dict[int, set[int]] = defaultdict(set)
        for client in self._directory.by_legacy_customer_ids(cus_ids):
            if client.legacy_customer_id is not None:
                by_legacy_id[client.legacy_customer_id].add(client.id)

        user_ids_by_cus: dict[int, set[str]] = defaultdict(set)
        for account in self._directory.accounts_for_legacy_customers(cus_ids):
            user_ids_by_cus[account.legacy_customer_id].add(account.user_id)

        by_user_id: dict[str, set[int]] = defaultdict(set)
        all_user_ids = {user_id for user_ids in user_ids_by_cus.values() for user_id in user_ids}
        if all_user_ids:
            for client in self._directory.by_related_user_ids(all_user_ids):
                if client.related_user_id is not None:
                    by_user_id[client.related_user_id].add(client.id)

        for cus_id in cus_ids:
            via_legacy = sorted(by_legacy_id.get(cus_id, ()))
            via_user = sorted(
                {
                    client_id
                    for user_id in user_ids_by_cus.get(cus_id, ())
                    for client_id in by_user_id.get(user_id, ())
                }
            )
            self._cache[cus_id] = self._choose(cus_id, via_legacy, via_user)

    def _choose(self, cus_id: int, via_legacy: list[int], via_user: list[int]) -> ClientMatch | None:
        if via_legacy:
            chosen = via_legacy[0]
            if len(via_legacy) > 1:
                self._warn(
                    f"Legacy customer {cus_id} is carried by several clients "
                    f"{via_legacy}; using client {chosen}"
                )
            others = [client_id for client_id in via_user if client_id != chosen]
            if others:
                self._warn(
                    f"Legacy customer {cus_id} resolves to client {chosen} by legacy customer id "
                    f"but to client(s) {others} by related user id; using client {chosen}"
                )
            return ClientMatch(cus_id=cus_id, client_id=chosen, key=ClientKey.LEGACY_CUSTOMER_ID)
        if via_user:
            chosen = via_user[0]
            if len(via_user) > 1:
                self._warn(
                    f"Legacy customer {cus_id} maps to several clients by related user id "
                    f"{via_user}; using client {chosen}"
                )
            return ClientMatch(cus_id=cus_id, client_id=chosen, key=ClientKey.RELATED_USER_ID)
        return None

    def _warn(self, message: str) -> None:
        log.warning(message)
        self._warnings.append(message)
