"""Reconciliation orchestrator.

Runs the linking strategies in priority order against the equipment that has
no client link yet, resolves each candidate legacy customer to a client and
commits links write-once. Strategies may collect their evidence concurrently,
but links are always committed strategy by strategy in priority order, so a
lower-priority strategy can never claim an item a higher-priority one found.

Every considered item is counted exactly once across the method results:

* linked: at the strategy that linked it;
* error: at the first strategy whose customer could not be resolved to a client;
* skipped: at the first strategy that found unusable evidence, otherwise at the
  last strategy attempted.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from logging import getLogger
from time import perf_counter
from typing import TYPE_CHECKING, Literal, Protocol

from legacylink.config.linking import LinkingConfig
from legacylink.domain.model import EquipmentLink, LinkingMethod

from .client_resolution import ClientResolver
from .results import EquipmentLinkingResult, LinkingMethodResult
from .strategies import build_strategy, ordered_methods

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable
    from types import TracebackType

    from legacylink.domain.model import Equipment
    from legacylink.domain.ports import (
        EquipmentLinkRepository,
        LegacyUnitOfWork,
        LinkingUnitOfWork,
    )

    from .contracts import StrategyEvidence

type LegacyUnitOfWorkFactory = Callable[[], LegacyUnitOfWork]
type LinkingUnitOfWorkFactory = Callable[[], LinkingUnitOfWork]

log = getLogger(__name__)


class CancellationToken(Protocol):
    """Anything with ``is_set()``; :class:`threading.Event` qualifies."""

    def is_set(self) -> bool: ...


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class _StrategyOutcome:
    """Changes proposed by one strategy; merged into the run only after commit."""

    linked: dict[int, int] = field(default_factory=dict[int, int])
    errors: dict[int, str] = field(default_factory=dict[int, str])
    skipped: dict[int, str] = field(default_factory=dict[int, str])
    already_linked: set[int] = field(default_factory=set[int])


@dataclass(slots=True)
class _Tally:
    method: LinkingMethod
    success: bool = True
    evaluated: int = 0
    error_message: str | None = None
    errors: list[str] = field(default_factory=list[str])
    elapsed: float = 0.0


@dataclass(slots=True)
class _RunState:
    considered: list[int]
    equipment_by_ooi: dict[int, list[int]]
    remaining: set[int]
    linked_by: dict[int, LinkingMethod] = field(default_factory=dict[int, LinkingMethod])
    exited_skip: dict[int, LinkingMethod] = field(default_factory=dict[int, LinkingMethod])
    first_error: dict[int, LinkingMethod] = field(default_factory=dict[int, LinkingMethod])
    first_skip: dict[int, LinkingMethod] = field(default_factory=dict[int, LinkingMethod])

    @classmethod
    def from_equipment(cls, equipment: Iterable[Equipment]) -> _RunState:
        considered: list[int] = []
        by_ooi: dict[int, list[int]] = defaultdict(list)
        for item in sorted(equipment, key=lambda candidate: candidate.id):
            considered.append(item.id)
            ooi_id = item.legacy_ooi_id
            if ooi_id is not None:
                by_ooi[ooi_id].append(item.id)
        return cls(considered=considered, equipment_by_ooi=dict(by_ooi), remaining=set(considered))

    def all_ooi_ids(self) -> list[int]:
        return sorted(self.equipment_by_ooi)

    def remaining_ooi_ids(self) -> list[int]:
        return sorted(
            ooi_id
            for ooi_id, equipment_ids in self.equipment_by_ooi.items()
            if any(equipment_id in self.remaining for equipment_id in equipment_ids)
        )

    def claimable(self, ooi_id: int) -> list[int]:
        return [
            equipment_id
            for equipment_id in self.equipment_by_ooi.get(ooi_id, ())
            if equipment_id in self.remaining
        ]

    def merge(self, method: LinkingMethod, outcome: _StrategyOutcome) -> None:
        for equipment_id in outcome.linked:
            self.linked_by[equipment_id] = method
            self.remaining.discard(equipment_id)
        for equipment_id in outcome.already_linked:
            self.exited_skip[equipment_id] = method
            self.remaining.discard(equipment_id)
        for equipment_id in outcome.errors:
            self.first_error.setdefault(equipment_id, method)
        for equipment_id in outcome.skipped:
            self.first_skip.setdefault(equipment_id, method)

    def terminal_counts(
        self, last_attempted: LinkingMethod
    ) -> tuple[Counter[LinkingMethod], Counter[LinkingMethod], Counter[LinkingMethod]]:
        linked: Counter[LinkingMethod] = Counter()
        skipped: Counter[LinkingMethod] = Counter()
        errors: Counter[LinkingMethod] = Counter()
        for equipment_id in self.considered:
            if equipment_id in self.linked_by:
                linked[self.linked_by[equipment_id]] += 1
            elif equipment_id in self.exited_skip:
                skipped[self.exited_skip[equipment_id]] += 1
            elif equipment_id in self.first_error:
                errors[self.first_error[equipment_id]] += 1
            elif equipment_id in self.first_skip:
                skipped[self.first_skip[equipment_id]] += 1
            else:
                skipped[last_attempted] += 1
        return linked, skipped, errors


def _collect_evidence(
    legacy_uow_factory: LegacyUnitOfWorkFactory,
    method: LinkingMethod,
    ooi_ids: Collection[int],
) -> tuple[StrategyEvidence, float]:
    started = perf_counter()
    with legacy_uow_factory() as legacy:
        evidence = build_strategy(method, legacy.repositories.records).resolve_all(ooi_ids)
    return evidence, perf_counter() - started


class _EvidenceCollector:
    """Hands out strategy evidence, computed up front in a worker pool or on demand."""

    def __init__(
        self,
        legacy_uow_factory: LegacyUnitOfWorkFactory,
        methods: tuple[LinkingMethod, ...],
        ooi_ids: list[int],
        *,
        max_workers: int,
    ) -> None:
        self._legacy_uow_factory = legacy_uow_factory
        self._executor: ThreadPoolExecutor | None = None
        self._futures: dict[LinkingMethod, Future[tuple[StrategyEvidence, float]]] = {}
        self._consumed: set[LinkingMethod] = set()
        if max_workers > 1 and len(methods) > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=min(max_workers, len(methods)),
                thread_name_prefix="legacylink-strategy",
            )
            for method in methods:
                self._futures[method] = self._executor.submit(
                    _collect_evidence, legacy_uow_factory, method, ooi_ids
                )

    def __enter__(self) -> _EvidenceCollector:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            for method, future in self._futures.items():
                if method in self._consumed or future.cancelled():
                    continue
                error = future.exception()
                if error is not None:
                    log.error(
                        "Evidence collection for %s failed after the run stopped using it",
                        method.value,
                        exc_info=error,
                    )
        return False

    def evidence_for(
        self, method: LinkingMethod, remaining_ooi_ids: list[int]
    ) -> tuple[StrategyEvidence, float]:
        future = self._futures.get(method)
        if future is not None:
            self._consumed.add(method)
            return future.result()
        return _collect_evidence(self._legacy_uow_factory, method, remaining_ooi_ids)


@dataclass(slots=True)
class LinkingOrchestrator:
    """Run the linking strategies and assemble an :class:`EquipmentLinkingResult`."""

    legacy_uow_factory: LegacyUnitOfWorkFactory
    linking_uow_factory: LinkingUnitOfWorkFactory
    config: LinkingConfig = field(default_factory=LinkingConfig)
    clock: Callable[[], datetime] = _utcnow

    def run(
        self,
        *,
        scope: Collection[int] | None = None,
        methods: Iterable[LinkingMethod] | None = None,
        relink: bool = False,
        triggered_by: str | None = None,
        cancellation: CancellationToken | None = None,
    ) -> EquipmentLinkingResult:
        """Link unlinked equipment to clients; never raises.

        ``scope`` restricts the run to the given equipment ids. ``methods``
        restricts the strategies (priority order is kept). ``relink`` deletes
        the existing links of in-scope equipment in the same transaction as the
        first strategy that commits, so the links survive if every strategy fails.
        """

        selected = ordered_methods(methods)
        start_time = self.clock()
        log.info(
            "Starting equipment linking: methods=%s, scope=%s, relink=%s, triggered_by=%s",
            [method.value for method in selected],
            "all" if scope is None else len(scope),
            relink,
            triggered_by,
        )
        try:
            result = self._run(
                selected,
                start_time,
                scope=scope,
                relink=relink,
                triggered_by=triggered_by,
                cancellation=cancellation,
            )
        except Exception as exc:
            log.exception("Equipment linking run aborted")
            return EquipmentLinkingResult(
                success=False,
                message=f"Equipment linking aborted: {exc}",
                start_time=start_time,
                end_time=self.clock(),
                errors=(f"{type(exc).__name__}: {exc}",),
            )
        log.info(
            "Finished equipment linking: considered=%s, linked=%s, skipped=%s, errors=%s, "
            "success=%s, cancelled=%s",
            result.total_considered,
            result.total_linked,
            result.total_skipped,
            result.total_errors,
            result.success,
            result.cancelled,
        )
        return result

    def link_via(
        self,
        method: LinkingMethod,
        *,
        scope: Collection[int] | None = None,
        triggered_by: str | None = None,
    ) -> LinkingMethodResult:
        """Run a single strategy on its own and return its tally."""

        result = self.run(methods=(method,), scope=scope, triggered_by=triggered_by)
        method_result = result.method_result(method)
        if method_result is None:
            return LinkingMethodResult(
                method=method,
                success=False,
                error_message="; ".join(result.errors) or result.message,
            )
        return method_result

    def _run(
        self,
        selected: tuple[LinkingMethod, ...],
        start_time: datetime,
        *,
        scope: Collection[int] | None,
        relink: bool,
        triggered_by: str | None,
        cancellation: CancellationToken | None,
    ) -> EquipmentLinkingResult:
        if not selected:
            return EquipmentLinkingResult(
                success=False,
                message="No linking methods selected",
                start_time=start_time,
                end_time=self.clock(),
            )

        warnings: list[str] = []
        tallies: dict[LinkingMethod, _Tally] = {}
        cancelled = False

        with self.linking_uow_factory() as uow:
            equipment_repo = uow.repositories.equipment
            if relink:
                candidates = equipment_repo.linkable(scope=scope)
                pending_removal = [item.id for item in candidates]
            else:
                candidates = equipment_repo.linkable_without_link(scope=scope)
                pending_removal = []
            state = _RunState.from_equipment(candidates)
            not_numeric = len(state.considered) - sum(
                len(ids) for ids in state.equipment_by_ooi.values()
            )
            if not_numeric:
                warnings.append(
                    f"{not_numeric} equipment item(s) have a legacy source id that is not a "
                    "numeric order-out item id"
                )
            resolver = ClientResolver(uow.repositories.clients)
            linked_at = self.clock()

            with _EvidenceCollector(
                self.legacy_uow_factory,
                selected,
                state.all_ooi_ids(),
                max_workers=self.config.max_workers,
            ) as collector:
                for index, method in enumerate(selected):
                    if index > 0 and cancellation is not None and cancellation.is_set():
                        cancelled = True
                        message = (
                            f"Run cancelled before {method.value}; "
                            f"{len(state.remaining)} item(s) were not evaluated further"
                        )
                        log.warning(message)
                        warnings.append(message)
                        break
                    tally = _Tally(method=method, evaluated=len(state.remaining))
                    tallies[method] = tally
                    started = perf_counter()
                    removed = 0
                    try:
                        evidence, collect_elapsed = collector.evidence_for(
                            method, state.remaining_ooi_ids()
                        )
                        commit_started = perf_counter()
                        if pending_removal:
                            removed = uow.repositories.links.remove_for_equipment(pending_removal)
                        outcome = self._apply(
                            evidence,
                            state,
                            resolver,
                            uow.repositories.links,
                            triggered_by=triggered_by,
                            linked_at=linked_at,
                        )
                        uow.commit()
                    except Exception as exc:
                        uow.rollback()
                        log.exception("Linking strategy %s failed", method.value)
                        tally.success = False
                        tally.error_message = f"{type(exc).__name__}: {exc}"
                        tally.elapsed = perf_counter() - started
                        continue
                    if pending_removal:
                        pending_removal = []
                        if removed:
                            message = f"Re-link mode removed {removed} existing link(s)"
                            log.warning(message)
                            warnings.append(message)
                    state.merge(method, outcome)
                    tally.errors.extend(outcome.errors.values())
                    tally.elapsed = collect_elapsed + (perf_counter() - commit_started)
                    log.info(
                        "%s: evaluated=%s, linked=%s, skipped=%s, resolution_errors=%s",
                        method.value,
                        tally.evaluated,
                        len(outcome.linked),
                        len(outcome.skipped),
                        len(outcome.errors),
                    )

        warnings.extend(resolver.warnings)
        return self._assemble(
            state,
            tallies,
            start_time=start_time,
            cancelled=cancelled,
            warnings=warnings,
        )

    @staticmethod
    def _apply(
        evidence: StrategyEvidence,
        state: _RunState,
        resolver: ClientResolver,
        links: EquipmentLinkRepository,
        *,
        triggered_by: str | None,
        linked_at: datetime,
    ) -> _StrategyOutcome:
        outcome = _StrategyOutcome()
        claimable = {ooi_id: state.claimable(ooi_id) for ooi_id in sorted(evidence.candidates)}
        matches = resolver.resolve(
            {evidence.candidates[ooi_id] for ooi_id, equipment_ids in claimable.items() if equipment_ids}
        )
        for ooi_id, equipment_ids in claimable.items():
            cus_id = evidence.candidates[ooi_id]
            match = matches.get(cus_id)
            for equipment_id in equipment_ids:
                if match is None:
                    outcome.errors[equipment_id] = (
                        f"{evidence.method.value}: equipment {equipment_id} (OOI {ooi_id}) points to "
                        f"legacy customer {cus_id}, which is not in the client directory"
                    )
                    continue
                link = EquipmentLink(
                    equipment_id=equipment_id,
                    client_id=match.client_id,
                    method=evidence.method,
                    legacy_customer_id=cus_id,
                    linked_at=linked_at,
                    linked_by=triggered_by,
                )
                if links.add_if_absent(link):
                    outcome.linked[equipment_id] = match.client_id
                else:
                    outcome.already_linked.add(equipment_id)
        for ooi_id, reason in evidence.skipped.items():
            for equipment_id in state.claimable(ooi_id):
                outcome.skipped[equipment_id] = reason
        if outcome.errors:
            log.warning(
                "%s: %s item(s) point to legacy customers missing from the client directory",
                evidence.method.value,
                len(outcome.errors),
            )
        if outcome.already_linked:
            log.warning(
                "%s: %s item(s) were linked concurrently by another run",
                evidence.method.value,
                len(outcome.already_linked),
            )
        return outcome

    def _assemble(
        self,
        state: _RunState,
        tallies: dict[LinkingMethod, _Tally],
        *,
        start_time: datetime,
        cancelled: bool,
        warnings: list[str],
    ) -> EquipmentLinkingResult:
        attempted = list(tallies.values())
        linked, skipped, errors = state.terminal_counts(attempted[-1].method)
        method_results = tuple(
            LinkingMethodResult(
                method=tally.method,
                success=tally.success,
                linked_count=linked[tally.method],
                skipped_count=skipped[tally.method],
                error_count=errors[tally.method],
                evaluated_count=tally.evaluated,
                error_message=tally.error_message,
                errors=tuple(tally.errors),
                duration=timedelta(seconds=tally.elapsed),
            )
            for tally in attempted
        )
        run_errors = tuple(
            f"{tally.method.value} failed: {tally.error_message}"
            for tally in attempted
            if not tally.success
        )
        success = any(tally.success for tally in attempted)
        total_linked = sum(linked.values())
        message = (
            f"Linked {total_linked} of {len(state.considered)} equipment item(s); "
            f"{sum(skipped.values())} skipped, {sum(errors.values())} unresolved"
        )
        if not success:
            message = "All linking strategies failed; " + message
        if cancelled:
            message += " (cancelled)"
        return EquipmentLinkingResult(
            success=success,
            message=message,
            start_time=start_time,
            end_time=self.clock(),
            method_results=method_results,
            total_considered=len(state.considered),
            cancelled=cancelled,
            errors=run_errors,
            warnings=tuple(warnings),
        )


def run_linking(
    *,
    legacy_uow_factory: LegacyUnitOfWorkFactory,
    linking_uow_factory: LinkingUnitOfWorkFactory,
    scope: Collection[int] | None = None,
    methods: Iterable[LinkingMethod] | None = None,
    relink: bool = False,
    triggered_by: str | None = None,
    cancellation: CancellationToken | None = None,
    config: LinkingConfig | None = None,
    clock: Callable[[], datetime] | None = None,
) -> EquipmentLinkingResult:
    """Functional entry point around :class:`LinkingOrchestrator`."""

    orchestrator = LinkingOrchestrator(
        legacy_uow_factory=legacy_uow_factory,
        linking_uow_factory=linking_uow_factory,
        config=config or LinkingConfig(),
        clock=clock or _utcnow,
    )
    return orchestrator.run(
        scope=scope,
        methods=methods,
        relink=relink,
        triggered_by=triggered_by,
        cancellation=cancellation,
    )
