"""Application entry points wiring the SQLAlchemy adapters to the domain."""

from __future__ import annotations

from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from legacylink.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLegacyUnitOfWork,
    SqlAlchemyLinkingUnitOfWork,
    is_started,
    startup,
)
from legacylink.config.linking import get_linking_config
from legacylink.domain.linking import LinkingOrchestrator
from legacylink.domain.reporting import (
    get_diagnostics,
    get_unlinked_equipment,
    verify_client_equipment,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from legacylink.config.linking import LinkingConfig
    from legacylink.domain.linking import (
        CancellationToken,
        EquipmentLinkingResult,
        LinkingMethodResult,
    )
    from legacylink.domain.linking.orchestrator import (
        LegacyUnitOfWorkFactory,
        LinkingUnitOfWorkFactory,
    )
    from legacylink.domain.model import LinkingMethod
    from legacylink.domain.reporting import (
        ClientEquipmentVerification,
        EquipmentLinkingDiagnostics,
        UnlinkedEquipmentReport,
    )

log = getLogger(__name__)


def _factories(
    config: LinkingConfig,
    legacy_uow_factory: LegacyUnitOfWorkFactory | None,
    linking_uow_factory: LinkingUnitOfWorkFactory | None,
) -> tuple[LegacyUnitOfWorkFactory, LinkingUnitOfWorkFactory]:
    if (legacy_uow_factory is None or linking_uow_factory is None) and not is_started():
        startup()
    return (
        legacy_uow_factory
        or partial(SqlAlchemyLegacyUnitOfWork, chunk_size=config.query_chunk_size),
        linking_uow_factory or SqlAlchemyLinkingUnitOfWork,
    )


def _orchestrator(
    config: LinkingConfig | None,
    legacy_uow_factory: LegacyUnitOfWorkFactory | None,
    linking_uow_factory: LinkingUnitOfWorkFactory | None,
) -> LinkingOrchestrator:
    effective_config = config or get_linking_config()
    legacy, linking = _factories(effective_config, legacy_uow_factory, linking_uow_factory)
    return LinkingOrchestrator(
        legacy_uow_factory=legacy,
        linking_uow_factory=linking,
        config=effective_config,
    )


def link_equipment(
    *,
    scope: Collection[int] | None = None,
    methods: Iterable[LinkingMethod] | None = None,
    relink: bool = False,
    triggered_by: str | None = None,
    cancellation: CancellationToken | None = None,
    config: LinkingConfig | None = None,
    legacy_uow_factory: LegacyUnitOfWorkFactory | None = None,
    linking_uow_factory: LinkingUnitOfWorkFactory | None = None,
) -> EquipmentLinkingResult:
    """Link unlinked equipment to clients using the configured databases."""

    orchestrator = _orchestrator(config, legacy_uow_factory, linking_uow_factory)
    return orchestrator.run(
        scope=scope,
        methods=methods,
        relink=relink,
        triggered_by=triggered_by,
        cancellation=cancellation,
    )


def link_equipment_via(
    method: LinkingMethod,
    *,
    scope: Collection[int] | None = None,
    triggered_by: str | None = None,
    config: LinkingConfig | None = None,
    legacy_uow_factory: LegacyUnitOfWorkFactory | None = None,
    linking_uow_factory: LinkingUnitOfWorkFactory | None = None,
) -> LinkingMethodResult:
    """Run one linking strategy on its own."""

    orchestrator = _orchestrator(config, legacy_uow_factory, linking_uow_factory)
    result = orchestrator.link_via(method, scope=scope, triggered_by=triggered_by)
    log.info(
        "%s finished: linked=%s, skipped=%s, errors=%s, success=%s",
        result.method_name,
        result.linked_count,
        result.skipped_count,
        result.error_count,
        result.success,
    )
    return result


def equipment_linking_diagnostics(
    *,
    config: LinkingConfig | None = None,
    legacy_uow_factory: LegacyUnitOfWorkFactory | None = None,
    linking_uow_factory: LinkingUnitOfWorkFactory | None = None,
) -> EquipmentLinkingDiagnostics:
    legacy, linking = _factories(
        config or get_linking_config(), legacy_uow_factory, linking_uow_factory
    )
    return get_diagnostics(legacy_uow_factory=legacy, linking_uow_factory=linking)


def unlinked_equipment(
    *,
    page: int = 1,
    page_size: int | None = None,
    config: LinkingConfig | None = None,
    legacy_uow_factory: LegacyUnitOfWorkFactory | None = None,
    linking_uow_factory: LinkingUnitOfWorkFactory | None = None,
) -> UnlinkedEquipmentReport:
    effective_config = config or get_linking_config()
    legacy, linking = _factories(effective_config, legacy_uow_factory, linking_uow_factory)
    return get_unlinked_equipment(
        legacy_uow_factory=legacy,
        linking_uow_factory=linking,
        page=page,
        page_size=page_size,
        config=effective_config,
    )


def verify_client(
    client_id: int,
    *,
    config: LinkingConfig | None = None,
    legacy_uow_factory: LegacyUnitOfWorkFactory | None = None,
    linking_uow_factory: LinkingUnitOfWorkFactory | None = None,
) -> ClientEquipmentVerification:
    legacy, linking = _factories(
        config or get_linking_config(), legacy_uow_factory, linking_uow_factory
    )
    return verify_client_equipment(
        client_id, legacy_uow_factory=legacy, linking_uow_factory=linking
    )
