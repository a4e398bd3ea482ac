from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from legacylink.app import (
    equipment_linking_diagnostics,
    link_equipment,
    link_equipment_via,
    unlinked_equipment,
    verify_client,
)
from legacylink.config import configure_logging
from legacylink.domain.model import LINKING_PRIORITY, LinkingMethod
from legacylink.ui.dto import (
    ClientEquipmentVerificationDto,
    EquipmentLinkingDiagnosticsDto,
    EquipmentLinkingResultDto,
    LegacyLinkDto,
    LinkingMethodResultDto,
    UnlinkedEquipmentReportDto,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

METHOD_CHOICES = [method.value for method in LINKING_PRIORITY]

cancel_event = threading.Event()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Link legacy equipment to clients")
    subparsers = parser.add_subparsers(dest="command", required=True)

    link = subparsers.add_parser("link", help="Run every linking strategy in priority order")
    link.add_argument(
        "--equipment-id",
        type=int,
        action="append",
        dest="equipment_ids",
        help="Restrict the run to this equipment id (repeatable)",
    )
    link.add_argument(
        "--method",
        choices=METHOD_CHOICES,
        action="append",
        dest="methods",
        help="Restrict the run to this strategy (repeatable; priority order is kept)",
    )
    link.add_argument(
        "--relink",
        action="store_true",
        help="Delete existing links of in-scope equipment and link them again",
    )
    link.add_argument("--triggered-by", type=str, help="Operator id stored on new links")

    link_via = subparsers.add_parser("link-via", help="Run a single linking strategy")
    link_via.add_argument("method", choices=METHOD_CHOICES)
    link_via.add_argument("--triggered-by", type=str, help="Operator id stored on new links")

    subparsers.add_parser("diagnostics", help="Print linking diagnostics")

    unlinked = subparsers.add_parser("unlinked", help="List equipment without a client link")
    unlinked.add_argument("--page", type=int, default=1, help="1-based page number")
    unlinked.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Items per page (defaults to config)",
    )

    verify = subparsers.add_parser("verify-client", help="Verify the equipment linked to a client")
    verify.add_argument("client_id", type=int)

    return parser.parse_args(list(argv))


def _emit(dto: LegacyLinkDto) -> None:
    sys.stdout.write(json.dumps(dto.to_wire(), indent=2, ensure_ascii=False))
    sys.stdout.write("\n")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        if parsed_args.command == "link":
            result = link_equipment(
                scope=parsed_args.equipment_ids,
                methods=(
                    [LinkingMethod(method) for method in parsed_args.methods]
                    if parsed_args.methods
                    else None
                ),
                relink=parsed_args.relink,
                triggered_by=parsed_args.triggered_by,
                cancellation=cancel_event,
            )
            _emit(EquipmentLinkingResultDto.from_domain(result))
            if not result.success:
                sys.exit(1)
        elif parsed_args.command == "link-via":
            method_result = link_equipment_via(
                LinkingMethod(parsed_args.method),
                triggered_by=parsed_args.triggered_by,
            )
            _emit(LinkingMethodResultDto.from_domain(method_result))
            if not method_result.success:
                sys.exit(1)
        elif parsed_args.command == "diagnostics":
            _emit(EquipmentLinkingDiagnosticsDto.from_domain(equipment_linking_diagnostics()))
        elif parsed_args.command == "unlinked":
            report = unlinked_equipment(page=parsed_args.page, page_size=parsed_args.page_size)
            _emit(UnlinkedEquipmentReportDto.from_domain(report))
        elif parsed_args.command == "verify-client":
            verification = verify_client(parsed_args.client_id)
            _emit(ClientEquipmentVerificationDto.from_domain(verification))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Ask a running link to stop after the current strategy; a second Ctrl+C exits."""
    if cancel_event.is_set():
        log.info("Closed by user (Ctrl+C)")
        sys.exit(0)
    log.info("Cancellation requested; finishing the current strategy")
    cancel_event.set()


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
