# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from vehicledb.app import (
    build_reconciler,
    delete_vehicles,
    export_vehicles,
    import_vehicles,
    load_working_set,
)
from vehicledb.config import configure_logging
from vehicledb.domain.working_set import WorkingSet

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from vehicledb.domain.model import Vehicle

log = logging.getLogger(__name__)


def _vehicle_id(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid vehicle id: {value}") from None
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Vehicle id must be positive: {value}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage stored vehicle records")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="Print every stored vehicle")

    show = subparsers.add_parser("show", help="Print one stored vehicle")
    show.add_argument("vehicle_id", type=_vehicle_id, help="Id of the vehicle")

    import_parser = subparsers.add_parser("import", help="Import vehicles from a JSON file")
    import_parser.add_argument("file", help='JSON document with a "vehicles" root tag')
    import_parser.add_argument(
        "--replace",
        action="store_true",
        help="Delete every stored vehicle before importing",
    )

    export = subparsers.add_parser("export", help="Export stored vehicles to a JSON file")
    export.add_argument("file", help="Destination path (overwritten)")

    delete = subparsers.add_parser("delete", help="Delete stored vehicles by id")
    delete.add_argument("vehicle_ids", nargs="+", type=_vehicle_id, help="Ids to delete")

    return parser.parse_args(list(argv))


def _format_vehicle(vehicle: Vehicle) -> str:
    return (
        f"{vehicle.id:>6}  {vehicle.vehicle_type.value:<10}  {vehicle.plate_number:<12}  "
        f"{vehicle.color:<10}  {vehicle.timestamp}"
    )


def _run(args: argparse.Namespace) -> None:
    reconciler = build_reconciler()
    match args.command:
        case "list":
            for vehicle in reconciler.read_all():
                print(_format_vehicle(vehicle))
        case "show":
            print(reconciler.read_one(args.vehicle_id))
        case "import":
            if args.replace:
                working_set = load_working_set(reconciler)
                for handle, _vehicle in working_set.items():
                    working_set.remove(handle)
            else:
                working_set = WorkingSet()
            report = import_vehicles(args.file, working_set, reconciler)
            log.info(
                "Import finished: deleted=%s, inserted=%s", report.deleted, report.inserted
            )
        case "export":
            count = export_vehicles(args.file, reconciler)
            log.info("Exported %s vehicle(s) to %s", count, args.file)
        case "delete":
            delete_vehicles(args.vehicle_ids, reconciler)
        case _:
            raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args)
    except Exception:
        log.exception("Command %r failed", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
