"""Command-line maintenance tool for the storage layer.

Runs against whichever backend the environment configures:
- status    backend connection check and per-collection record counts
- inspect   index drift report (one collection or all known ones)
- rebuild   recompute a collection index, optionally with bucket indexes
- seed      write the starter data set (refused on the in-memory fallback)
- snapshot  capture every known collection
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from enum import Enum
from typing import Any

from hotel_pos.config import get_settings
from hotel_pos.application.services import SeedService, SnapshotService, StorageFacade
from hotel_pos.domain.collections import KNOWN_COLLECTIONS
from hotel_pos.domain.exceptions import BackendUnavailableError, StorageError
from hotel_pos.infrastructure.kv import build_key_value_store
from hotel_pos.infrastructure.logging.log_config import setup_logging


class ExitCode(int, Enum):
    SUCCESS = 0
    ERROR = 1
    INVALID_ARGS = 2
    DRIFT = 3
    UNAVAILABLE = 4


def _emit(args: argparse.Namespace, payload: Any, text: str) -> None:
    if args.json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(text)


async def cmd_status(facade: StorageFacade, args: argparse.Namespace) -> int:
    info = facade.backend_info()
    connection = await facade.connection_status()
    stats = await facade.collection_stats() if connection.connected and connection.is_real_connection else {}
    payload = {
        "backend": asdict(info),
        "connected": connection.connected,
        "is_real_connection": connection.is_real_connection,
        "message": connection.message,
        "collections": stats,
    }
    lines = [
        f"Backend:    {info.type} ({info.description})",
        f"Connected:  {connection.connected}",
        f"Persistent: {connection.is_real_connection}",
    ]
    if connection.message:
        lines.append(f"Message:    {connection.message}")
    lines.extend(f"  {name:<20} {count}" for name, count in stats.items())
    _emit(args, payload, "\n".join(lines))
    return ExitCode.SUCCESS.value if connection.connected else ExitCode.UNAVAILABLE.value


async def cmd_inspect(facade: StorageFacade, args: argparse.Namespace) -> int:
    collections = [args.collection] if args.collection else list(KNOWN_COLLECTIONS)
    reports = await facade.maintainer.inspect_all(collections)
    lines = []
    for report in reports:
        flag = "DRIFT" if report.has_drift else "ok"
        lines.append(
            f"{report.collection:<20} {flag:<6} indexed={report.indexed_count} "
            f"records={report.record_count} orphaned={len(report.orphaned_ids)} "
            f"dangling={len(report.dangling_ids)}"
            + (" legacy-encoding" if report.legacy_encoding else "")
        )
    _emit(args, [asdict(r) | {"has_drift": r.has_drift} for r in reports], "\n".join(lines))
    return ExitCode.DRIFT.value if any(r.has_drift for r in reports) else ExitCode.SUCCESS.value


async def cmd_rebuild(facade: StorageFacade, args: argparse.Namespace) -> int:
    result = await facade.maintainer.rebuild(args.collection, bucket_field=args.bucket_field)
    text = (
        f"Rebuilt {result.collection}: {result.record_count} records "
        f"(+{result.added} / -{result.removed})"
    )
    if result.bucket_field:
        text += "\n" + "\n".join(f"  {name:<16} {n}" for name, n in result.buckets.items())
    _emit(args, asdict(result), text)
    return ExitCode.SUCCESS.value


async def cmd_seed(facade: StorageFacade, args: argparse.Namespace) -> int:
    counts = await SeedService(facade, get_settings().seed_data_path).seed()
    _emit(args, counts, "\n".join(f"{name:<20} {n}" for name, n in counts.items()))
    return ExitCode.SUCCESS.value


async def cmd_snapshot(facade: StorageFacade, args: argparse.Namespace) -> int:
    summary = await SnapshotService(facade).create(args.description)
    _emit(args, asdict(summary), f"Snapshot {summary.id} created at {summary.created_at}")
    return ExitCode.SUCCESS.value


_COMMANDS = {
    "status": cmd_status,
    "inspect": cmd_inspect,
    "rebuild": cmd_rebuild,
    "seed": cmd_seed,
    "snapshot": cmd_snapshot,
}


async def _run(args: argparse.Namespace, facade: StorageFacade | None = None) -> int:
    owned = facade is None
    if facade is None:
        settings = get_settings()
        kv = await build_key_value_store(settings)
        facade = StorageFacade.for_backend(kv, validate_records=settings.validate_records)
    try:
        return await _COMMANDS[args.command](facade, args)
    except BackendUnavailableError as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.UNAVAILABLE.value
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.ERROR.value
    finally:
        if owned:
            await facade.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hotel-pos",
        description="Hotel POS storage maintenance",
    )
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (-v info, -vv debug)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("status", help="Show backend status and record counts")

    inspect_parser = subparsers.add_parser("inspect", help="Report index drift")
    inspect_parser.add_argument("collection", nargs="?", help="Collection (default: all known)")

    rebuild_parser = subparsers.add_parser("rebuild", help="Rebuild a collection index")
    rebuild_parser.add_argument("collection")
    rebuild_parser.add_argument("--bucket-field", help="Also build per-value bucket indexes")

    subparsers.add_parser("seed", help="Write the starter data set")

    snapshot_parser = subparsers.add_parser("snapshot", help="Capture all known collections")
    snapshot_parser.add_argument("--description", default="", help="Free-text label")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return ExitCode.SUCCESS.value

    level = {0: "WARNING", 1: "INFO"}.get(args.verbose, "DEBUG")
    setup_logging(level_override=level)

    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
