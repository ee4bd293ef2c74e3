"""
hostel-ledger command line.

Usage:
    hostel-ledger [--config PATH] [--db-url URL] init-db
    hostel-ledger commands
    hostel-ledger call NAME [ARGS...]

``call`` runs one registered command and prints its result as JSON.
Optional positional arguments can be skipped with ``-``.

Exit codes: 0 success, 1 ledger error (printed as JSON on stderr),
2 usage error.
"""

import argparse
import dataclasses
import json
import sys
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

from hostel_ledger.commands import build_default_registry, run_command
from hostel_ledger.config import get_settings
from hostel_ledger.db.engine import create_tables, init_engine_from_url
from hostel_ledger.domain.clock import SystemClock
from hostel_ledger.exceptions import HostelLedgerError
from hostel_ledger.logging_config import configure_logging, get_logger

logger = get_logger("cli")


class ResultEncoder(json.JSONEncoder):
    """Encode command results: DTOs, UUIDs, dates, enums and id sets."""

    def default(self, obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(str(item) for item in obj)
        return super().default(obj)


def to_json(result: Any) -> str:
    return json.dumps(result, cls=ResultEncoder, indent=2)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="hostel-ledger",
        description="Hostel billing and occupancy ledger.",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML settings file")
    p.add_argument("--db-url", default=None, help="Database URL (overrides settings)")

    sub = p.add_subparsers(dest="action", required=True)
    sub.add_parser("init-db", help="Create all tables")
    sub.add_parser("commands", help="List registered commands")
    call = sub.add_parser("call", help="Run one command and print JSON")
    call.add_argument("name")
    call.add_argument("args", nargs="*")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    registry = build_default_registry()

    if args.action == "commands":
        for command in registry:
            marker = "w" if command.writes else "r"
            print(f"{marker}  {command.usage():<60} {command.description}")
        return 0

    settings = get_settings(args.config)
    if args.db_url:
        settings = dataclasses.replace(settings, database_url=args.db_url)

    configure_logging(level=settings.log_level)
    init_engine_from_url(
        settings.database_url,
        echo=settings.echo_sql,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )

    if args.action == "init-db":
        create_tables()
        print(to_json({"initialized": True}))
        return 0

    try:
        result = run_command(
            registry,
            args.name,
            args.args,
            clock=SystemClock(settings.zone),
            settings=settings,
        )
    except HostelLedgerError as exc:
        logger.warning("command_failed", exc_info=True)
        print(to_json({"error": exc.code, "message": str(exc)}), file=sys.stderr)
        return 1

    print(to_json(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
