"""Command-line entrypoint for configuration and migration commands."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from beads import __version__
from beads.config.paths import find_beads_dir
from beads.config.store import ConfigStore
from beads.errors import ConfigError, DatabaseConflictError, PrefixValidationError
from beads.logging import configure_logging
from beads.storage.migrate import MigrationStatus, format_db_list, migrate_legacy_database
from beads.storage.sqlite import SQLiteStorage

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bd",
        description="Inspect configuration and migrate legacy beads state",
    )
    parser.add_argument("--version", action="version", version=f"bd {__version__}")
    parser.add_argument(
        "--json",
        action="store_true",
        default=None,
        help="Emit JSON output (also enabled by 'json: true' or BD_JSON)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate = subparsers.add_parser(
        "migrate",
        help="Rename a legacy database to the current name and migrate its settings",
    )
    migrate.add_argument(
        "--beads-dir",
        default=None,
        help="Path to the .beads directory (defaults to the nearest one above the cwd)",
    )
    migrate.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without changing anything",
    )
    migrate.add_argument(
        "--update-version",
        action="store_true",
        help=f"After migrating, stamp the database with bd version {__version__}",
    )

    config = subparsers.add_parser("config", help="Show or change configuration")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("list", help="Show every resolved setting")
    get = config_sub.add_parser("get", help="Show one resolved setting")
    get.add_argument("key", help="Option name, e.g. 'issue-prefix'")
    set_prefix = config_sub.add_parser(
        "set-prefix", help="Write issue-prefix to the project's config.yaml"
    )
    set_prefix.add_argument("prefix", help="Issue prefix, e.g. 'bd'")

    return parser


def _emit(payload: Any, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
        return
    if isinstance(payload, dict):
        for key, value in payload.items():
            print(f"{key}: {value}")
    else:
        print(payload)


def _run_migrate(args: argparse.Namespace, config: ConfigStore, *, as_json: bool) -> int:
    beads_dir = Path(args.beads_dir) if args.beads_dir else find_beads_dir()
    if beads_dir is None or not beads_dir.is_dir():
        print("No .beads directory found", file=sys.stderr)
        return 1

    plan = migrate_legacy_database(beads_dir, dry_run=args.dry_run)
    plan.raise_for_conflict()

    result: dict[str, Any] = {
        "status": str(plan.status),
        "databases": format_db_list(plan.records),
        "target": plan.target.name,
        "dry_run": args.dry_run,
    }
    if plan.source is not None:
        result["source"] = plan.source.name

    if plan.status is not MigrationStatus.NO_DATABASE and not args.dry_run:
        with SQLiteStorage.open(plan.target, config) as storage:
            if args.update_version:
                storage.set_version(__version__)
            result["version"] = storage.get_version()
        result["issue_prefix"] = config.get_issue_prefix()

    if as_json:
        _emit(result, as_json=True)
        return 0

    if plan.status is MigrationStatus.NO_DATABASE:
        print(f"No database found in {beads_dir}")
    elif plan.status is MigrationStatus.UP_TO_DATE:
        print(f"Database is already named {plan.target.name}")
    elif args.dry_run:
        print(f"Would rename {result['source']} to {plan.target.name}")
    else:
        print(f"Renamed {result['source']} to {plan.target.name}")
    return 0


def _run_config(args: argparse.Namespace, config: ConfigStore, *, as_json: bool) -> int:
    if args.config_command == "list":
        settings = config.all_settings()
        if as_json:
            _emit(settings, as_json=True)
        else:
            for key in sorted(settings):
                print(f"{key}: {config.get_string(key)}")
            if config.config_file is not None:
                print(f"# loaded from {config.config_file}")
        return 0

    if args.config_command == "get":
        value = config.get(args.key)
        if as_json:
            _emit({args.key: value}, as_json=True)
        else:
            print(config.get_string(args.key))
        return 0

    if args.config_command == "set-prefix":
        config.set_issue_prefix(args.prefix)
        _emit({"issue-prefix": config.get_issue_prefix()}, as_json=as_json)
        return 0

    logger.error("Unknown config command", extra={"config_command": args.config_command})
    return 2


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging()

    try:
        config = ConfigStore.initialize()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    as_json = args.json if args.json is not None else config.get_bool("json")

    try:
        if args.command == "migrate":
            return _run_migrate(args, config, as_json=as_json)
        if args.command == "config":
            return _run_config(args, config, as_json=as_json)

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except DatabaseConflictError as e:
        if as_json:
            _emit(
                {"status": "conflict", "databases": format_db_list(e.records)},
                as_json=True,
            )
        else:
            for row in format_db_list(e.records):
                print(f"  {row['name']} (version {row['version'] or 'unknown'})", file=sys.stderr)
        print(str(e), file=sys.stderr)
        return 3

    except PrefixValidationError as e:
        print(str(e), file=sys.stderr)
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
