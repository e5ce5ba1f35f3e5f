"""
dagmigrate Command Line Interface.

Usage:
    # Create the bookkeeping table / file
    python -m dagmigrate --config dagmigrate.yaml init

    # Apply everything, or one migration and its dependencies
    python -m dagmigrate --migrations myapp.migrations up
    python -m dagmigrate up --target 4885e8ab-dafa-4d76-a565-2dee8b04ef60

    # Revert everything built on top of a migration (it stays applied)
    python -m dagmigrate down --target bc960dc8-0e4a-4182-a62a-8e776d1e2b30 --dry-run

    # Show what is applied and pending
    python -m dagmigrate status

The migrations module must expose `MIGRATIONS`, an iterable of Migration
objects. It is taken from --migrations or `migrations_module` in the config.
"""

import argparse
import importlib
import logging
import sys
import uuid
from typing import Any, Dict, List, Optional

from dagmigrate.adapters.factory import AdapterFactory
from dagmigrate.config.loader import ConfigLoader
from dagmigrate.exceptions import ConfigurationError, DagMigrateError
from dagmigrate.migrator import Migrator
from dagmigrate.observability import (
    ObservabilityConfig,
    configure_observability,
    setup_logging,
    shutdown_observability,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "dagmigrate.yaml"


def load_migrations(module_name: Optional[str]) -> List[Any]:
    """
    Import a migrations module and return its MIGRATIONS.

    Raises:
        ConfigurationError: If no module is given, it cannot be imported, or
            it does not define MIGRATIONS
    """
    if not module_name:
        raise ConfigurationError(
            "No migrations module given (use --migrations or migrations_module)"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(
            f"Cannot import migrations module {module_name}: {e}"
        ) from e

    migrations = getattr(module, "MIGRATIONS", None)
    if migrations is None:
        raise ConfigurationError(f"Module {module_name} does not define MIGRATIONS")

    return list(migrations)


def _build_migrator(config: Dict[str, Any], args: argparse.Namespace) -> Migrator:
    migrations = load_migrations(args.migrations or config.get("migrations_module"))
    adapter = AdapterFactory.create_from_config(config)
    migrator = Migrator(adapter)
    try:
        migrator.register_multiple(migrations)
    except DagMigrateError:
        _close(adapter)
        raise
    return migrator


def cmd_init(config: Dict[str, Any], args: argparse.Namespace) -> int:
    """Set up the adapter's bookkeeping."""
    adapter = AdapterFactory.create_from_config(config)
    try:
        adapter.init()
    finally:
        _close(adapter)
    print(f"Initialized {config['adapter']} migration bookkeeping")
    return 0


def cmd_up(config: Dict[str, Any], args: argparse.Namespace) -> int:
    """Apply migrations."""
    migrator = _build_migrator(config, args)
    try:
        migrator.adapter.init()
        applied = migrator.up(args.target, dry_run=args.dry_run)
    finally:
        _close(migrator.adapter)

    if not applied:
        print("No pending migrations")
        return 0

    prefix = "[DRY-RUN] Would apply" if args.dry_run else "Applied"
    print(f"{prefix} {len(applied)} migration(s):")
    for migration_id in applied:
        print(f"  + {migration_id}  {migrator.get(migration_id).description}")
    return 0


def cmd_down(config: Dict[str, Any], args: argparse.Namespace) -> int:
    """Revert migrations."""
    migrator = _build_migrator(config, args)
    try:
        reverted = migrator.down(args.target, dry_run=args.dry_run)
    finally:
        _close(migrator.adapter)

    if not reverted:
        print("No migrations to revert")
        return 0

    prefix = "[DRY-RUN] Would revert" if args.dry_run else "Reverted"
    print(f"{prefix} {len(reverted)} migration(s):")
    for migration_id in reverted:
        print(f"  - {migration_id}  {migrator.get(migration_id).description}")
    return 0


def cmd_status(config: Dict[str, Any], args: argparse.Namespace) -> int:
    """Show applied and pending migrations."""
    migrator = _build_migrator(config, args)
    try:
        status = migrator.get_status()
    finally:
        _close(migrator.adapter)

    print(
        f"{status['registered_count']} registered, "
        f"{status['applied_count']} applied, "
        f"{status['pending_count']} pending"
    )
    print("-" * 60)
    for entry in status["migrations"]:
        marker = "[x]" if entry["applied"] else "[ ]"
        print(f"{marker} {entry['id']}  {entry['description']}")

    if status["unknown_applied"]:
        print()
        print("Applied but not registered:")
        for migration_id in status["unknown_applied"]:
            print(f"  ? {migration_id}")

    return 0


def _close(adapter: Any) -> None:
    close = getattr(adapter, "close", None)
    if close is not None:
        close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dagmigrate",
        description="dagmigrate - dependency-ordered schema migrations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m dagmigrate --migrations myapp.migrations init
    python -m dagmigrate --migrations myapp.migrations up --dry-run
    python -m dagmigrate --migrations myapp.migrations down --target <uuid>
    python -m dagmigrate --migrations myapp.migrations status
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--migrations",
        type=str,
        default=None,
        help="Module exposing MIGRATIONS (overrides migrations_module)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Set up migration bookkeeping")
    init_parser.set_defaults(func=cmd_init)

    up_parser = subparsers.add_parser("up", help="Apply migrations")
    up_parser.add_argument(
        "--target",
        type=uuid.UUID,
        help="Apply only this migration and its dependencies",
    )
    up_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be applied"
    )
    up_parser.set_defaults(func=cmd_up)

    down_parser = subparsers.add_parser("down", help="Revert migrations")
    down_parser.add_argument(
        "--target",
        type=uuid.UUID,
        help="Revert only what depends on this migration (it stays applied)",
    )
    down_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be reverted"
    )
    down_parser.set_defaults(func=cmd_down)

    status_parser = subparsers.add_parser("status", help="Show migration status")
    status_parser.set_defaults(func=cmd_status)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ConfigLoader.load(args.config)
    except ConfigurationError as e:
        setup_logging(level="DEBUG" if args.verbose else "INFO")
        logger.error(str(e))
        return 1

    log_config = config.get("logging") or {}
    configure_observability(
        ObservabilityConfig.from_dict(
            {
                **(config.get("observability") or {}),
                "log_level": "DEBUG" if args.verbose else log_config.get("level", "INFO"),
                "log_format": log_config.get("format", "text"),
            }
        )
    )

    try:
        return args.func(config, args)
    except DagMigrateError as e:
        logger.error(str(e))
        return 1
    finally:
        shutdown_observability()


if __name__ == "__main__":
    sys.exit(main())
