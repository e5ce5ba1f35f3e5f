"""
dagmigrate Adapter Interface.

An adapter persists which migrations are applied and runs each migration's
upgrade/downgrade action against its backing store. The Migrator only ever
talks to this interface.
"""

import re
from typing import Optional, Protocol, Set, runtime_checkable
from uuid import UUID

from dagmigrate.exceptions import ConfigurationError
from dagmigrate.migration import Migration

DEFAULT_TABLE_NAME = "_dagmigrate"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


@runtime_checkable
class Adapter(Protocol):
    """
    Protocol for migration state backends.

    Contract:
    - fetch_applied() reflects every successful apply/revert made through any
      adapter sharing the same store, and is safe to call repeatedly.
    - apply() runs migration.upgrade(context) and records the id as applied
      as one atomic unit: either both persist or neither does.
    - revert() runs migration.downgrade(context) and removes the id, atomically.
    - Failures are raised; the Migrator attributes them to the migration.

    Bookkeeping setup (creating a table, a file, ...) is done by each
    concrete adapter's init(), which callers run before using a Migrator.
    """

    def fetch_applied(self) -> Set[UUID]:
        """Return the ids of all applied migrations."""
        ...

    def apply(self, migration: Migration) -> None:
        """Apply a single migration and record it."""
        ...

    def revert(self, migration: Migration) -> None:
        """Revert a single migration and forget it."""
        ...


def resolve_table_name(table_name: Optional[str]) -> str:
    """
    Return the bookkeeping table name, validated as a plain SQL identifier.

    Raises:
        ConfigurationError: If the name could not be safely interpolated
    """
    name = table_name or DEFAULT_TABLE_NAME
    if not _IDENTIFIER.match(name):
        raise ConfigurationError(f"Invalid migration table name: {name!r}")
    return name
