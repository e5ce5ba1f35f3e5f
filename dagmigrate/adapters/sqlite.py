"""
dagmigrate - SQLite Adapter.

Runs migrations against a `sqlite3` connection and tracks applied ids in a
bookkeeping table (default `_dagmigrate`).

Example:
    import sqlite3

    from dagmigrate import Migrator, migration
    from dagmigrate.adapters.sqlite import SQLiteAdapter

    conn = sqlite3.connect("app.db")
    adapter = SQLiteAdapter(conn)
    adapter.init()

    migrator = Migrator(adapter)
    migrator.register(
        migration(
            "4885e8ab-dafa-4d76-a565-2dee8b04ef60",
            description="Create example table",
            upgrade=lambda c: c.execute("CREATE TABLE example (id INTEGER PRIMARY KEY)"),
            downgrade=lambda c: c.execute("DROP TABLE example"),
        )
    )
    migrator.up()
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Set, Union
from uuid import UUID

from dagmigrate.adapters.base import resolve_table_name
from dagmigrate.migration import Migration

logger = logging.getLogger(__name__)

SAVEPOINT_NAME = "dagmigrate_step"


class SQLiteAdapter:
    """
    Adapter between dagmigrate and SQLite.

    Each apply/revert runs inside an explicit BEGIN ... COMMIT, so DDL issued
    by the migration is rolled back together with the bookkeeping row when
    anything fails. If the caller already has a transaction open, the work
    runs in a SAVEPOINT inside it instead and is only made durable when the
    caller commits. Migrations receive the connection and must not commit it
    themselves (nor call executescript(), which commits implicitly).
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        table_name: Optional[str] = None,
    ):
        """
        Initialize SQLite adapter.

        Args:
            conn: Open sqlite3 connection
            table_name: Bookkeeping table name (default `_dagmigrate`)
        """
        self.conn = conn
        self.table_name = resolve_table_name(table_name)
        self._owns_connection = False

    @classmethod
    def from_path(
        cls,
        db_path: Union[str, Path],
        table_name: Optional[str] = None,
    ) -> "SQLiteAdapter":
        """Open (or create) a database file and adapt it. close() releases it."""
        adapter = cls(sqlite3.connect(str(db_path)), table_name=table_name)
        adapter._owns_connection = True
        return adapter

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SQLiteAdapter":
        """Create from a loaded config (`adapter_options.db_path`, `table_name`)."""
        options = config.get("adapter_options") or {}
        return cls.from_path(
            options.get("db_path", "dagmigrate.db"),
            table_name=config.get("table_name"),
        )

    def init(self) -> None:
        """Create the bookkeeping table. Safe to call multiple times."""
        with self._transaction() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table_name} (
                    id TEXT PRIMARY KEY,
                    description TEXT,
                    applied_at TEXT NOT NULL
                )
                """
            )

    def close(self) -> None:
        """Close the connection if this adapter opened it."""
        if self._owns_connection:
            self.conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        if self.conn.in_transaction:
            # Nest inside the caller's transaction; committing it stays theirs
            with self._savepoint():
                yield self.conn
            return

        self.conn.execute("BEGIN")
        try:
            yield self.conn
        except BaseException:
            if self.conn.in_transaction:
                self.conn.execute("ROLLBACK")
            raise
        if self.conn.in_transaction:
            self.conn.execute("COMMIT")

    @contextmanager
    def _savepoint(self) -> Iterator[None]:
        self.conn.execute(f"SAVEPOINT {SAVEPOINT_NAME}")
        try:
            yield
        except BaseException:
            self.conn.execute(f"ROLLBACK TO SAVEPOINT {SAVEPOINT_NAME}")
            self.conn.execute(f"RELEASE SAVEPOINT {SAVEPOINT_NAME}")
            raise
        self.conn.execute(f"RELEASE SAVEPOINT {SAVEPOINT_NAME}")

    def fetch_applied(self) -> Set[UUID]:
        cursor = self.conn.execute(f"SELECT id FROM {self.table_name}")
        return {UUID(row[0]) for row in cursor.fetchall()}

    def apply(self, migration: Migration) -> None:
        with self._transaction() as conn:
            migration.upgrade(conn)
            conn.execute(
                f"INSERT INTO {self.table_name} (id, description, applied_at) "
                "VALUES (?, ?, ?)",
                (
                    str(migration.id),
                    migration.description,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
        logger.debug(f"Recorded migration {migration.id} in {self.table_name}")

    def revert(self, migration: Migration) -> None:
        with self._transaction() as conn:
            migration.downgrade(conn)
            conn.execute(
                f"DELETE FROM {self.table_name} WHERE id = ?",
                (str(migration.id),),
            )
        logger.debug(f"Removed migration {migration.id} from {self.table_name}")
