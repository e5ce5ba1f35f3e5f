"""
dagmigrate - PostgreSQL Adapter.

Runs migrations against a psycopg (v3) connection. Each apply/revert is one
transaction covering both the migration's DDL and the bookkeeping row.

Pass a connection opened with `autocommit=True` (as from_config() does):
on a non-autocommit connection with a transaction already open, the
adapter's transaction blocks become savepoints inside the caller's
transaction and nothing is committed until the caller commits.

Install the driver with: pip install 'dagmigrate[postgres]'
"""

import logging
from typing import Any, Dict, Optional, Set
from uuid import UUID

from dagmigrate.adapters.base import resolve_table_name
from dagmigrate.migration import Migration

logger = logging.getLogger(__name__)

# Try to import psycopg (v3)
try:
    import psycopg

    PSYCOPG_AVAILABLE = True
except ImportError:
    PSYCOPG_AVAILABLE = False
    logger.debug(
        "psycopg not installed. Install with: pip install 'dagmigrate[postgres]'"
    )


class PostgreSQLAdapter:
    """
    Adapter between dagmigrate and PostgreSQL.

    Bookkeeping table (default `_dagmigrate`):
        id uuid PRIMARY KEY, description text, applied_at timestamptz
    """

    def __init__(self, conn: Any, table_name: Optional[str] = None):
        """
        Initialize PostgreSQL adapter.

        Args:
            conn: psycopg connection (not a pool)
            table_name: Bookkeeping table name (default `_dagmigrate`)
        """
        self.conn = conn
        self.table_name = resolve_table_name(table_name)
        self._owns_connection = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "PostgreSQLAdapter":
        """
        Connect using `adapter_options` from a loaded config.

        Either `dsn` or the discrete `host`, `port`, `database`, `user`,
        `password` options are used.

        Raises:
            ImportError: If psycopg is not installed
        """
        if not PSYCOPG_AVAILABLE:
            raise ImportError(
                "psycopg not installed. Install with: pip install 'dagmigrate[postgres]'"
            )

        options = config.get("adapter_options") or {}
        dsn = options.get("dsn")
        if dsn:
            conn = psycopg.connect(dsn, autocommit=True)
        else:
            conn = psycopg.connect(
                host=options.get("host", "localhost"),
                port=int(options.get("port", 5432)),
                dbname=options.get("database", "postgres"),
                user=options.get("user", "postgres"),
                password=options.get("password", ""),
                autocommit=True,
            )

        adapter = cls(conn, table_name=config.get("table_name"))
        adapter._owns_connection = True
        return adapter

    def init(self) -> None:
        """Create the bookkeeping table. Safe to call multiple times."""
        with self.conn.transaction():
            self.conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table_name} (
                    id uuid PRIMARY KEY,
                    description text,
                    applied_at timestamptz NOT NULL DEFAULT now()
                )
                """
            )

    def close(self) -> None:
        """Close the connection if this adapter opened it."""
        if self._owns_connection:
            self.conn.close()

    def fetch_applied(self) -> Set[UUID]:
        with self.conn.transaction():
            cursor = self.conn.execute(f"SELECT id FROM {self.table_name}")
            rows = cursor.fetchall()
        return {
            row[0] if isinstance(row[0], UUID) else UUID(str(row[0])) for row in rows
        }

    def apply(self, migration: Migration) -> None:
        with self.conn.transaction():
            migration.upgrade(self.conn)
            self.conn.execute(
                f"INSERT INTO {self.table_name} (id, description) VALUES (%s, %s)",
                (migration.id, migration.description),
            )
        logger.debug(f"Recorded migration {migration.id} in {self.table_name}")

    def revert(self, migration: Migration) -> None:
        with self.conn.transaction():
            migration.downgrade(self.conn)
            self.conn.execute(
                f"DELETE FROM {self.table_name} WHERE id = %s",
                (migration.id,),
            )
        logger.debug(f"Removed migration {migration.id} from {self.table_name}")
