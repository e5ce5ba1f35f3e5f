"""
dagmigrate - Dependency-ordered schema migrations.

Migrations declare which other migrations they depend on instead of taking
a place in a single linear sequence. The Migrator keeps them in a directed
acyclic graph and applies or reverts exactly the subset a request needs,
in one deterministic topological order.

    from dagmigrate import Migrator, migration
    from dagmigrate.adapters import SQLiteAdapter

    create_users = migration(
        "bc960dc8-0e4a-4182-a62a-8e776d1e2b30",
        description="Create users table",
        upgrade=lambda c: c.execute("CREATE TABLE users (id INTEGER PRIMARY KEY)"),
        downgrade=lambda c: c.execute("DROP TABLE users"),
    )

    adapter = SQLiteAdapter.from_path("app.db")
    adapter.init()
    migrator = Migrator(adapter)
    migrator.register(create_users)
    migrator.up()

Testing Support:
    For testing adapters and integrations, use the `dagmigrate.testing` module:

        from dagmigrate.testing import MockMigration, run_adapter_suite

    Available utilities:
    - MockMigration: No-op migration recording its calls
    - create_test_migration(), create_test_chain()
    - run_adapter_suite(): Generic scenarios every adapter must pass
"""

__version__ = "0.1.0"

from dagmigrate.adapters import (
    Adapter,
    AdapterFactory,
    FileBasedAdapter,
    InMemoryAdapter,
    PostgreSQLAdapter,
    SQLiteAdapter,
)
from dagmigrate.config import ConfigLoader
from dagmigrate.exceptions import (
    AdapterError,
    ConfigurationError,
    CycleError,
    DagMigrateError,
    DependencyError,
    DuplicateIdError,
    MigrationFailedError,
    MigratorError,
    UnknownIdError,
)
from dagmigrate.graph import DependencyGraph, NodeRef
from dagmigrate.migration import (
    Migration,
    MigrationDirection,
    SimpleMigration,
    migration,
)
from dagmigrate.migrator import Migrator

__all__ = [
    # Core
    "Migrator",
    "Migration",
    "MigrationDirection",
    "SimpleMigration",
    "migration",
    "DependencyGraph",
    "NodeRef",
    # Adapters
    "Adapter",
    "AdapterFactory",
    "InMemoryAdapter",
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    "FileBasedAdapter",
    # Configuration
    "ConfigLoader",
    # Exceptions
    "DagMigrateError",
    "ConfigurationError",
    "DependencyError",
    "DuplicateIdError",
    "UnknownIdError",
    "CycleError",
    "MigratorError",
    "AdapterError",
    "MigrationFailedError",
]
