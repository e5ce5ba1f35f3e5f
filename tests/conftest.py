"""
dagmigrate Shared Test Fixtures.

The fixtures follow a layered approach:
1. Adapters (in-memory, SQLite, file-based)
2. Migrators wired to those adapters
3. Migration sets (chain, branching DAG, disjoint components)
"""

import sqlite3
from pathlib import Path
from typing import Dict, Generator, List

import pytest

from dagmigrate.adapters.file_based import FileBasedAdapter
from dagmigrate.adapters.memory import InMemoryAdapter
from dagmigrate.adapters.sqlite import SQLiteAdapter
from dagmigrate.migrator import Migrator
from dagmigrate.observability.metrics import MigrationMetrics
from dagmigrate.testing import SCENARIO_IDS, MockMigration

# =============================================================================
# Adapter Fixtures
# =============================================================================


@pytest.fixture
def memory_adapter() -> InMemoryAdapter:
    """Fresh in-memory adapter."""
    adapter = InMemoryAdapter()
    adapter.init()
    return adapter


@pytest.fixture
def sqlite_conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory SQLite connection."""
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def sqlite_adapter(sqlite_conn: sqlite3.Connection) -> SQLiteAdapter:
    """SQLite adapter with its bookkeeping table created."""
    adapter = SQLiteAdapter(sqlite_conn)
    adapter.init()
    return adapter


@pytest.fixture
def file_adapter(tmp_path: Path) -> FileBasedAdapter:
    """File-based adapter in a temporary directory."""
    adapter = FileBasedAdapter(tmp_path / "state")
    adapter.init()
    return adapter


# =============================================================================
# Migrator Fixtures
# =============================================================================


@pytest.fixture
def migrator(memory_adapter: InMemoryAdapter) -> Migrator:
    """Migrator over the in-memory adapter."""
    return Migrator(memory_adapter, metrics=MigrationMetrics())


# =============================================================================
# Migration Sets
# =============================================================================


@pytest.fixture
def chain() -> List[MockMigration]:
    """A <- B <- C."""
    a = MockMigration(SCENARIO_IDS[0], description="A")
    b = MockMigration(SCENARIO_IDS[1], [a.id], description="B")
    c = MockMigration(SCENARIO_IDS[2], [b.id], description="C")
    return [a, b, c]


@pytest.fixture
def branching_dag() -> Dict[str, MockMigration]:
    """A, B; C depends on A and B; D and E depend on C."""
    a = MockMigration(SCENARIO_IDS[0], description="A")
    b = MockMigration(SCENARIO_IDS[1], description="B")
    c = MockMigration(SCENARIO_IDS[2], [a.id, b.id], description="C")
    d = MockMigration(SCENARIO_IDS[3], [c.id], description="D")
    e = MockMigration(SCENARIO_IDS[4], [c.id], description="E")
    return {"A": a, "B": b, "C": c, "D": d, "E": e}
