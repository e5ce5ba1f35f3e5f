"""
dagmigrate Testing Module.

Provides reusable test utilities for dagmigrate adapters and integrations:

- MockMigration: No-op migration that records its calls (and can fail)
- Factory functions: Create test migrations with sensible defaults
- Adapter suite: Generic scenarios every adapter must pass

Example usage:
    >>> from dagmigrate.adapters import InMemoryAdapter
    >>> from dagmigrate.testing import run_adapter_suite
    >>>
    >>> def test_in_memory_adapter():
    ...     run_adapter_suite(InMemoryAdapter)
"""

from dagmigrate.testing.factories import create_test_chain, create_test_migration
from dagmigrate.testing.mocks import MigrationActionError, MockMigration
from dagmigrate.testing.suite import (
    ADAPTER_SUITE,
    SCENARIO_IDS,
    run_adapter_suite,
    run_branching_dag,
    run_migration_chain,
    run_multi_component_dag,
    run_single_migration,
)

__all__ = [
    # Mocks
    "MockMigration",
    "MigrationActionError",
    # Factories
    "create_test_migration",
    "create_test_chain",
    # Adapter suite
    "ADAPTER_SUITE",
    "SCENARIO_IDS",
    "run_adapter_suite",
    "run_single_migration",
    "run_migration_chain",
    "run_multi_component_dag",
    "run_branching_dag",
]
