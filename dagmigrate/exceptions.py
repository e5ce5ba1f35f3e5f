"""
dagmigrate Exception Hierarchy.

Two families of errors are raised by the orchestrator:

- DependencyError: migration definition problems (duplicate ids, unknown
  dependencies, cycles). Detected before any storage interaction and never
  worth retrying.
- MigratorError: runtime failures while running up/down against an adapter.
"""

from typing import TYPE_CHECKING, Optional
from uuid import UUID

if TYPE_CHECKING:
    from dagmigrate.migration import MigrationDirection


class DagMigrateError(Exception):
    """Base exception for all dagmigrate errors."""

    pass


class ConfigurationError(DagMigrateError):
    """Raised when configuration is invalid or missing."""

    pass


class DependencyError(DagMigrateError):
    """Raised when migration identity or dependency definitions are invalid."""

    pass


class DuplicateIdError(DependencyError):
    """A migration with the same id is already registered."""

    def __init__(self, migration_id: UUID):
        self.migration_id = migration_id
        super().__init__(f"Duplicate migration ID {migration_id}")


class UnknownIdError(DependencyError):
    """A referenced migration id has not been registered."""

    def __init__(self, migration_id: UUID):
        self.migration_id = migration_id
        super().__init__(f"Unknown migration ID {migration_id}")


class CycleError(DependencyError):
    """Adding the dependency edge from_id -> to_id would create a cycle."""

    def __init__(self, from_id: UUID, to_id: UUID):
        self.from_id = from_id
        self.to_id = to_id
        super().__init__(
            f"Cyclic dependency caused by edge from migration IDs {from_id} to {to_id}"
        )


class MigratorError(DagMigrateError):
    """Raised when applying or reverting migrations fails at runtime."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class AdapterError(MigratorError):
    """The adapter failed outside of a specific migration (e.g. reading state)."""

    def __init__(self, cause: BaseException):
        super().__init__(
            f"An error occurred while interacting with the adapter: {cause}",
            cause=cause,
        )


class MigrationFailedError(MigratorError):
    """
    A single migration failed while being applied or reverted.

    Everything before it in the same run completed; nothing after it was
    attempted.

    Attributes:
        migration_id: Id of the failing migration
        description: Its human-readable description
        direction: MigrationDirection.UP or MigrationDirection.DOWN
        error: The exception raised by the adapter
    """

    def __init__(
        self,
        migration_id: UUID,
        description: str,
        direction: "MigrationDirection",
        error: BaseException,
    ):
        self.migration_id = migration_id
        self.description = description
        self.direction = direction
        self.error = error
        verb = "reverting" if direction.value == "down" else "applying"
        super().__init__(
            f"An error occurred while {verb} migration {migration_id} "
            f"({description}): {error}.",
            cause=error,
        )
