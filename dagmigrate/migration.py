"""
dagmigrate - Migration Descriptors.

A migration is identified by a UUID, declares the set of migration ids it
depends on, and carries a human-readable description. Adapters call its
upgrade()/downgrade() actions with whatever execution context they provide
(a transaction, a connection, a directory, ...).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, FrozenSet, Iterable, Optional, Union
from uuid import UUID

MigrationId = Union[UUID, str]


def as_uuid(value: MigrationId) -> UUID:
    """Normalize a UUID or its string form to a UUID."""
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


def as_uuid_set(values: Optional[Iterable[MigrationId]]) -> FrozenSet[UUID]:
    """Normalize an iterable of ids to a frozenset of UUIDs."""
    if not values:
        return frozenset()
    if isinstance(values, (str, UUID)):
        raise TypeError("dependencies must be an iterable of ids, not a single id")
    return frozenset(as_uuid(v) for v in values)


class MigrationDirection(str, Enum):
    """Direction in which a migration is applied (UP) or reverted (DOWN)."""

    UP = "up"
    DOWN = "down"


class Migration:
    """
    Base class for migrations.

    Subclasses declare identity and dependencies as class attributes and
    override upgrade()/downgrade() with their forward and backward actions.
    Both actions default to no-ops.

    Example:
        class CreateUsers(Migration):
            id = "bc960dc8-0e4a-4182-a62a-8e776d1e2b30"
            dependencies = []
            description = "Create users table"

            def upgrade(self, connection):
                connection.execute("CREATE TABLE users (id INTEGER PRIMARY KEY)")

            def downgrade(self, connection):
                connection.execute("DROP TABLE users")

        class AddEmail(Migration):
            id = "4885e8ab-dafa-4d76-a565-2dee8b04ef60"
            dependencies = ["bc960dc8-0e4a-4182-a62a-8e776d1e2b30"]
            description = "Add email column to users"
    """

    id: UUID
    dependencies: FrozenSet[UUID] = frozenset()
    description: str = ""

    def __init_subclass__(cls, **kwargs):
        """Normalize declared ids to UUIDs."""
        super().__init_subclass__(**kwargs)

        # Only plain values declared on the subclass itself; dataclass fields
        # and properties are left alone
        declared_id = cls.__dict__.get("id")
        if isinstance(declared_id, (str, UUID)):
            cls.id = as_uuid(declared_id)
        declared_deps = cls.__dict__.get("dependencies")
        if isinstance(declared_deps, (list, tuple, set, frozenset)):
            cls.dependencies = as_uuid_set(declared_deps)

    def upgrade(self, context: Any) -> None:
        """
        Apply the migration.

        Args:
            context: Adapter-provided execution context
        """
        pass

    def downgrade(self, context: Any) -> None:
        """
        Revert the migration.

        Args:
            context: Adapter-provided execution context
        """
        pass

    def __repr__(self) -> str:
        return f"<Migration {self.id} {self.description!r}>"


@dataclass(frozen=True, repr=False)
class SimpleMigration(Migration):
    """Migration assembled from plain values and optional callables."""

    id: UUID
    dependencies: FrozenSet[UUID] = field(default_factory=frozenset)
    description: str = ""
    upgrade_fn: Optional[Callable[[Any], None]] = None
    downgrade_fn: Optional[Callable[[Any], None]] = None

    def __post_init__(self):
        object.__setattr__(self, "id", as_uuid(self.id))
        object.__setattr__(self, "dependencies", as_uuid_set(self.dependencies))

    def upgrade(self, context: Any) -> None:
        if self.upgrade_fn is not None:
            self.upgrade_fn(context)

    def downgrade(self, context: Any) -> None:
        if self.downgrade_fn is not None:
            self.downgrade_fn(context)


def migration(
    id: MigrationId,
    dependencies: Optional[Iterable[MigrationId]] = None,
    description: str = "",
    upgrade: Optional[Callable[[Any], None]] = None,
    downgrade: Optional[Callable[[Any], None]] = None,
) -> SimpleMigration:
    """
    Build a migration from its id, dependencies and description.

    Args:
        id: Migration UUID (or its string form)
        dependencies: Ids of migrations that must run first
        description: Human-readable description
        upgrade: Optional forward action, called with the adapter context
        downgrade: Optional backward action, called with the adapter context

    Returns:
        An immutable SimpleMigration

    Example:
        >>> parent = migration("bc960dc8-0e4a-4182-a62a-8e776d1e2b30",
        ...                    description="Parent migration in a DAG")
        >>> child = migration("4885e8ab-dafa-4d76-a565-2dee8b04ef60",
        ...                   [parent.id], "Child migration in a DAG")
        >>> parent.id in child.dependencies
        True
    """
    return SimpleMigration(
        id=as_uuid(id),
        dependencies=as_uuid_set(dependencies),
        description=description,
        upgrade_fn=upgrade,
        downgrade_fn=downgrade,
    )
