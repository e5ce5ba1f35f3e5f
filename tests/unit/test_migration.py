"""
Unit tests for dagmigrate migration descriptors.
"""

import dataclasses
from uuid import UUID

import pytest

from dagmigrate.migration import (
    Migration,
    MigrationDirection,
    SimpleMigration,
    as_uuid,
    as_uuid_set,
    migration,
)

ID_A = "bc960dc8-0e4a-4182-a62a-8e776d1e2b30"
ID_B = "4885e8ab-dafa-4d76-a565-2dee8b04ef60"


class TestIdNormalization:
    """Tests for id helpers."""

    def test_as_uuid_from_string(self):
        assert as_uuid(ID_A) == UUID(ID_A)

    def test_as_uuid_passthrough(self):
        value = UUID(ID_A)
        assert as_uuid(value) is value

    def test_as_uuid_invalid(self):
        with pytest.raises(ValueError):
            as_uuid("not-a-uuid")

    def test_as_uuid_set_collapses_duplicates(self):
        assert as_uuid_set([ID_A, UUID(ID_A), ID_B]) == frozenset(
            {UUID(ID_A), UUID(ID_B)}
        )

    def test_as_uuid_set_empty(self):
        assert as_uuid_set(None) == frozenset()
        assert as_uuid_set([]) == frozenset()

    def test_as_uuid_set_rejects_single_id(self):
        with pytest.raises(TypeError):
            as_uuid_set(ID_A)


class TestMigrationSubclass:
    """Tests for class-based migrations."""

    def test_class_attributes_normalized(self):
        class CreateUsers(Migration):
            id = ID_A
            description = "Create users"

        class AddEmail(Migration):
            id = ID_B
            dependencies = [ID_A]
            description = "Add email"

        assert CreateUsers.id == UUID(ID_A)
        assert CreateUsers.dependencies == frozenset()
        assert AddEmail().dependencies == frozenset({UUID(ID_A)})

    def test_default_actions_are_noops(self):
        class Noop(Migration):
            id = ID_A

        m = Noop()
        assert m.upgrade(object()) is None
        assert m.downgrade(object()) is None

    def test_actions_receive_context(self):
        calls = []

        class Recording(Migration):
            id = ID_A

            def upgrade(self, context):
                calls.append(("up", context))

            def downgrade(self, context):
                calls.append(("down", context))

        m = Recording()
        m.upgrade("conn")
        m.downgrade("conn")
        assert calls == [("up", "conn"), ("down", "conn")]

    def test_repr_includes_id(self):
        class Described(Migration):
            id = ID_A
            description = "Create users"

        assert ID_A in repr(Described())


class TestMigrationBuilder:
    """Tests for the migration() builder."""

    def test_builds_simple_migration(self):
        m = migration(ID_B, [ID_A], "Child migration")

        assert isinstance(m, SimpleMigration)
        assert isinstance(m, Migration)
        assert m.id == UUID(ID_B)
        assert m.dependencies == frozenset({UUID(ID_A)})
        assert m.description == "Child migration"

    def test_is_immutable(self):
        m = migration(ID_A)
        with pytest.raises(dataclasses.FrozenInstanceError):
            m.description = "changed"

    def test_callables_invoked(self):
        seen = []
        m = migration(
            ID_A,
            upgrade=lambda ctx: seen.append(("up", ctx)),
            downgrade=lambda ctx: seen.append(("down", ctx)),
        )
        m.upgrade(1)
        m.downgrade(2)
        assert seen == [("up", 1), ("down", 2)]

    def test_missing_callables_are_noops(self):
        m = migration(ID_A)
        m.upgrade(None)
        m.downgrade(None)

    def test_direct_construction_normalizes(self):
        m = SimpleMigration(id=ID_A, dependencies=[ID_B])
        assert m.id == UUID(ID_A)
        assert m.dependencies == frozenset({UUID(ID_B)})


class TestMigrationDirection:
    def test_values(self):
        assert MigrationDirection.UP.value == "up"
        assert MigrationDirection.DOWN.value == "down"
        assert MigrationDirection("up") is MigrationDirection.UP
