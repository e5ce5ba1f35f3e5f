"""
Unit tests for the file-based adapter.
"""

import json
from uuid import UUID

import pytest

from dagmigrate.adapters.file_based import STATE_FILE_NAME, FileBasedAdapter
from dagmigrate.exceptions import AdapterError
from dagmigrate.migration import migration
from dagmigrate.migrator import Migrator
from dagmigrate.observability.metrics import MigrationMetrics

ID_A = "bc960dc8-0e4a-4182-a62a-8e776d1e2b30"
ID_B = "4885e8ab-dafa-4d76-a565-2dee8b04ef60"


class TestFileBasedAdapter:
    """Tests for FileBasedAdapter."""

    def test_init_creates_state_file(self, tmp_path):
        adapter = FileBasedAdapter(tmp_path / "nested" / "state")
        adapter.init()

        state_file = tmp_path / "nested" / "state" / STATE_FILE_NAME
        assert state_file.exists()
        assert json.loads(state_file.read_text()) == []

    def test_init_keeps_existing_records(self, file_adapter):
        file_adapter.apply(migration(ID_A))
        file_adapter.init()
        assert file_adapter.fetch_applied() == {UUID(ID_A)}

    def test_missing_file_means_nothing_applied(self, tmp_path):
        assert FileBasedAdapter(tmp_path / "never").fetch_applied() == set()

    def test_apply_passes_directory_and_records(self, file_adapter):
        def upgrade(storage_dir):
            (storage_dir / "data.txt").write_text("v1")

        file_adapter.apply(migration(ID_A, description="Seed data", upgrade=upgrade))

        assert (file_adapter.storage_dir / "data.txt").read_text() == "v1"
        records = json.loads(file_adapter.state_file.read_text())
        assert records[0]["id"] == ID_A
        assert records[0]["description"] == "Seed data"
        assert "applied_at" in records[0]

    def test_revert_removes_record(self, file_adapter):
        m = migration(ID_A)
        file_adapter.apply(m)
        file_adapter.apply(migration(ID_B))
        file_adapter.revert(m)
        assert file_adapter.fetch_applied() == {UUID(ID_B)}

    def test_failed_upgrade_not_recorded(self, file_adapter):
        def upgrade(storage_dir):
            raise OSError("read-only")

        with pytest.raises(OSError):
            file_adapter.apply(migration(ID_A, upgrade=upgrade))
        assert file_adapter.fetch_applied() == set()

    def test_no_temp_files_left(self, file_adapter):
        file_adapter.apply(migration(ID_A))
        leftovers = [p.name for p in file_adapter.storage_dir.iterdir()]
        assert leftovers == [STATE_FILE_NAME]

    def test_from_config(self, tmp_path):
        adapter = FileBasedAdapter.from_config(
            {"adapter_options": {"storage_dir": str(tmp_path / "cfg")}}
        )
        assert adapter.storage_dir == tmp_path / "cfg"

    def test_corrupt_state_surfaces_as_adapter_error(self, file_adapter):
        file_adapter.state_file.write_text("{not json")
        migrator = Migrator(file_adapter, metrics=MigrationMetrics())
        migrator.register(migration(ID_A))

        with pytest.raises(AdapterError):
            migrator.up()

    def test_state_shared_between_instances(self, tmp_path):
        first = FileBasedAdapter(tmp_path)
        first.init()
        first.apply(migration(ID_A))

        second = FileBasedAdapter(tmp_path)
        assert second.fetch_applied() == {UUID(ID_A)}
