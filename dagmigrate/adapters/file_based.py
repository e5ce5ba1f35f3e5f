"""
dagmigrate - File-Based Adapter.

Tracks applied migrations in a JSON file inside a storage directory. Useful
for file-backed stores where the migrations themselves rewrite files.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Set, Union
from uuid import UUID

from dagmigrate.migration import Migration

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "_dagmigrate.json"


class FileBasedAdapter:
    """
    Adapter keeping the applied-state records in `<storage_dir>/_dagmigrate.json`.

    Migrations receive the storage directory (a Path) as their context. The
    record is only rewritten once upgrade()/downgrade() has returned, and the
    rewrite replaces the file atomically. Changes a failed migration made to
    other files in the directory are not undone.
    """

    def __init__(self, storage_dir: Union[str, Path]):
        """
        Initialize file-based adapter.

        Args:
            storage_dir: Directory holding the state file
        """
        self.storage_dir = Path(storage_dir)
        self.state_file = self.storage_dir / STATE_FILE_NAME

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "FileBasedAdapter":
        """Create from a loaded config (`adapter_options.storage_dir`)."""
        options = config.get("adapter_options") or {}
        return cls(options.get("storage_dir", ".dagmigrate"))

    def init(self) -> None:
        """Create the storage directory and an empty state file if missing."""
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        if not self.state_file.exists():
            self._write_records([])

    def _read_records(self) -> List[Dict[str, Any]]:
        """Read records; a missing file means nothing has been applied."""
        try:
            with open(self.state_file, "r") as f:
                return json.load(f)
        except FileNotFoundError:
            return []

    def _write_records(self, records: List[Dict[str, Any]]) -> None:
        """Write records to a temp file and move it over the state file."""
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.storage_dir, prefix=".dagmigrate-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(records, f, indent=2)
            os.replace(tmp_path, self.state_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def fetch_applied(self) -> Set[UUID]:
        return {UUID(record["id"]) for record in self._read_records()}

    def apply(self, migration: Migration) -> None:
        migration.upgrade(self.storage_dir)

        records = [r for r in self._read_records() if r["id"] != str(migration.id)]
        records.append(
            {
                "id": str(migration.id),
                "description": migration.description,
                "applied_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        self._write_records(records)
        logger.debug(f"Recorded migration {migration.id} in {self.state_file}")

    def revert(self, migration: Migration) -> None:
        migration.downgrade(self.storage_dir)

        records = [r for r in self._read_records() if r["id"] != str(migration.id)]
        self._write_records(records)
        logger.debug(f"Removed migration {migration.id} from {self.state_file}")
