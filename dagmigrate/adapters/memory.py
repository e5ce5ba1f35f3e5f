"""
dagmigrate - In-Memory Adapter.

Set-backed adapter for tests and dry experiments. Nothing is persisted
between processes.
"""

import logging
from typing import Any, Dict, Set
from uuid import UUID

from dagmigrate.migration import Migration

logger = logging.getLogger(__name__)


class InMemoryAdapter:
    """
    Adapter keeping the applied-state set in memory.

    Migrations receive `context` (default None) in upgrade()/downgrade().
    If an action raises, the applied set is left untouched.
    """

    def __init__(self, context: Any = None):
        self.context = context
        self._applied: Set[UUID] = set()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "InMemoryAdapter":
        options = config.get("adapter_options") or {}
        return cls(context=options.get("context"))

    def init(self) -> None:
        """Nothing to set up; present for interface parity."""
        pass

    def fetch_applied(self) -> Set[UUID]:
        return set(self._applied)

    def apply(self, migration: Migration) -> None:
        migration.upgrade(self.context)
        self._applied.add(migration.id)
        logger.debug(f"Recorded migration {migration.id} as applied")

    def revert(self, migration: Migration) -> None:
        migration.downgrade(self.context)
        self._applied.discard(migration.id)
        logger.debug(f"Removed migration {migration.id} from applied set")
