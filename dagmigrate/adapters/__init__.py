"""
dagmigrate Adapters.

Backends that persist applied-migration state and run migration actions.
"""

from dagmigrate.adapters.base import DEFAULT_TABLE_NAME, Adapter
from dagmigrate.adapters.factory import AdapterFactory
from dagmigrate.adapters.file_based import FileBasedAdapter
from dagmigrate.adapters.memory import InMemoryAdapter
from dagmigrate.adapters.postgresql import PostgreSQLAdapter
from dagmigrate.adapters.sqlite import SQLiteAdapter

__all__ = [
    "Adapter",
    "AdapterFactory",
    "DEFAULT_TABLE_NAME",
    "FileBasedAdapter",
    "InMemoryAdapter",
    "PostgreSQLAdapter",
    "SQLiteAdapter",
]
