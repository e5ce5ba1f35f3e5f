"""
Adapter Factory - Decouples adapter selection from implementation.

Built-in adapters register themselves on import. Each registered class
provides a `from_config(config)` classmethod taking a loaded configuration
dict (see dagmigrate.config.ConfigLoader).
"""

import logging
from typing import Any, Dict, List, Optional, Type

from dagmigrate.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class AdapterFactory:
    """Factory for creating migration adapter instances."""

    _adapters: Dict[str, Type[Any]] = {}

    @classmethod
    def register(cls, name: str, adapter_class: Type[Any]) -> None:
        """Register an adapter type under a config name."""
        if not hasattr(adapter_class, "from_config"):
            raise TypeError(
                f"{adapter_class.__name__} must define a from_config() classmethod"
            )
        cls._adapters[name] = adapter_class
        logger.debug(f"Registered migration adapter: {name}")

    @classmethod
    def create(
        cls,
        adapter_type: str,
        table_name: Optional[str] = None,
        **options: Any,
    ) -> Any:
        """
        Create an adapter instance.

        Args:
            adapter_type: Registered name (memory, sqlite, postgresql, file, ...)
            table_name: Bookkeeping table name, for SQL adapters
            **options: Adapter-specific options (db_path, dsn, storage_dir, ...)

        Returns:
            Adapter instance

        Raises:
            ConfigurationError: If adapter type is not registered
        """
        return cls.create_from_config(
            {
                "adapter": adapter_type,
                "adapter_options": options,
                "table_name": table_name,
            }
        )

    @classmethod
    def create_from_config(cls, config: Dict[str, Any]) -> Any:
        """
        Create the adapter named by `config["adapter"]`.

        Raises:
            ConfigurationError: If the adapter is missing or not registered
        """
        adapter_type = config.get("adapter")
        if not adapter_type:
            raise ConfigurationError("No adapter configured")

        if adapter_type not in cls._adapters:
            available = cls.get_available_adapters()
            raise ConfigurationError(
                f"Unknown adapter type: {adapter_type}. Available: {available}"
            )

        adapter_class = cls._adapters[adapter_type]
        logger.debug(f"Creating {adapter_type} adapter ({adapter_class.__name__})")
        return adapter_class.from_config(config)

    @classmethod
    def get_available_adapters(cls) -> List[str]:
        """Get list of registered adapter types."""
        return list(cls._adapters.keys())


def _register_adapters() -> None:
    """Register the built-in adapters."""
    from dagmigrate.adapters.file_based import FileBasedAdapter
    from dagmigrate.adapters.memory import InMemoryAdapter
    from dagmigrate.adapters.postgresql import PostgreSQLAdapter
    from dagmigrate.adapters.sqlite import SQLiteAdapter

    AdapterFactory.register("memory", InMemoryAdapter)
    AdapterFactory.register("sqlite", SQLiteAdapter)
    AdapterFactory.register("postgresql", PostgreSQLAdapter)
    AdapterFactory.register("file", FileBasedAdapter)


# Auto-register on import
_register_adapters()
