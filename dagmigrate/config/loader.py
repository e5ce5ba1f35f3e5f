"""
dagmigrate Configuration Loader.

Loads configuration from YAML files with ${ENV_VAR} expansion.

Example config.yaml:

    dagmigrate:
      adapter: postgresql
      adapter_options:
        dsn: ${DATABASE_URL}
      table_name: _dagmigrate
      migrations_module: myapp.migrations
      logging:
        level: INFO
        format: json
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict

import yaml

from dagmigrate.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SECTION = "dagmigrate"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

_DEFAULTS: Dict[str, Any] = {
    "adapter": "sqlite",
    "adapter_options": {"db_path": "dagmigrate.db"},
    "table_name": "_dagmigrate",
    "migrations_module": None,
    "logging": {"level": "INFO", "format": "text"},
}


class ConfigLoader:
    """Loads dagmigrate configuration from YAML with environment expansion."""

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a YAML file.

        Missing keys are filled from the defaults. A missing or empty file
        yields the defaults.

        Args:
            config_path: Path to config.yaml

        Returns:
            Parsed and expanded configuration dict

        Raises:
            ConfigurationError: If the file is not valid YAML or not a mapping
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config not found at {config_path}, using defaults")
            return cls._get_defaults()

        try:
            with open(path, "r") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if raw_config is None:
            logger.warning(f"Config file {config_path} is empty, using defaults")
            return cls._get_defaults()

        if not isinstance(raw_config, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping, "
                f"got {type(raw_config).__name__}"
            )

        config = raw_config.get(SECTION, raw_config)
        if not isinstance(config, dict):
            raise ConfigurationError(f"'{SECTION}' section must be a mapping")

        merged = cls._merge(cls._get_defaults(), config)
        return cls._expand_config(merged)

    @classmethod
    def _merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge override into base; nested mappings are merged key by key."""
        result = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                # Adapter options are replaced wholesale, not merged
                if key == "adapter_options":
                    result[key] = dict(value)
                else:
                    result[key] = cls._merge(result[key], value)
            else:
                result[key] = value
        return result

    @classmethod
    def _expand_config(cls, config: Any) -> Any:
        """Recursively expand environment variables in config values."""
        if isinstance(config, dict):
            return {k: cls._expand_config(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [cls._expand_config(item) for item in config]
        elif isinstance(config, str):
            return cls._expand_value(config)
        return config

    @staticmethod
    def _expand_value(value: str) -> str:
        """Replace ${VAR} with os.environ["VAR"]; unknown variables are kept."""
        if "${" not in value:
            return value

        def replace(match: "re.Match[str]") -> str:
            name = match.group(1)
            env_value = os.environ.get(name)
            if env_value is None:
                logger.warning(f"Environment variable {name} not set")
                return match.group(0)
            return env_value

        return _ENV_PATTERN.sub(replace, value)

    @staticmethod
    def _get_defaults() -> Dict[str, Any]:
        """Return a fresh copy of the default configuration."""
        return copy.deepcopy(_DEFAULTS)

    @classmethod
    def save(cls, config: Dict[str, Any], config_path: str) -> None:
        """
        Save configuration to a YAML file under the `dagmigrate` section.

        ${VAR} references should be kept unexpanded in the dict passed here.
        """
        path = Path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.safe_dump({SECTION: config}, f, default_flow_style=False)
