"""dagmigrate configuration."""

from dagmigrate.config.loader import ConfigLoader

__all__ = ["ConfigLoader"]
