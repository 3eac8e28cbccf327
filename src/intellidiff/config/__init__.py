"""Configuration loading, schema, and defaults."""

from intellidiff.config.loader import ConfigError, load_config
from intellidiff.config.schema import IntellidiffConfig

__all__ = [
    "ConfigError",
    "IntellidiffConfig",
    "load_config",
]
