"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import ConfigurationError, load_configuration, parse_configuration
from .runtime_settings import DEFAULT_MAX_DEPTH, GeneratorConfig

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "GeneratorConfig",
    "ConfigurationError",
    "load_configuration",
    "parse_configuration",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
