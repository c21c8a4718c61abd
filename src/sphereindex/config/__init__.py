"""
Configuration management for sphereindex.

This module provides Pydantic-based configuration schemas with support
for loading from TOML and YAML files.
"""

from sphereindex.config.schema import (
    Config,
    TessellationConfig,
    QueryConfig,
    LoggingConfig,
    LogLevel,
    AddressFormat,
)

__all__ = [
    "Config",
    "TessellationConfig",
    "QueryConfig",
    "LoggingConfig",
    "LogLevel",
    "AddressFormat",
]
