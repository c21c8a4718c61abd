"""
Pydantic configuration schemas for sphereindex.

This module defines the configuration classes using Pydantic v2 for
type-safe configuration management with validation and serialization.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Literal, Optional, Union
import warnings

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sphereindex.core.tessellation.address import MAX_DEPTH_64
from sphereindex.core.tessellation.index import MAX_ARENA_DEPTH

__all__ = [
    "TessellationConfig",
    "QueryConfig",
    "LoggingConfig",
    "Config",
    "LogLevel",
    "AddressFormat",
]

# Above this arena depth the node arena needs hundreds of megabytes
LARGE_ARENA_DEPTH = 9


class LogLevel(str, Enum):
    """Log levels accepted by the ``sphereindex`` logger."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class AddressFormat(str, Enum):
    """How addresses are printed."""

    DOTTED = "dotted"  # 5.2.1.3
    PACKED = "packed"  # Packed integer
    HEX = "hex"  # Packed integer in hexadecimal


class TessellationConfig(BaseModel):
    """Configuration for building the tessellation index."""

    model_config = ConfigDict(extra="forbid")

    depth: int = Field(
        default=8,
        ge=0,
        le=MAX_DEPTH_64,
        description="Number of levels below the root",
    )
    arena_depth: Optional[int] = Field(
        default=None,
        ge=1,
        le=MAX_ARENA_DEPTH,
        description="Levels stored in the node arena (default: min(depth, 8))",
    )
    parallel: bool = Field(
        default=False,
        description="Build the eight octant subtrees on a thread pool",
    )
    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Thread pool size (default: executor default)",
    )
    tolerance_factor: float = Field(
        default=1e-9,
        gt=0.0,
        lt=1e-3,
        description="Boundary tolerance as a fraction of a node's edge chord",
    )

    @field_validator("arena_depth")
    @classmethod
    def warn_large_arena(cls, v: Optional[int]) -> Optional[int]:
        """Warn when the arena would need a lot of memory."""
        if v is not None and v > LARGE_ARENA_DEPTH:
            warnings.warn(
                f"Arena depth {v} stores {8 * 4 ** (v - 1):,} leaf nodes; "
                "deeper levels are derived on demand without it",
                UserWarning,
                stacklevel=2,
            )
        return v

    @model_validator(mode="after")
    def check_arena_depth(self) -> "TessellationConfig":
        """The arena cannot be deeper than the index."""
        if self.arena_depth is not None and self.arena_depth > self.depth:
            raise ValueError(
                f"tessellation.arena_depth ({self.arena_depth}) exceeds "
                f"tessellation.depth ({self.depth})"
            )
        return self


class QueryConfig(BaseModel):
    """Configuration for point location and address output."""

    model_config = ConfigDict(extra="forbid")

    default_bits: Literal[32, 64] = Field(
        default=64,
        description="Packed address width",
    )
    default_depth: Optional[int] = Field(
        default=None,
        ge=0,
        description="Depth used by locate when none is given (default: index depth)",
    )
    address_format: AddressFormat = Field(
        default=AddressFormat.DOTTED,
        description="How addresses are printed",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(extra="forbid")

    level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Log level of the sphereindex logger",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="logging.Formatter format string",
    )

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: Any) -> Any:
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v


class Config(BaseModel):
    """
    Main configuration class for sphereindex.

    Example:
        >>> config = Config.from_toml("sphereindex.toml")
        >>> config = Config(
        ...     tessellation=TessellationConfig(depth=10, parallel=True),
        ...     query=QueryConfig(default_bits=32),
        ... )
    """

    model_config = ConfigDict(extra="forbid")

    tessellation: TessellationConfig = Field(
        default_factory=TessellationConfig,
        description="Tessellation configuration",
    )
    query: QueryConfig = Field(
        default_factory=QueryConfig,
        description="Query configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    @model_validator(mode="after")
    def validate_query_depth(self) -> "Config":
        """Ensure the default query depth exists in the index."""
        depth = self.query.default_depth
        if depth is not None and depth > self.tessellation.depth:
            raise ValueError(
                f"query.default_depth ({depth}) exceeds tessellation.depth ({self.tessellation.depth})"
            )
        return self

    @classmethod
    def from_toml(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from TOML file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance
        """
        import sys

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        # Use tomli for Python < 3.11, tomllib for >= 3.11
        if sys.version_info >= (3, 11):
            import tomllib

            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """
        Load configuration from file (auto-detect format).

        Args:
            path: Path to configuration file (.toml or .yaml/.yml)

        Returns:
            Config instance
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == ".toml":
            return cls.from_toml(path)
        elif suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        else:
            raise ValueError(f"Unsupported config format: {suffix}")

    def to_toml(self, path: Union[str, Path]) -> None:
        """
        Save configuration to TOML file.

        Args:
            path: Output path
        """
        import tomli_w

        path = Path(path)
        # TOML has no null; unset optional fields are omitted
        data = _drop_none(self.model_dump(mode="json"))

        with open(path, "wb") as f:
            tomli_w.dump(data, f)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """
        Save configuration to YAML file.

        Args:
            path: Output path
        """
        import yaml

        path = Path(path)
        data = self.model_dump(mode="json")

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _drop_none(obj: Any) -> Any:
    """Recursively remove None values from dicts for serialization."""
    if isinstance(obj, dict):
        return {k: _drop_none(v) for k, v in obj.items() if v is not None}
    elif isinstance(obj, list):
        return [_drop_none(v) for v in obj]
    return obj
