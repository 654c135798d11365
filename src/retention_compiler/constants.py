"""Stable constants shared across the compiler."""

from __future__ import annotations

from typing import Final

# Schema versions for persisted inputs.
CONFIG_SCHEMA_VERSION: Final[int] = 1

DEFAULT_CONFIG_FILE: Final[str] = "retention.toml"
ENV_PREFIX: Final[str] = "RETENTION_"

DEFAULT_OUTPUT_DIR: Final[str] = "generated"
DEFAULT_MAX_WORKERS: Final[int] = 4

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_OUTPUT_DIR",
    "ENV_PREFIX",
    "LOG_FORMATS",
    "LOG_LEVELS",
]
