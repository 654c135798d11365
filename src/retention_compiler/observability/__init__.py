"""Observability helpers: structured logging configuration."""

from retention_compiler.observability.logging import (
    configure_from_config,
    configure_logging,
    get_logger,
)

__all__ = ["configure_from_config", "configure_logging", "get_logger"]
