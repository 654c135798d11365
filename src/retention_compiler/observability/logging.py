"""Structured logging setup for compiler runs.

Events are emitted with ``structlog`` as ``logger.info("event_name", key=value)``
and rendered either as JSON lines or as console text on stderr, so that stdout
stays reserved for command output.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any, Final

import structlog
from structlog.contextvars import merge_contextvars

from retention_compiler.constants import LOG_FORMATS

_DEFAULT_LEVEL: Final[str] = "INFO"


def configure_logging(
    level: int | str = _DEFAULT_LEVEL,
    *,
    log_format: str = "text",
    stream: IO[str] | None = None,
) -> None:
    """Configure structlog processors, level filtering and output format."""

    if log_format not in LOG_FORMATS:
        raise ValueError(
            f"unsupported log format {log_format!r}; expected one of: {', '.join(LOG_FORMATS)}"
        )
    numeric_level = _parse_log_level(level)
    output = stream if stream is not None else sys.stderr

    processors: list[Any] = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )


def configure_from_config(observability: dict[str, Any], *, stream: IO[str] | None = None) -> None:
    """Apply the ``[observability]`` section of an effective config."""

    configure_logging(
        observability.get("log_level", _DEFAULT_LEVEL),
        log_format=observability.get("log_format", "text"),
        stream=stream,
    )


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed
    raise ValueError(f"unsupported logging level {value!r}")


__all__ = ["configure_from_config", "configure_logging", "get_logger"]
