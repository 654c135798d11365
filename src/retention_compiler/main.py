"""Process entrypoint: runs the ``retain`` CLI and maps failures to exit codes."""

from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


class ExitCode(IntEnum):
    """Process exit codes of ``retain``."""

    SUCCESS = 0
    RESOLUTION_FAILED = 1
    INPUT_ERROR = 2
    INTERNAL_ERROR = 4


def cli_entrypoint(argv: Sequence[str] | None = None) -> int:
    """Run ``retain`` and return its exit code; never raises."""

    try:
        from retention_compiler.ui.cli import run_cli

        return _normalize_exit_code(run_cli(argv))
    except SystemExit as exc:
        return _normalize_exit_code(exc.code)
    except Exception as exc:  # noqa: BLE001 - process boundary.
        exit_code = _route_exception(exc)
        if exit_code is ExitCode.INTERNAL_ERROR:
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
        else:
            _write_stderr(str(exc).strip() or type(exc).__name__)
        return int(exit_code)


def script_entrypoint() -> None:
    """Console-script shim."""

    raise SystemExit(cli_entrypoint())


def _normalize_exit_code(raw_code: object) -> int:
    if raw_code is None:
        return int(ExitCode.SUCCESS)
    if isinstance(raw_code, int):
        return raw_code if raw_code in tuple(ExitCode) else int(ExitCode.INTERNAL_ERROR)
    if isinstance(raw_code, str) and raw_code.strip():
        _write_stderr(raw_code.strip())
    return int(ExitCode.INTERNAL_ERROR)


def _routing_table() -> tuple[tuple[tuple[type[BaseException], ...], ExitCode], ...]:
    from retention_compiler.config import ConfigLoadError, ConfigValidationError
    from retention_compiler.domain.errors import (
        AmbiguousConstraintError,
        ClassCompilationError,
        InheritanceKeyCollisionError,
        ResolutionError,
    )

    # Checked in order against each exception of the cause chain, outermost first.
    return (
        ((ClassCompilationError, ResolutionError), ExitCode.RESOLUTION_FAILED),
        ((InheritanceKeyCollisionError,), ExitCode.INTERNAL_ERROR),
        (
            (
                ConfigLoadError,
                ConfigValidationError,
                AmbiguousConstraintError,
                FileNotFoundError,
                NotADirectoryError,
                PermissionError,
                ValueError,
                LookupError,
            ),
            ExitCode.INPUT_ERROR,
        ),
    )


def _route_exception(exc: BaseException) -> ExitCode:
    table = _routing_table()
    for item in _exception_chain(exc):
        if isinstance(item, (KeyError, IndexError)):
            continue
        for kinds, exit_code in table:
            if isinstance(item, kinds):
                return exit_code
    return ExitCode.INTERNAL_ERROR


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def _write_stderr(message: str) -> None:
    sys.stderr.write(message.rstrip("\n") + "\n")


__all__ = ["ExitCode", "cli_entrypoint", "script_entrypoint"]
