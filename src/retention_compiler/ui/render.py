"""Plain-text rendering of plans and summaries for the ``retain`` CLI."""

from __future__ import annotations

import sys
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from retention_compiler.domain.models import ClassPlan

_INDENT = "  "
_GAP = "  "


def format_columns(rows: Sequence[Sequence[object]]) -> list[str]:
    """Left-align ``rows`` into columns as wide as their widest cell."""

    cells = [[str(cell) for cell in row] for row in rows]
    widths: dict[int, int] = {}
    for row in cells:
        for index, cell in enumerate(row):
            widths[index] = max(widths.get(index, 0), len(cell))
    return [
        _GAP.join(cell.ljust(widths[index]) for index, cell in enumerate(row)).rstrip()
        for row in cells
    ]


class CLIRenderer:
    """Writes human-readable CLI output; ``--json`` output bypasses it."""

    def __init__(self, *, verbose: bool = False, stream: IO[str] | None = None) -> None:
        self.verbose = verbose
        self._stream = stream

    def _write(self, line: str = "") -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(line + "\n")

    def text(self, line: str) -> None:
        self._write(line)

    def kv(self, key: str, value: object) -> None:
        self._write(f"{key}: {value}")

    def section(self, title: str) -> None:
        self._write()
        self._write(title)

    def items(self, entries: Iterable[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            self._write(f"{_INDENT}{prefix}{entry}")

    def plan(self, plan: ClassPlan) -> None:
        """One row per storage key: key, declared type, strategy."""

        if plan.is_empty:
            self.section(f"{plan.class_name}: no retained fields")
            return
        self.section(f"{plan.class_name}:")
        header = ("KEY", "TYPE", "STRATEGY")
        rows = [
            (item.key.value, item.descriptor.binding.display, item.strategy.describe())
            for item in plan.fields
        ]
        rule = tuple("-" * max(len(str(row[i])) for row in (header, *rows)) for i in range(3))
        for line in format_columns([header, rule, *rows]):
            self._write(_INDENT + line)
        if self.verbose:
            for item in plan.fields:
                self._write(f"{_INDENT}save:    {item.accessors.save.statement}")
                self._write(f"{_INDENT}restore: {item.accessors.restore.statement}")

    def ok(self, label: str) -> None:
        self._write(f"{_INDENT}OK  {label}")

    def fail(self, label: str) -> None:
        self._write(f"{_INDENT}FAIL  {label}")


def create_renderer(*, verbose: bool = False) -> CLIRenderer:
    return CLIRenderer(verbose=verbose)


__all__ = ["CLIRenderer", "create_renderer", "format_columns"]
