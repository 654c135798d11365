"""Module entrypoint for ``python -m retention_compiler``."""

from __future__ import annotations

from retention_compiler.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
