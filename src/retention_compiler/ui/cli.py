"""Command-line interface router for retention-compiler."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from retention_compiler.compiler import BatchResult, RetentionCompiler
from retention_compiler.config import dump_effective_config, load_config
from retention_compiler.domain.errors import ClassCompilationError
from retention_compiler.emission.accessor_emitter import AccessorEmitter
from retention_compiler.emission.java_renderer import JavaSourceRenderer
from retention_compiler.introspection.hierarchy import TypeHierarchy
from retention_compiler.introspection.symbol_table import SymbolTable
from retention_compiler.observability.logging import configure_from_config
from retention_compiler.registry.loader import RegistryBundle, load_registries
from retention_compiler.ui.render import CLIRenderer, create_renderer

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 2

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class Session:
    """Inputs shared by every command of one invocation."""

    config: dict[str, Any]
    symbols: SymbolTable
    registries: RegistryBundle
    compiler: RetentionCompiler


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="retain",
        description=(
            "retention-compiler — generate state retainers for annotated fields.\n\n"
            "Common workflows:\n"
            "  retain resolve              Show the strategy chosen for every field\n"
            "  retain emit                 Write retainer sources\n"
            "  retain check                Validate symbols, registries and config\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./retention.toml if present).",
    )
    common.add_argument(
        "--symbols",
        action="append",
        default=None,
        help="Symbol table file or directory; repeatable (overrides catalog.symbol_paths).",
    )
    common.add_argument(
        "--registry",
        action="append",
        default=None,
        help="Registry file or directory; repeatable (overrides registry.paths).",
    )
    common.add_argument("--key-prefix", default=None, help="Prefix for storage keys.")
    common.add_argument(
        "--key-style",
        choices=("qualified", "simple"),
        default=None,
        help="Storage key style.",
    )
    common.add_argument("--max-workers", type=int, default=None, help="Worker threads.")
    common.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default=None,
        help="Log level for structured logs on stderr.",
    )
    common.add_argument(
        "--log-format",
        choices=("json", "text"),
        default=None,
        help="Structured log format.",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show detailed output.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve",
        parents=[common],
        help="Resolve strategies for retained fields",
        description=(
            "Resolve every retained field of the given classes (default: all classes\n"
            "declaring retained fields) and print keys and strategies.\n\n"
            "Examples:\n"
            "  retain resolve --symbols symbols/\n"
            "  retain resolve com.example.MainActivity --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    resolve_parser.add_argument("classes", nargs="*", help="Target class names")
    resolve_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    resolve_parser.set_defaults(handler=_cmd_resolve)

    emit_parser = subparsers.add_parser(
        "emit",
        parents=[common],
        help="Write generated retainer sources",
        description=(
            "Compile the given classes and write one retainer source per class under\n"
            "the output directory, laid out by package.\n\n"
            "Examples:\n"
            "  retain emit --symbols symbols/ --output-dir build/generated\n"
            "  retain emit com.example.MainActivity --dry-run\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    emit_parser.add_argument("classes", nargs="*", help="Target class names")
    emit_parser.add_argument("--output-dir", default=None, help="Output directory.")
    emit_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print generated sources instead of writing files",
    )
    emit_parser.set_defaults(handler=_cmd_emit)

    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Validate inputs without compiling",
        description="Load config, symbol tables and registries and report what was found.",
    )
    check_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    check_parser.set_defaults(handler=_cmd_check)

    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration",
        description="Display the effective config after merging defaults, file, env, and flags.",
    )
    config_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_resolve(args: argparse.Namespace) -> int:
    session = _open_session(args)
    batch = _compile(session, args)

    if _flag(args, "json"):
        _emit_json({"command": "resolve", **_batch_payload(batch)})
        return 0 if batch.ok else 1

    renderer = _get_renderer(args)
    for plan in batch.plans:
        renderer.plan(plan)
    _render_failures(renderer, batch)
    return 0 if batch.ok else 1


def _cmd_emit(args: argparse.Namespace) -> int:
    session = _open_session(args)
    batch = _compile(session, args)
    renderer = _get_renderer(args)
    java = JavaSourceRenderer()

    output_dir = Path(
        getattr(args, "output_dir", None) or session.config["emission"]["output_dir"]
    )
    if output_dir.exists() and not output_dir.is_dir():
        raise CLIError(f"output path is not a directory: {output_dir}", exit_code=2)
    for plan in batch.plans:
        rendered = java.render(plan)
        if _flag(args, "dry_run"):
            renderer.section(f"// {rendered.file_name}")
            renderer.text(rendered.source.rstrip("\n"))
            continue
        package_dir = output_dir.joinpath(*plan.class_name.split(".")[:-1])
        package_dir.mkdir(parents=True, exist_ok=True)
        target = package_dir / rendered.file_name
        target.write_text(rendered.source, encoding="utf-8")
        logger.info("retainer_written", target=plan.class_name, path=target.as_posix())
        renderer.ok(target.as_posix())

    _render_failures(renderer, batch)
    return 0 if batch.ok else 1


def _cmd_check(args: argparse.Namespace) -> int:
    session = _open_session(args)
    targets = session.symbols.classes_with_retained_fields()
    payload: dict[str, object] = {
        "command": "check",
        "classes": len(session.symbols.class_names),
        "targets": list(targets),
        "converters": len(session.registries.converters),
        "templates": [item.name for item in session.registries.templates],
        "symbol_files": [path.as_posix() for path in session.symbols.source_files],
        "registry_files": [path.as_posix() for path in session.registries.source_files],
    }
    if _flag(args, "json"):
        _emit_json(payload)
        return 0

    renderer = _get_renderer(args)
    renderer.kv("Declared classes", len(session.symbols.class_names))
    renderer.kv("Target classes", len(targets))
    renderer.kv("Registered converters", len(session.registries.converters))
    renderer.kv("Templates", len(session.registries.templates))
    if renderer.verbose:
        renderer.section("Targets:")
        renderer.items(list(targets))
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    if _flag(args, "json"):
        _emit_json({"command": "config", "config": json.loads(dump_effective_config(config))})
        return 0
    _get_renderer(args).text(json.dumps(config, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _open_session(args: argparse.Namespace) -> Session:
    config = _load_effective_config(args)
    configure_from_config(config["observability"])

    catalog_config = config["catalog"]
    symbols = SymbolTable.load(
        catalog_config["symbol_paths"],
        include_platform=catalog_config["include_platform"],
    )
    hierarchy = TypeHierarchy(symbols)
    registries = load_registries(config["registry"]["paths"], arity=hierarchy.arity)
    compiler = RetentionCompiler(
        symbols,
        registries,
        framework_roots=catalog_config["framework_roots"],
        key_prefix=config["keys"]["prefix"],
        key_style=config["keys"]["style"],
        emitter=AccessorEmitter(bundle_variable=config["emission"]["bundle_variable"]),
    )
    logger.debug(
        "session_opened",
        classes=len(symbols.class_names),
        converters=len(registries.converters),
        templates=len(registries.templates),
    )
    return Session(config=config, symbols=symbols, registries=registries, compiler=compiler)


def _compile(session: Session, args: argparse.Namespace) -> BatchResult:
    requested = list(getattr(args, "classes", None) or ())
    unknown = [name for name in requested if not session.symbols.has_class(name)]
    if unknown:
        raise CLIError(f"unknown target class(es): {', '.join(unknown)}", exit_code=2)
    targets = requested or list(session.symbols.classes_with_retained_fields())
    return session.compiler.compile_many(
        targets, max_workers=session.config["compiler"]["max_workers"]
    )


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, object] = {
        "catalog.symbol_paths": _absolute_paths(getattr(args, "symbols", None)),
        "registry.paths": _absolute_paths(getattr(args, "registry", None)),
        "keys.prefix": getattr(args, "key_prefix", None),
        "keys.style": getattr(args, "key_style", None),
        "compiler.max_workers": getattr(args, "max_workers", None),
        "observability.log_level": getattr(args, "log_level", None),
        "observability.log_format": getattr(args, "log_format", None),
    }
    return load_config(getattr(args, "config_path", None), cli_overrides=overrides)


def _absolute_paths(values: Sequence[str] | None) -> list[str] | None:
    if not values:
        return None
    return [Path(item).expanduser().resolve().as_posix() for item in values]


def _batch_payload(batch: BatchResult) -> dict[str, object]:
    plans = [
        {
            "class": plan.class_name,
            "fields": [
                {
                    "field": item.descriptor.qualified_name,
                    "key": item.key.value,
                    "type": item.descriptor.binding.display,
                    "strategy": item.strategy.describe(),
                    "save": item.accessors.save.statement,
                    "restore": item.accessors.restore.statement,
                }
                for item in plan.fields
            ],
        }
        for plan in batch.plans
    ]
    failures = [
        {"class": item.class_name, "errors": _error_messages(item.error)}
        for item in batch.failures
    ]
    return {"plans": plans, "failures": failures}


def _render_failures(renderer: CLIRenderer, batch: BatchResult) -> None:
    if not batch.failures:
        return
    renderer.section("Failures:")
    for item in batch.failures:
        renderer.fail(item.class_name)
        renderer.items(_error_messages(item.error))


def _error_messages(error: Exception | None) -> list[str]:
    if error is None:
        return []
    if isinstance(error, ClassCompilationError):
        return [str(item) for item in error.errors]
    return [str(error)]


def _emit_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(verbose=_flag(args, "verbose"))


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
