"""
retention-compiler — runtime config loader.

File: src/retention_compiler/config/loader.py
Last updated: 2026-10-17

Purpose
- Build the effective config from four layers: defaults, ``retention.toml``,
  ``RETENTION_<SECTION>_<NAME>`` env variables, and CLI overrides.

Functional requirements
- Precedence: CLI > env > file > defaults.
- Path settings are resolved relative to the config file's directory.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from retention_compiler.config.schema import (
    PATH_FIELDS,
    Setting,
    assert_valid_config,
    default_config,
    iter_settings,
    merge_config,
)
from retention_compiler.constants import DEFAULT_CONFIG_FILE, ENV_PREFIX

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSY: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with precedence CLI > env > file > defaults.

    Without ``config_path`` a ``retention.toml`` in the working directory is
    used when present. An explicit path that does not exist is an error. Env
    list values are comma separated; ``None`` CLI values leave lower layers in
    place.
    """

    if config_path is None:
        source = Path.cwd() / DEFAULT_CONFIG_FILE
    else:
        source = Path(config_path).expanduser()
    source = source.resolve()

    from_file = _read_toml(source, required=config_path is not None)
    config = assert_valid_config(merge_config(default_config(), from_file))

    config = merge_config(config, env_overrides(os.environ if environ is None else environ))
    config = merge_config(config, _cli_layer(cli_overrides or {}))
    config = normalize_paths(assert_valid_config(config), base_dir=source.parent)
    return assert_valid_config(config)


def env_variable(section: str, name: str) -> str:
    return f"{ENV_PREFIX}{section.upper()}_{name.upper()}"


def env_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, object]]:
    """Collect the settings overridden by environment variables."""

    layer: dict[str, dict[str, object]] = {}
    for section, name, setting in iter_settings():
        variable = env_variable(section, name)
        raw = environ.get(variable)
        if raw is not None:
            layer.setdefault(section, {})[name] = _parse_env_value(
                raw, setting, f"{variable} -> {section}.{name}"
            )
    return layer


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Resolve path settings against ``base_dir``; absolute paths stay as they are."""

    resolved = merge_config({}, config)
    for section, name in PATH_FIELDS:
        table = resolved.get(section)
        if not isinstance(table, dict):
            continue
        value = table.get(name)
        if isinstance(value, str):
            table[name] = _resolve_path(value, base_dir)
        elif isinstance(value, list):
            table[name] = [_resolve_path(item, base_dir) for item in value if isinstance(item, str)]
    return resolved


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Deterministic JSON dump of the effective config."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _read_toml(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.is_file():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _parse_env_value(raw: str, setting: Setting, origin: str) -> object:
    text = raw.strip()
    if setting.kind == "list":
        return [part.strip() for part in text.split(",") if part.strip()]
    if setting.kind == "int":
        try:
            return int(text)
        except ValueError as exc:
            raise ConfigLoadError(f"{origin} must be an integer") from exc
    if setting.kind == "bool":
        if text.lower() in _TRUTHY:
            return True
        if text.lower() in _FALSY:
            return False
        raise ConfigLoadError(f"{origin} must be a boolean (true/false/1/0/yes/no/on/off)")
    return text


def _cli_layer(cli_overrides: Mapping[str, object]) -> dict[str, dict[str, object]]:
    layer: dict[str, dict[str, object]] = {}
    for dotted, value in cli_overrides.items():
        if value is None:
            continue
        section, _, name = dotted.partition(".")
        if not section or not name or "." in name:
            raise ConfigLoadError(f"invalid CLI override key {dotted!r}; expected section.name")
        layer.setdefault(section, {})[name] = value
    return layer


def _resolve_path(raw: str, base_dir: Path) -> str:
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(candidate)).as_posix()


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ConfigLoadError",
    "dump_effective_config",
    "env_overrides",
    "env_variable",
    "load_config",
    "normalize_paths",
]
