"""
retention-compiler — configuration schema and validation.

File: src/retention_compiler/config/schema.py
Last updated: 2026-10-17

Purpose
- Describe every ``retention.toml`` setting once: kind, default, constraints.
- Validate a config payload against that table and report every problem as a
  structured issue (dotted path + message).

Functional requirements
- Unknown sections and settings are rejected; missing ones are reported.
- The same table drives defaults, env variable binding, and path normalization.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal

from retention_compiler.catalog.field_catalog import DEFAULT_FRAMEWORK_ROOTS
from retention_compiler.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OUTPUT_DIR,
    LOG_FORMATS,
    LOG_LEVELS,
)
from retention_compiler.domain import keys as domain_keys

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

ValueKind = Literal["str", "int", "bool", "list"]


@dataclass(frozen=True, slots=True)
class Setting:
    """Rule for one ``[section] name = value`` entry.

    ``check`` receives the coerced value (each item, for lists) and raises
    ``ValueError`` to reject it. ``is_path`` settings are resolved relative to
    the config file by the loader.
    """

    kind: ValueKind
    default: object
    choices: tuple[str, ...] = ()
    minimum: int | None = None
    check: Callable[[Any], object] | None = None
    allow_empty: bool = False
    is_path: bool = False


def _check_schema_version(value: int) -> None:
    if value != ConfigSchemaVersion:
        raise ValueError(migration_guidance(value))


def _check_bundle_variable(value: str) -> None:
    domain_keys.validate_identifier(value)
    if value == "target":
        raise ValueError("must differ from the target parameter name")


SCHEMA: Final[Mapping[str, Mapping[str, Setting]]] = {
    "meta": {
        "schema_version": Setting(
            "int", ConfigSchemaVersion, minimum=1, check=_check_schema_version
        ),
    },
    "registry": {
        "paths": Setting("list", (), is_path=True),
    },
    "catalog": {
        "symbol_paths": Setting("list", (), is_path=True),
        "include_platform": Setting("bool", True),
        "framework_roots": Setting(
            "list", DEFAULT_FRAMEWORK_ROOTS, check=domain_keys.validate_qualified_name
        ),
    },
    "keys": {
        "prefix": Setting("str", "", allow_empty=True, check=domain_keys.validate_key_prefix),
        "style": Setting("str", "qualified", choices=domain_keys.KEY_STYLES),
    },
    "emission": {
        "output_dir": Setting("str", DEFAULT_OUTPUT_DIR, is_path=True),
        "bundle_variable": Setting("str", "bundle", check=_check_bundle_variable),
    },
    "compiler": {
        "max_workers": Setting("int", DEFAULT_MAX_WORKERS, minimum=1),
    },
    "observability": {
        "log_level": Setting("str", "INFO", choices=LOG_LEVELS),
        "log_format": Setting("str", "text", choices=LOG_FORMATS),
    },
}

PATH_FIELDS: Final[tuple[tuple[str, str], ...]] = tuple(
    (section, name)
    for section, settings in SCHEMA.items()
    for name, setting in settings.items()
    if setting.is_path
)


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        lines = [f"- {issue.path}: {issue.message}" for issue in self.issues]
        super().__init__("invalid config:\n" + ("\n".join(lines) or "- <root>: rejected"))


def iter_settings() -> Iterator[tuple[str, str, Setting]]:
    """Yield ``(section, name, setting)`` in table order."""

    for section, settings in SCHEMA.items():
        for name, setting in settings.items():
            yield section, name, setting


def default_config() -> dict[str, dict[str, Any]]:
    """Fresh defaults; list settings are materialized as lists."""

    config: dict[str, dict[str, Any]] = {}
    for section, name, setting in iter_settings():
        default = setting.default
        if isinstance(default, tuple):
            default = list(default)
        config.setdefault(section, {})[name] = default
    return config


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade retention.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade retention-compiler"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Return ``base`` with ``overlay`` applied; tables merge, everything else replaces."""

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Check every section against ``SCHEMA``; issues come out in table order."""

    issues: list[ConfigValidationIssue] = []

    def report(path: str, message: str) -> None:
        issues.append(ConfigValidationIssue(path=path, message=message))

    if not isinstance(config, Mapping):
        report("<root>", f"expected table, got {type(config).__name__}")
        return ConfigValidationResult(config=None, issues=tuple(issues))

    for key in sorted(str(item) for item in config if item not in SCHEMA):
        report(key, "unknown section")

    normalized: dict[str, Any] = {}
    for section, settings in SCHEMA.items():
        table = config.get(section)
        if table is None:
            report(section, "missing required section")
            continue
        if not isinstance(table, Mapping):
            report(section, f"expected table, got {type(table).__name__}")
            continue
        for name in sorted(str(item) for item in table if item not in settings):
            report(f"{section}.{name}", "unknown field")
        values: dict[str, Any] = {}
        for name, setting in settings.items():
            path = f"{section}.{name}"
            if name not in table:
                report(path, "missing required field")
                continue
            value = _coerce_setting(table[name], setting, path, report)
            if value is not None:
                values[name] = value
        normalized[section] = values

    if issues:
        return ConfigValidationResult(config=None, issues=tuple(issues))
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


_Report = Callable[[str, str], None]


def _coerce_setting(value: object, setting: Setting, path: str, report: _Report) -> Any:
    if setting.kind == "list":
        if not isinstance(value, list):
            report(path, f"expected array, got {type(value).__name__}")
            return None
        items = [
            _coerce_scalar(item, setting, f"{path}[{index}]", report)
            for index, item in enumerate(value)
        ]
        return None if any(item is None for item in items) else items
    return _coerce_scalar(value, setting, path, report)


def _coerce_scalar(value: object, setting: Setting, path: str, report: _Report) -> Any:
    if setting.kind == "bool":
        if not isinstance(value, bool):
            report(path, f"expected boolean, got {type(value).__name__}")
            return None
        return value

    if setting.kind == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            report(path, f"expected integer, got {type(value).__name__}")
            return None
        if setting.minimum is not None and value < setting.minimum:
            report(path, f"must be >= {setting.minimum}")
            return None
        parsed: Any = value
    else:
        if not isinstance(value, str):
            report(path, f"expected string, got {type(value).__name__}")
            return None
        parsed = value if setting.allow_empty else value.strip()
        if not parsed and not setting.allow_empty:
            report(path, "must not be empty")
            return None
        if setting.choices and parsed not in setting.choices:
            expected = ", ".join(sorted(setting.choices))
            report(path, f"invalid value {parsed!r}; expected one of: {expected}")
            return None

    if setting.check is not None:
        try:
            setting.check(parsed)
        except ValueError as exc:
            report(path, str(exc))
            return None
    return parsed


__all__ = [
    "PATH_FIELDS",
    "SCHEMA",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "Setting",
    "ValueKind",
    "assert_valid_config",
    "default_config",
    "iter_settings",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
