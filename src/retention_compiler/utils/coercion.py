"""
retention-compiler — coercion helpers for parsed YAML documents

File: src/retention_compiler/utils/coercion.py
Last updated: 2026-10-18

Purpose
- Check the shape of ``yaml.safe_load`` output (symbol tables, registries) and
  report problems with a dotted location path.

Functional requirements
- Every helper raises ``error`` (``ValueError`` or a subclass chosen by the
  caller) so each input kind keeps its own exception type.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import cast

import yaml

from retention_compiler.domain import keys as domain_keys

ErrorType = type[ValueError]


def read_yaml(path: Path, *, error: ErrorType = ValueError) -> object:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return cast("object", yaml.safe_load(handle))
    except yaml.YAMLError as exc:
        raise error(f"{path}: invalid YAML ({exc})") from exc


def as_string_key_mapping(
    value: object, path: str, *, error: ErrorType = ValueError
) -> dict[str, object]:
    if not isinstance(value, Mapping):
        raise error(f"{path}: expected object, got {type(value).__name__}")
    parsed: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise error(f"{path}: object keys must be strings, got {type(key).__name__}")
        parsed[key] = item
    return parsed


def as_list(value: object, path: str, *, error: ErrorType = ValueError) -> list[object]:
    """``None`` reads as an empty list; anything else must already be a list."""

    if value is None:
        return []
    if not isinstance(value, list):
        raise error(f"{path}: expected array, got {type(value).__name__}")
    return value


def check_fields(
    entry: Mapping[str, object],
    path: str,
    *,
    required: frozenset[str],
    allowed: frozenset[str],
    error: ErrorType = ValueError,
) -> None:
    missing = sorted(required - set(entry))
    if missing:
        raise error(f"{path}: missing required fields: {missing}")
    unknown = sorted(set(entry) - allowed)
    if unknown:
        raise error(f"{path}: unexpected fields: {unknown}; allowed fields: {sorted(allowed)}")


def coerce_non_empty_str(value: object, path: str, *, error: ErrorType = ValueError) -> str:
    if not isinstance(value, str):
        raise error(f"{path}: expected string, got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        raise error(f"{path}: must not be empty")
    return normalized


def coerce_bool(value: object, path: str, *, error: ErrorType = ValueError) -> bool:
    if not isinstance(value, bool):
        raise error(f"{path}: expected bool, got {type(value).__name__}")
    return value


def coerce_identifier(value: object, path: str, *, error: ErrorType = ValueError) -> str:
    parsed = coerce_non_empty_str(value, path, error=error)
    try:
        return domain_keys.validate_identifier(parsed)
    except ValueError as exc:
        raise error(f"{path}: {exc}") from exc


def coerce_qualified_name(value: object, path: str, *, error: ErrorType = ValueError) -> str:
    parsed = coerce_non_empty_str(value, path, error=error)
    try:
        return domain_keys.validate_qualified_name(parsed)
    except ValueError as exc:
        raise error(f"{path}: {exc}") from exc


__all__ = [
    "ErrorType",
    "as_list",
    "as_string_key_mapping",
    "check_fields",
    "coerce_bool",
    "coerce_identifier",
    "coerce_non_empty_str",
    "coerce_qualified_name",
    "read_yaml",
]
