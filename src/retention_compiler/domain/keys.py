"""Storage key derivation and validation."""

from __future__ import annotations

import re
from typing import Final

from retention_compiler.domain.models import StorageKey

KEY_STYLES: Final[tuple[str, ...]] = ("qualified", "simple")

_IDENTIFIER_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_QUALIFIED_RE: Final[re.Pattern[str]] = re.compile(
    r"^[A-Za-z_$][A-Za-z0-9_$]*(?:\.[A-Za-z_$][A-Za-z0-9_$]*)*$"
)
_PREFIX_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_.:$-]*$")


def validate_identifier(value: str) -> str:
    if not _IDENTIFIER_RE.fullmatch(value):
        raise ValueError(f"invalid identifier: {value!r}")
    return value


def validate_qualified_name(value: str) -> str:
    if not _QUALIFIED_RE.fullmatch(value):
        raise ValueError(f"invalid qualified name: {value!r}")
    return value


def validate_key_prefix(value: str) -> str:
    if not _PREFIX_RE.fullmatch(value):
        raise ValueError(f"invalid key prefix: {value!r}")
    return value


def derive_storage_key(
    owner: str,
    field_name: str,
    *,
    prefix: str = "",
    style: str = "qualified",
) -> StorageKey:
    """Derive the key a field is saved under.

    The owner identity is always part of the key, so a subclass field that
    hides an ancestor field of the same name gets its own slot. ``qualified``
    keys read ``com.example.Base.count``; ``simple`` keys read ``Base$count``
    and are shorter but rely on simple class names being unique within one
    hierarchy.
    """

    validate_qualified_name(owner)
    validate_identifier(field_name)
    validate_key_prefix(prefix)

    if style == "qualified":
        body = f"{owner}.{field_name}"
    elif style == "simple":
        body = f"{owner.rsplit('.', 1)[-1]}${field_name}"
    else:
        allowed = ", ".join(KEY_STYLES)
        raise ValueError(f"invalid key style {style!r}; expected one of: {allowed}")

    return StorageKey(value=f"{prefix}{body}", owner=owner, field_name=field_name)


__all__ = [
    "KEY_STYLES",
    "derive_storage_key",
    "validate_identifier",
    "validate_key_prefix",
    "validate_qualified_name",
]
