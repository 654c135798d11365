"""Strict jinja2 handling of template save/restore snippets."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

from jinja2 import Environment, StrictUndefined, TemplateError, meta

SNIPPET_VARIABLES: Final[frozenset[str]] = frozenset(
    {
        "bundle",
        "key",
        "value",
        "target",
        "field",
        "type",
    }
)


class SnippetError(ValueError):
    """Raised when a snippet does not parse or uses variables outside the whitelist."""


_ENVIRONMENT: Final[Environment] = Environment(
    undefined=StrictUndefined,
    autoescape=False,
    trim_blocks=False,
    lstrip_blocks=False,
    newline_sequence="\n",
    keep_trailing_newline=False,
)


def snippet_variables(source: str) -> tuple[str, ...]:
    """Undeclared variables referenced by ``source`` in sorted order."""

    try:
        return tuple(sorted(meta.find_undeclared_variables(_ENVIRONMENT.parse(source))))
    except TemplateError as exc:
        raise SnippetError(f"invalid snippet: {exc.message or exc}") from exc


def validate_snippet(source: str) -> str:
    """Reject snippets that would fail when a field is emitted.

    Besides the variable whitelist, the snippet is rendered once with every
    variable bound to its own name, which surfaces unknown filters and
    attribute lookups that plain strings do not have.
    """

    unexpected = sorted(set(snippet_variables(source)) - SNIPPET_VARIABLES)
    if unexpected:
        raise SnippetError(
            "snippet uses variables not allowed by whitelist: " + ", ".join(unexpected)
        )
    _render(source, {name: name for name in SNIPPET_VARIABLES})
    return source


def render_snippet(source: str, variables: Mapping[str, str]) -> str:
    validate_snippet(source)
    return _render(source, variables)


def _render(source: str, variables: Mapping[str, str]) -> str:
    try:
        return _ENVIRONMENT.from_string(source).render(**variables).strip()
    except TemplateError as exc:
        raise SnippetError(f"snippet cannot be rendered: {exc.message or exc}") from exc
    except (TypeError, ValueError) as exc:
        raise SnippetError(f"snippet cannot be rendered: {exc}") from exc


__all__ = [
    "SNIPPET_VARIABLES",
    "SnippetError",
    "render_snippet",
    "snippet_variables",
    "validate_snippet",
]
