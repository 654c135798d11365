"""Parser for textual type expressions such as ``java.util.ArrayList<? extends T>``."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Final

from retention_compiler.domain.errors import TypeSyntaxError
from retention_compiler.domain.models import Bound, TypeArgument, TypeBinding, WildcardBinding

PRIMITIVE_NAMES: Final[frozenset[str]] = frozenset(
    {"boolean", "byte", "short", "int", "long", "char", "float", "double"}
)

_TOKEN_RE: Final[re.Pattern[str]] = re.compile(
    r"\s*(?:(?P<name>[A-Za-z_$][A-Za-z0-9_$]*(?:\s*\.\s*[A-Za-z_$][A-Za-z0-9_$]*)*)"
    r"|(?P<punct>\[\s*\]|[<>,?&]))"
)

ArityLookup = Callable[[str], int | None]


class _Cursor:
    __slots__ = ("_position", "_text", "_tokens")

    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens: list[tuple[str, int]] = []
        position = 0
        while position < len(text):
            if text[position:].strip() == "":
                break
            match = _TOKEN_RE.match(text, position)
            if match is None:
                raise TypeSyntaxError(text, position, "unexpected character")
            token = match.group("name") or match.group("punct")
            self._tokens.append((re.sub(r"\s+", "", token), match.start(match.lastgroup or 0)))
            position = match.end()
        self._position = 0

    @property
    def text(self) -> str:
        return self._text

    def peek(self) -> str | None:
        if self._position >= len(self._tokens):
            return None
        return self._tokens[self._position][0]

    def offset(self) -> int:
        if self._position >= len(self._tokens):
            return len(self._text)
        return self._tokens[self._position][1]

    def take(self) -> str:
        token = self.peek()
        if token is None:
            raise TypeSyntaxError(self._text, len(self._text), "unexpected end of input")
        self._position += 1
        return token

    def expect(self, token: str) -> None:
        offset = self.offset()
        found = self.take()
        if found != token:
            raise TypeSyntaxError(self._text, offset, f"expected {token!r}, found {found!r}")


def parse_type(
    text: str,
    *,
    type_variables: Mapping[str, TypeBinding] | None = None,
    arity: ArityLookup | None = None,
) -> TypeBinding:
    """Parse ``text`` into a ``TypeBinding``.

    ``type_variables`` maps in-scope variable names (``T``) to their variable
    bindings. ``arity`` reports the declared number of type parameters of a raw
    type, or ``None`` when the type is not declared; it is used to reject
    ``ArrayList<A, B>`` style mismatches.
    """

    if not isinstance(text, str) or not text.strip():
        raise TypeSyntaxError(str(text), 0, "type expression must not be empty")
    cursor = _Cursor(text)
    binding = _parse_type(cursor, type_variables or {}, arity)
    if cursor.peek() is not None:
        raise TypeSyntaxError(text, cursor.offset(), f"trailing token {cursor.peek()!r}")
    return binding


def _parse_type(
    cursor: _Cursor,
    variables: Mapping[str, TypeBinding],
    arity: ArityLookup | None,
) -> TypeBinding:
    offset = cursor.offset()
    name = cursor.take()
    if not _is_name(name):
        raise TypeSyntaxError(cursor.text, offset, f"expected a type name, found {name!r}")

    binding: TypeBinding
    if cursor.peek() == "<":
        if name in PRIMITIVE_NAMES or name in variables:
            raise TypeSyntaxError(cursor.text, offset, f"{name} cannot take type arguments")
        cursor.take()
        arguments: list[TypeArgument] = [_parse_argument(cursor, variables, arity)]
        while cursor.peek() == ",":
            cursor.take()
            arguments.append(_parse_argument(cursor, variables, arity))
        cursor.expect(">")
        declared = arity(name) if arity is not None else None
        if declared is not None and declared != len(arguments):
            raise TypeSyntaxError(
                cursor.text,
                offset,
                f"{name} declares {declared} type parameter(s), got {len(arguments)}",
            )
        binding = TypeBinding.parameterized(name, *arguments)
    elif name in variables:
        binding = variables[name]
    else:
        binding = TypeBinding.scalar(name)

    while cursor.peek() == "[]":
        cursor.take()
        binding = TypeBinding.array_of(binding)
    return binding


def _parse_argument(
    cursor: _Cursor,
    variables: Mapping[str, TypeBinding],
    arity: ArityLookup | None,
) -> TypeArgument:
    if cursor.peek() != "?":
        argument = _parse_type(cursor, variables, arity)
        if argument.raw in PRIMITIVE_NAMES:
            raise TypeSyntaxError(
                cursor.text, cursor.offset(), f"primitive {argument.raw} cannot be a type argument"
            )
        return argument

    cursor.take()
    keyword = cursor.peek()
    if keyword == "extends":
        cursor.take()
        return WildcardBinding(Bound.EXTENDS, _parse_type(cursor, variables, arity))
    if keyword == "super":
        cursor.take()
        return WildcardBinding(Bound.SUPER, _parse_type(cursor, variables, arity))
    return WildcardBinding()


def parse_type_parameter(
    name: str,
    bounds: list[str] | tuple[str, ...],
    *,
    arity: ArityLookup | None = None,
) -> TypeBinding:
    """Build the binding of a declared type variable such as ``T extends A & B``."""

    if not _is_name(name) or "." in name:
        raise TypeSyntaxError(name, 0, "type variable names must be simple identifiers")
    parsed = tuple(parse_type(bound, arity=arity) for bound in bounds)
    return TypeBinding.variable(name, *parsed)


def _is_name(token: str) -> bool:
    return token not in {"<", ">", ",", "?", "&", "[]"}


__all__ = ["PRIMITIVE_NAMES", "parse_type", "parse_type_parameter"]
