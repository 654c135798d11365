"""Turn a resolved strategy into save/restore accessor descriptors."""

from __future__ import annotations

from typing import Final

from retention_compiler.domain.errors import EmissionError
from retention_compiler.domain.models import (
    AccessorCall,
    AccessorDirection,
    AccessorPair,
    BuiltinArray,
    BuiltinParameterized,
    BuiltinPrimitive,
    ConverterStrategy,
    FieldDescriptor,
    NullGuard,
    ResolvedStrategy,
    StorageKey,
    TemplateStrategy,
)
from retention_compiler.emission.snippets import SnippetError, render_snippet
from retention_compiler.introspection.type_parser import PRIMITIVE_NAMES

BUNDLE_VARIABLE: Final[str] = "bundle"
TARGET_VARIABLE: Final[str] = "target"


def java_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def receiver_for(owner: str, target_class: str, *, hidden: bool) -> str:
    """Expression that reaches a field of ``owner`` through the target reference.

    A field hidden by a subclass field of the same name is only reachable
    through a cast to its declaring class.
    """

    if hidden and owner != target_class:
        return f"(({owner}) {TARGET_VARIABLE})"
    return TARGET_VARIABLE


class AccessorEmitter:
    """Build the pair of container calls for one field.

    The save side always passes the field value; the restore side assigns back
    to the field and exposes the declared type. Widened strategies restore
    through a cast, except polymorphic scalars and containers whose getters are
    generic in the element type.
    """

    __slots__ = ("_bundle",)

    def __init__(self, *, bundle_variable: str = BUNDLE_VARIABLE) -> None:
        self._bundle = bundle_variable

    def emit(
        self,
        field: FieldDescriptor,
        key: StorageKey,
        strategy: ResolvedStrategy,
        *,
        receiver: str = TARGET_VARIABLE,
    ) -> AccessorPair:
        if isinstance(strategy, ConverterStrategy):
            return self._emit_converter(field, key, strategy, receiver)
        if isinstance(strategy, TemplateStrategy):
            return self._emit_template(field, key, strategy, receiver)
        if isinstance(strategy, (BuiltinPrimitive, BuiltinArray, BuiltinParameterized)):
            return self._emit_builtin(field, key, strategy, receiver)
        raise TypeError(f"unsupported strategy kind: {type(strategy).__name__}")

    def _emit_builtin(
        self,
        field: FieldDescriptor,
        key: StorageKey,
        strategy: BuiltinPrimitive | BuiltinArray | BuiltinParameterized,
        receiver: str,
    ) -> AccessorPair:
        value = f"{receiver}.{field.name}"
        literal_key = java_string(key.value)
        put = f"put{strategy.accessor}"
        get = f"get{strategy.accessor}"
        cast = _restore_cast(strategy)
        prefix = f"({cast}) " if cast is not None else ""

        guard = NullGuard.NONE
        if isinstance(strategy, BuiltinPrimitive):
            guard = strategy.null_guard

        if guard is NullGuard.DEFAULT_LITERAL:
            default = strategy.default_literal if isinstance(strategy, BuiltinPrimitive) else None
            save = (
                f"{self._bundle}.{put}({literal_key}, "
                f"{value} != null ? {value} : {default});"
            )
            restore = f"{value} = {self._bundle}.{get}({literal_key}, {default});"
        elif guard is NullGuard.SKIP_IF_NULL:
            save = f"if ({value} != null) {self._bundle}.{put}({literal_key}, {value});"
            restore = (
                f"if ({self._bundle}.containsKey({literal_key})) "
                f"{value} = {self._bundle}.{get}({literal_key});"
            )
        elif isinstance(strategy, BuiltinPrimitive) and _is_unboxed(strategy):
            save = f"{self._bundle}.{put}({literal_key}, {value});"
            restore = f"{value} = {self._bundle}.{get}({literal_key}, {value});"
        else:
            save = f"{self._bundle}.{put}({literal_key}, {value});"
            restore = f"{value} = {prefix}{self._bundle}.{get}({literal_key});"

        return AccessorPair(
            save=AccessorCall(
                direction=AccessorDirection.SAVE,
                key=key.value,
                method=put,
                receiver=receiver,
                value_type=strategy.stored.display,
                statement=save,
                null_guard=guard,
            ),
            restore=AccessorCall(
                direction=AccessorDirection.RESTORE,
                key=key.value,
                method=get,
                receiver=receiver,
                value_type=strategy.declared.display,
                statement=restore,
                cast=cast,
                null_guard=guard,
            ),
        )

    def _emit_converter(
        self,
        field: FieldDescriptor,
        key: StorageKey,
        strategy: ConverterStrategy,
        receiver: str,
    ) -> AccessorPair:
        assert strategy.entry is not None
        value = f"{receiver}.{field.name}"
        literal_key = java_string(key.value)
        converter = f"new {strategy.entry.converter}()"
        declared = strategy.declared.display
        return AccessorPair(
            save=AccessorCall(
                direction=AccessorDirection.SAVE,
                key=key.value,
                method=f"{strategy.entry.converter}.save",
                receiver=receiver,
                value_type=declared,
                statement=f"{converter}.save({self._bundle}, {value}, {literal_key});",
            ),
            restore=AccessorCall(
                direction=AccessorDirection.RESTORE,
                key=key.value,
                method=f"{strategy.entry.converter}.restore",
                receiver=receiver,
                value_type=declared,
                statement=(
                    f"{value} = {converter}.restore({self._bundle}, {value}, {literal_key});"
                ),
            ),
        )

    def _emit_template(
        self,
        field: FieldDescriptor,
        key: StorageKey,
        strategy: TemplateStrategy,
        receiver: str,
    ) -> AccessorPair:
        assert strategy.template is not None
        template = strategy.template
        variables = {
            "bundle": self._bundle,
            "key": java_string(key.value),
            "value": f"{receiver}.{field.name}",
            "target": receiver,
            "field": field.name,
            "type": strategy.declared.display,
        }
        try:
            save = _as_statement(render_snippet(template.save, variables))
            restore = _as_statement(render_snippet(template.restore, variables))
        except SnippetError as exc:
            raise EmissionError(
                field, f"template {template.name!r} for field {field.qualified_name}: {exc}"
            ) from exc
        declared = strategy.declared.display
        return AccessorPair(
            save=AccessorCall(
                direction=AccessorDirection.SAVE,
                key=key.value,
                method=template.name,
                receiver=receiver,
                value_type=declared,
                statement=save,
            ),
            restore=AccessorCall(
                direction=AccessorDirection.RESTORE,
                key=key.value,
                method=template.name,
                receiver=receiver,
                value_type=declared,
                statement=restore,
            ),
        )


def _is_unboxed(strategy: BuiltinPrimitive) -> bool:
    return not strategy.boxed and strategy.stored.raw in PRIMITIVE_NAMES


def _restore_cast(strategy: BuiltinPrimitive | BuiltinArray | BuiltinParameterized) -> str | None:
    if not strategy.widened:
        return None
    # Generic getters infer the declared type; array getters return the family array.
    if strategy.polymorphic and not isinstance(strategy, BuiltinArray):
        return None
    return strategy.declared.display


def _as_statement(rendered: str) -> str:
    if rendered.endswith((";", "}")):
        return rendered
    return f"{rendered};"


__all__ = [
    "AccessorEmitter",
    "BUNDLE_VARIABLE",
    "TARGET_VARIABLE",
    "java_string",
    "receiver_for",
]
