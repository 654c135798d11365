"""Frozen domain models shared by the catalog, resolver, and emitter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TypeAlias

OBJECT_TYPE = "java.lang.Object"
ARRAY_RAW = "[]"


class Shape(StrEnum):
    SCALAR = "scalar"
    ARRAY = "array"
    PARAMETERIZED = "parameterized"


class Bound(StrEnum):
    """Direction of a type-compatibility check."""

    EXACT = "exact"
    EXTENDS = "extends"
    SUPER = "super"


class ConverterOrigin(StrEnum):
    EXPLICIT = "explicit"
    REGISTERED = "registered"


class StrategyKind(StrEnum):
    BUILTIN_PRIMITIVE = "builtin_primitive"
    BUILTIN_ARRAY = "builtin_array"
    BUILTIN_PARAMETERIZED = "builtin_parameterized"
    CONVERTER = "converter"
    TEMPLATE = "template"


class NullGuard(StrEnum):
    """How the emitted code protects a boxed value from null unboxing."""

    NONE = "none"
    DEFAULT_LITERAL = "default_literal"
    SKIP_IF_NULL = "skip_if_null"


@dataclass(frozen=True, slots=True)
class TypeBinding:
    """Normalized description of a declared type."""

    raw: str
    shape: Shape = Shape.SCALAR
    arguments: tuple[TypeArgument, ...] = ()
    bounds: tuple[TypeBinding, ...] = ()

    def __post_init__(self) -> None:
        if not self.raw:
            raise ValueError("TypeBinding.raw must not be empty")
        if self.shape is Shape.ARRAY:
            if len(self.arguments) != 1 or not isinstance(self.arguments[0], TypeBinding):
                raise ValueError("array bindings carry exactly one element binding")
            if self.raw != ARRAY_RAW:
                raise ValueError(f"array bindings must use raw {ARRAY_RAW!r}")
        elif self.shape is Shape.PARAMETERIZED:
            if not self.arguments:
                raise ValueError(f"{self.raw}: parameterized bindings need type arguments")
        elif self.arguments:
            raise ValueError(f"{self.raw}: scalar bindings cannot carry type arguments")
        if self.bounds and self.shape is not Shape.SCALAR:
            raise ValueError(f"{self.raw}: only type variables carry bounds")

    @classmethod
    def scalar(cls, raw: str) -> TypeBinding:
        return cls(raw=raw)

    @classmethod
    def array_of(cls, element: TypeBinding) -> TypeBinding:
        return cls(raw=ARRAY_RAW, shape=Shape.ARRAY, arguments=(element,))

    @classmethod
    def parameterized(cls, raw: str, *arguments: TypeArgument) -> TypeBinding:
        return cls(raw=raw, shape=Shape.PARAMETERIZED, arguments=tuple(arguments))

    @classmethod
    def variable(cls, name: str, *bounds: TypeBinding) -> TypeBinding:
        resolved = bounds if bounds else (cls.scalar(OBJECT_TYPE),)
        return cls(raw=name, bounds=tuple(resolved))

    @property
    def is_array(self) -> bool:
        return self.shape is Shape.ARRAY

    @property
    def is_parameterized(self) -> bool:
        return self.shape is Shape.PARAMETERIZED

    @property
    def is_type_variable(self) -> bool:
        return bool(self.bounds)

    @property
    def element(self) -> TypeBinding:
        """Element binding of an array."""

        if not self.is_array:
            raise ValueError(f"{self.display}: not an array binding")
        element = self.arguments[0]
        assert isinstance(element, TypeBinding)
        return element

    @property
    def display(self) -> str:
        """Render the binding back to its source form."""

        if self.is_array:
            return f"{self.element.display}[]"
        if self.is_parameterized:
            rendered = ", ".join(argument.display for argument in self.arguments)
            return f"{self.raw}<{rendered}>"
        return self.raw

    @property
    def simple_name(self) -> str:
        if self.is_array:
            return f"{self.element.simple_name}[]"
        return self.raw.rsplit(".", 1)[-1]

    def __str__(self) -> str:
        return self.display


@dataclass(frozen=True, slots=True)
class WildcardBinding:
    """A ``?`` type argument with an optional bound."""

    bound: Bound = Bound.EXTENDS
    binding: TypeBinding | None = None

    def __post_init__(self) -> None:
        if self.bound is Bound.EXACT:
            raise ValueError("wildcards are bounded by extends or super only")

    @property
    def upper_bound(self) -> TypeBinding:
        """The type a reader of the wildcard can rely on."""

        if self.bound is Bound.EXTENDS and self.binding is not None:
            return self.binding
        return TypeBinding.scalar(OBJECT_TYPE)

    @property
    def display(self) -> str:
        if self.binding is None:
            return "?"
        return f"? {self.bound.value} {self.binding.display}"

    def __str__(self) -> str:
        return self.display


TypeArgument: TypeAlias = TypeBinding | WildcardBinding


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One field as seen by the resolver; immutable once collected."""

    owner: str
    name: str
    binding: TypeBinding
    retained: bool = True
    converter: str | None = None
    default_literal: str | None = None
    nonnull: bool = False
    annotations: tuple[str, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.name}"

    def __str__(self) -> str:
        return f"{self.qualified_name}: {self.binding.display}"


@dataclass(frozen=True, slots=True)
class StorageKey:
    value: str
    owner: str
    field_name: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ConverterEntry:
    pattern: TypeBinding
    converter: str
    origin: ConverterOrigin = ConverterOrigin.REGISTERED


@dataclass(frozen=True, slots=True)
class TransformationTemplate:
    """Reusable save/restore snippet bound to a type constraint."""

    name: str
    constraints: tuple[TypeBinding, ...]
    bound: Bound = Bound.EXACT
    required_annotation: str | None = None
    save: str = ""
    restore: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("template name must not be empty")
        if not self.constraints and self.required_annotation is None:
            raise ValueError(
                f"template {self.name!r}: declare at least one type constraint or an annotation"
            )

    @property
    def signature(self) -> tuple[tuple[str, ...], Bound, str | None]:
        """Identity of the constraint configuration, independent of the snippets.

        Constraints form an intersection, so their listing order is not part of it.
        """

        return (
            tuple(sorted({item.display for item in self.constraints})),
            self.bound,
            self.required_annotation,
        )


@dataclass(frozen=True, slots=True)
class ResolvedStrategy:
    """Base of the resolved-strategy tagged union."""

    declared: TypeBinding
    stored: TypeBinding

    @property
    def kind(self) -> StrategyKind:
        raise NotImplementedError

    @property
    def widened(self) -> bool:
        """True when the stored representation is a supertype of the declared type."""

        return self.declared != self.stored

    def describe(self) -> str:
        return self.kind.value


@dataclass(frozen=True, slots=True)
class BuiltinPrimitive(ResolvedStrategy):
    """Scalar stored with one of the container's typed accessors."""

    accessor: str = ""
    boxed: bool = False
    polymorphic: bool = False
    default_literal: str | None = None
    null_guard: NullGuard = NullGuard.NONE

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.BUILTIN_PRIMITIVE

    def describe(self) -> str:
        return f"{self.kind.value}({self.accessor})"


@dataclass(frozen=True, slots=True)
class BuiltinArray(ResolvedStrategy):
    accessor: str = ""
    element: ResolvedStrategy | None = None
    polymorphic: bool = False

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.BUILTIN_ARRAY

    def describe(self) -> str:
        return f"{self.kind.value}({self.accessor})"


@dataclass(frozen=True, slots=True)
class BuiltinParameterized(ResolvedStrategy):
    container: str = ""
    accessor: str = ""
    arguments: tuple[ResolvedStrategy, ...] = ()
    polymorphic: bool = False

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.BUILTIN_PARAMETERIZED

    def describe(self) -> str:
        return f"{self.kind.value}({self.accessor})"


@dataclass(frozen=True, slots=True)
class ConverterStrategy(ResolvedStrategy):
    entry: ConverterEntry | None = None

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.CONVERTER

    def describe(self) -> str:
        converter = self.entry.converter if self.entry is not None else "?"
        origin = self.entry.origin.value if self.entry is not None else "?"
        return f"{self.kind.value}({converter}, {origin})"


@dataclass(frozen=True, slots=True)
class TemplateStrategy(ResolvedStrategy):
    template: TransformationTemplate | None = None

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.TEMPLATE

    def describe(self) -> str:
        name = self.template.name if self.template is not None else "?"
        return f"{self.kind.value}({name})"


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    descriptor: FieldDescriptor
    key: StorageKey


@dataclass(frozen=True, slots=True)
class FieldPlan:
    """A fully resolved field ready for emission."""

    descriptor: FieldDescriptor
    key: StorageKey
    strategy: ResolvedStrategy
    accessors: AccessorPair


class AccessorDirection(StrEnum):
    SAVE = "save"
    RESTORE = "restore"


@dataclass(frozen=True, slots=True)
class AccessorCall:
    """Descriptor of one generated container call."""

    direction: AccessorDirection
    key: str
    method: str
    receiver: str
    value_type: str
    statement: str
    cast: str | None = None
    null_guard: NullGuard = NullGuard.NONE


@dataclass(frozen=True, slots=True)
class AccessorPair:
    save: AccessorCall
    restore: AccessorCall


@dataclass(frozen=True, slots=True)
class ClassPlan:
    class_name: str
    fields: tuple[FieldPlan, ...] = field(default_factory=tuple)
    type_parameters: tuple[TypeBinding, ...] = ()

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(item.key.value for item in self.fields)

    @property
    def is_empty(self) -> bool:
        return not self.fields


__all__ = [
    "ARRAY_RAW",
    "AccessorCall",
    "AccessorDirection",
    "AccessorPair",
    "Bound",
    "BuiltinArray",
    "BuiltinParameterized",
    "BuiltinPrimitive",
    "CatalogEntry",
    "ClassPlan",
    "ConverterEntry",
    "ConverterOrigin",
    "ConverterStrategy",
    "FieldDescriptor",
    "FieldPlan",
    "NullGuard",
    "OBJECT_TYPE",
    "ResolvedStrategy",
    "Shape",
    "StorageKey",
    "StrategyKind",
    "TemplateStrategy",
    "TransformationTemplate",
    "TypeArgument",
    "TypeBinding",
    "WildcardBinding",
]
