"""
retention-compiler — unit tests for strategy resolution

File: tests/unit/resolution/test_strategy_resolver.py
Last updated: 2026-10-18

Purpose
- Validate the fixed strategy priority order and its first-match-wins rule.

What this test file should cover
- Built-in scalars, boxed null guards, arrays, containers, wildcards.
- Subtype families in family order, ahead of templates.
- Converter precedence, template order, type-variable bounds.
- Unsupported types and idempotent resolution.
"""

from __future__ import annotations

import pytest
import yaml
from hypothesis import given, settings
from hypothesis import strategies as st

from retention_compiler.domain import (
    BuiltinArray,
    BuiltinParameterized,
    BuiltinPrimitive,
    ConverterOrigin,
    ConverterStrategy,
    FieldDescriptor,
    NullGuard,
    TemplateStrategy,
    TypeBinding,
    UnsupportedTypeError,
)
from retention_compiler.introspection import SymbolTable, TypeHierarchy, parse_type
from retention_compiler.registry import (
    ConverterRegistryBuilder,
    RegistryBundle,
    TemplateRegistryBuilder,
    register_document,
)
from retention_compiler.resolution import StrategyResolver

SYMBOLS = """
annotation_types:
  - {name: com.example.Retainable, inherited: true}
classes:
  - name: com.example.Point
    interfaces: [android.os.Parcelable]
  - name: com.example.Record
    interfaces: [java.io.Serializable]
  - name: com.example.Hybrid
    interfaces: [java.io.Serializable, android.os.Parcelable]
  - name: com.example.Money
  - name: com.example.Ledger
    annotations: [com.example.Retainable]
  - name: com.example.SubLedger
    superclass: com.example.Ledger
  - name: com.example.Trackable
    interface: true
  - name: com.example.Named
    interface: true
"""

REGISTRATIONS = """
converters:
  - type: com.example.Money
    converter: com.example.MoneyConverter
templates:
  - name: parcelable-template
    constraints: android.os.Parcelable
    bound: extends
    save: "{{ bundle }}.putThing({{ key }}, {{ value }})"
    restore: "{{ value }} = {{ bundle }}.getThing({{ key }})"
  - name: retainable
    annotation: com.example.Retainable
    save: "{{ value }}.saveTo({{ bundle }}, {{ key }})"
    restore: "{{ value }}.restoreFrom({{ bundle }}, {{ key }})"
  - name: any-ledger
    constraints: com.example.Ledger
    bound: extends
    save: "{{ bundle }}.putLedger({{ key }}, {{ value }})"
    restore: "{{ value }} = {{ bundle }}.getLedger({{ key }})"
  - name: activity-super
    constraints: android.app.Activity
    bound: super
    save: "{{ bundle }}.putContext({{ key }}, {{ value }})"
    restore: "{{ value }} = {{ bundle }}.getContext({{ key }})"
  - name: tracked-and-named
    constraints: [com.example.Trackable, com.example.Named]
    bound: extends
    save: "{{ bundle }}.putTracked({{ key }}, {{ value }})"
    restore: "{{ value }} = {{ bundle }}.getTracked({{ key }})"
"""


def _table() -> SymbolTable:
    return SymbolTable.from_documents([("symbols.yaml", yaml.safe_load(SYMBOLS))])


def _registries(text: str | None, hierarchy: TypeHierarchy) -> RegistryBundle:
    if text is None:
        return RegistryBundle.empty()
    converters = ConverterRegistryBuilder()
    templates = TemplateRegistryBuilder()
    register_document(
        yaml.safe_load(text),
        location="registrations.yaml",
        converters=converters,
        templates=templates,
        arity=hierarchy.arity,
    )
    return RegistryBundle(converters=converters.freeze(), templates=templates.freeze())


def _resolver(registrations: str | None = None) -> StrategyResolver:
    hierarchy = TypeHierarchy(_table())
    return StrategyResolver(hierarchy, _registries(registrations, hierarchy))


def _field(type_text: str, **kwargs: object) -> FieldDescriptor:
    return FieldDescriptor(
        owner="com.example.Host",
        name="value",
        binding=parse_type(type_text),
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    ("type_text", "accessor"),
    [
        ("boolean", "Boolean"),
        ("byte", "Byte"),
        ("char", "Char"),
        ("short", "Short"),
        ("int", "Int"),
        ("long", "Long"),
        ("float", "Float"),
        ("double", "Double"),
        ("java.lang.String", "String"),
        ("java.lang.CharSequence", "CharSequence"),
        ("android.os.Bundle", "Bundle"),
        ("android.os.IBinder", "Binder"),
        ("android.util.Size", "Size"),
        ("android.util.SizeF", "SizeF"),
    ],
)
def test_builtin_scalars_are_not_widened(type_text: str, accessor: str) -> None:
    strategy = _resolver().resolve(_field(type_text))

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.accessor == accessor
    assert not strategy.widened


@pytest.mark.unit
@pytest.mark.parametrize(
    ("kwargs", "guard", "literal"),
    [
        ({}, NullGuard.SKIP_IF_NULL, None),
        ({"default_literal": "42"}, NullGuard.DEFAULT_LITERAL, "42"),
        ({"nonnull": True}, NullGuard.NONE, None),
    ],
)
def test_boxed_primitives_get_null_guard(
    kwargs: dict[str, object], guard: NullGuard, literal: str | None
) -> None:
    strategy = _resolver().resolve(_field("java.lang.Integer", **kwargs))

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.accessor == "Int"
    assert strategy.boxed
    assert strategy.null_guard is guard
    assert strategy.default_literal == literal


@pytest.mark.unit
@pytest.mark.parametrize(
    ("type_text", "accessor"),
    [
        ("java.lang.Boolean", "Boolean"),
        ("java.lang.Byte", "Byte"),
        ("java.lang.Character", "Char"),
        ("java.lang.Short", "Short"),
        ("java.lang.Integer", "Int"),
        ("java.lang.Long", "Long"),
        ("java.lang.Float", "Float"),
        ("java.lang.Double", "Double"),
    ],
)
def test_every_boxed_primitive_unboxes_to_its_accessor(type_text: str, accessor: str) -> None:
    strategy = _resolver().resolve(_field(type_text))

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.accessor == accessor
    assert strategy.boxed
    assert strategy.null_guard is NullGuard.SKIP_IF_NULL
    assert strategy.default_literal is None


@pytest.mark.unit
def test_boxed_long_restores_declared_default() -> None:
    strategy = _resolver().resolve(_field("java.lang.Long", default_literal="0L"))

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.accessor == "Long"
    assert strategy.null_guard is NullGuard.DEFAULT_LITERAL
    assert strategy.default_literal == "0L"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("type_text", "family"),
    [
        ("java.lang.StringBuilder", "java.lang.CharSequence"),
        ("android.text.SpannableString", "java.lang.CharSequence"),
        ("android.os.Binder", "android.os.IBinder"),
        ("com.example.Point", "android.os.Parcelable"),
        ("com.example.Hybrid", "android.os.Parcelable"),
        ("com.example.Record", "java.io.Serializable"),
    ],
)
def test_subtypes_resolve_to_first_family(type_text: str, family: str) -> None:
    strategy = _resolver().resolve(_field(type_text))

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.stored.raw == family


@pytest.mark.unit
def test_parcelable_subtype_is_polymorphic_and_widened() -> None:
    strategy = _resolver().resolve(_field("com.example.Point"))

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.polymorphic
    assert strategy.widened
    assert strategy.declared.raw == "com.example.Point"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("type_text", "accessor", "polymorphic"),
    [
        ("boolean[]", "BooleanArray", False),
        ("byte[]", "ByteArray", False),
        ("char[]", "CharArray", False),
        ("short[]", "ShortArray", False),
        ("int[]", "IntArray", False),
        ("long[]", "LongArray", False),
        ("float[]", "FloatArray", False),
        ("double[]", "DoubleArray", False),
        ("java.lang.String[]", "StringArray", False),
        ("java.lang.StringBuilder[]", "CharSequenceArray", False),
        ("com.example.Point[]", "ParcelableArray", True),
        ("android.os.Bundle[]", "ParcelableArray", True),
    ],
)
def test_builtin_arrays(type_text: str, accessor: str, polymorphic: bool) -> None:
    strategy = _resolver().resolve(_field(type_text))

    assert isinstance(strategy, BuiltinArray)
    assert strategy.accessor == accessor
    assert strategy.polymorphic is polymorphic


@pytest.mark.unit
@pytest.mark.parametrize(
    ("type_text", "accessor"),
    [
        ("java.util.ArrayList<java.lang.String>", "StringArrayList"),
        ("java.util.ArrayList<java.lang.Integer>", "IntegerArrayList"),
        ("java.util.ArrayList<java.lang.StringBuilder>", "CharSequenceArrayList"),
        ("java.util.ArrayList<com.example.Point>", "ParcelableArrayList"),
        ("java.util.ArrayList<? extends android.os.Parcelable>", "ParcelableArrayList"),
        ("android.util.SparseArray<com.example.Point>", "SparseParcelableArray"),
    ],
)
def test_builtin_containers(type_text: str, accessor: str) -> None:
    strategy = _resolver().resolve(_field(type_text))

    assert isinstance(strategy, BuiltinParameterized)
    assert strategy.accessor == accessor


@pytest.mark.unit
def test_container_without_accessor_falls_back_to_serializable() -> None:
    strategy = _resolver().resolve(_field("java.util.ArrayList<java.lang.Long>"))

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.stored.raw == "java.io.Serializable"
    assert strategy.widened


@pytest.mark.unit
def test_type_variable_resolves_through_bounds() -> None:
    variable = TypeBinding.variable(
        "T", TypeBinding.scalar("com.example.Money"), TypeBinding.scalar("android.os.Parcelable")
    )
    field = FieldDescriptor(owner="com.example.Host", name="value", binding=variable)

    strategy = _resolver().resolve(field)

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.stored.raw == "android.os.Parcelable"
    assert strategy.declared == variable


@pytest.mark.unit
def test_type_variable_first_bound_wins() -> None:
    variable = TypeBinding.variable(
        "T", TypeBinding.scalar("com.example.Money"), TypeBinding.scalar("android.os.Parcelable")
    )
    field = FieldDescriptor(owner="com.example.Host", name="value", binding=variable)

    strategy = _resolver(REGISTRATIONS).resolve(field)

    assert isinstance(strategy, ConverterStrategy)


@pytest.mark.unit
def test_intersection_template_matches_variable_with_both_bounds() -> None:
    variable = TypeBinding.variable(
        "T", TypeBinding.scalar("com.example.Trackable"), TypeBinding.scalar("com.example.Named")
    )
    field = FieldDescriptor(owner="com.example.Host", name="value", binding=variable)

    strategy = _resolver(REGISTRATIONS).resolve(field)

    assert isinstance(strategy, TemplateStrategy)
    assert strategy.template is not None
    assert strategy.template.name == "tracked-and-named"
    assert strategy.declared == variable
    assert strategy.stored == variable


@pytest.mark.unit
def test_intersection_template_needs_every_constraint() -> None:
    variable = TypeBinding.variable("T", TypeBinding.scalar("com.example.Trackable"))
    field = FieldDescriptor(owner="com.example.Host", name="value", binding=variable)

    with pytest.raises(UnsupportedTypeError):
        _resolver(REGISTRATIONS).resolve(field)


@pytest.mark.unit
def test_explicit_converter_beats_everything() -> None:
    strategy = _resolver(REGISTRATIONS).resolve(
        _field("int", converter="com.example.IntConverter")
    )

    assert isinstance(strategy, ConverterStrategy)
    assert strategy.entry is not None
    assert strategy.entry.origin is ConverterOrigin.EXPLICIT
    assert strategy.entry.converter == "com.example.IntConverter"


@pytest.mark.unit
def test_registered_converter_requires_exact_type() -> None:
    resolver = _resolver(REGISTRATIONS)

    strategy = resolver.resolve(_field("com.example.Money"))

    assert isinstance(strategy, ConverterStrategy)
    assert strategy.entry is not None
    assert strategy.entry.origin is ConverterOrigin.REGISTERED
    with pytest.raises(UnsupportedTypeError):
        resolver.resolve(_field("com.example.Money[]"))


@pytest.mark.unit
def test_builtin_family_beats_matching_template() -> None:
    strategy = _resolver(REGISTRATIONS).resolve(_field("com.example.Point"))

    assert isinstance(strategy, BuiltinPrimitive)
    assert strategy.stored.raw == "android.os.Parcelable"


@pytest.mark.unit
def test_first_registered_template_wins() -> None:
    strategy = _resolver(REGISTRATIONS).resolve(_field("com.example.SubLedger"))

    assert isinstance(strategy, TemplateStrategy)
    assert strategy.template is not None
    assert strategy.template.name == "retainable"


@pytest.mark.unit
def test_super_bound_template_matches_ancestor() -> None:
    strategy = _resolver(REGISTRATIONS).resolve(_field("android.content.Context"))

    assert isinstance(strategy, TemplateStrategy)
    assert strategy.template is not None
    assert strategy.template.name == "activity-super"


@pytest.mark.unit
@pytest.mark.parametrize(
    "type_text",
    [
        "android.app.Activity",
        "com.example.Money",
        "java.lang.Object",
        "java.util.List<java.lang.String>",
        "java.lang.Integer[]",
        "android.view.View[]",
    ],
)
def test_unsupported_types_raise(type_text: str) -> None:
    with pytest.raises(UnsupportedTypeError, match="com.example.Host.value"):
        _resolver().resolve(_field(type_text))


_RESOLVABLE = [
    "int",
    "java.lang.Integer",
    "java.lang.String",
    "java.lang.StringBuilder",
    "com.example.Point",
    "com.example.Hybrid",
    "com.example.Point[]",
    "android.os.Bundle[]",
    "java.util.ArrayList<java.lang.String>",
    "java.util.ArrayList<java.lang.Long>",
    "com.example.Money",
    "com.example.SubLedger",
]


@pytest.mark.unit
@given(type_text=st.sampled_from(_RESOLVABLE), nonnull=st.booleans())
@settings(max_examples=60, deadline=None)
def test_resolution_is_idempotent(type_text: str, nonnull: bool) -> None:
    resolver = _resolver(REGISTRATIONS)
    field = _field(type_text, nonnull=nonnull)

    assert resolver.resolve(field) == resolver.resolve(field)
