"""
retention-compiler — unit tests for type expression parsing
"""

from __future__ import annotations

import pytest

from retention_compiler.domain import Bound, TypeBinding, TypeSyntaxError, WildcardBinding
from retention_compiler.introspection.type_parser import parse_type, parse_type_parameter


@pytest.mark.unit
def test_parses_scalar_and_primitive_arrays() -> None:
    assert parse_type("java.lang.String") == TypeBinding.scalar("java.lang.String")
    assert parse_type("int[][]").display == "int[][]"
    assert parse_type(" java . lang . String [ ] ").display == "java.lang.String[]"


@pytest.mark.unit
def test_parses_nested_parameterized_with_wildcards() -> None:
    binding = parse_type("java.util.Map<java.lang.String, ? extends java.util.List<?>>")

    assert binding.is_parameterized
    assert binding.raw == "java.util.Map"
    key, value = binding.arguments
    assert key == TypeBinding.scalar("java.lang.String")
    assert isinstance(value, WildcardBinding)
    assert value.bound is Bound.EXTENDS
    assert value.binding is not None
    assert value.binding.display == "java.util.List<?>"


@pytest.mark.unit
def test_super_wildcard() -> None:
    binding = parse_type("java.util.ArrayList<? super java.lang.Integer>")

    (argument,) = binding.arguments
    assert isinstance(argument, WildcardBinding)
    assert argument.bound is Bound.SUPER


@pytest.mark.unit
def test_type_variables_resolve_to_their_bindings() -> None:
    variable = parse_type_parameter("T", ["android.os.Parcelable"])

    binding = parse_type("T[]", type_variables={"T": variable})

    assert binding.element == variable
    assert binding.element.bounds == (TypeBinding.scalar("android.os.Parcelable"),)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "reason"),
    [
        ("", "must not be empty"),
        ("java.util.List<", "unexpected end of input"),
        ("java.util.List<int>", "primitive int cannot be a type argument"),
        ("int<java.lang.String>", "cannot take type arguments"),
        ("java.lang.String java.lang.String", "trailing token"),
        ("java.lang.String#", "unexpected character"),
    ],
)
def test_rejects_malformed_expressions(text: str, reason: str) -> None:
    with pytest.raises(TypeSyntaxError, match=reason):
        parse_type(text)


@pytest.mark.unit
def test_rejects_arity_mismatch() -> None:
    arity = {"java.util.ArrayList": 1}.get

    with pytest.raises(TypeSyntaxError, match="declares 1 type parameter"):
        parse_type("java.util.ArrayList<java.lang.String, java.lang.String>", arity=arity)


@pytest.mark.unit
def test_type_parameter_names_must_be_simple() -> None:
    with pytest.raises(TypeSyntaxError):
        parse_type_parameter("a.T", [])
