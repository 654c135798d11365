"""
retention-compiler — unit tests for template constraint matching
"""

from __future__ import annotations

import pytest
import yaml

from retention_compiler.domain import Bound, TransformationTemplate, TypeBinding
from retention_compiler.introspection import SymbolTable, TypeHierarchy, parse_type
from retention_compiler.resolution import ConstraintMatcher

SYMBOLS = """
annotation_types:
  - {name: com.example.Inherited, inherited: true}
  - {name: com.example.Local}
classes:
  - name: com.example.BaseStringObject
    annotations: [com.example.Inherited, com.example.Local]
  - name: com.example.StringObject
    superclass: com.example.BaseStringObject
  - name: com.example.SpecialStringObject
    superclass: com.example.StringObject
  - name: com.example.Tagged
    interface: true
  - name: com.example.Both
    superclass: com.example.StringObject
    interfaces: [com.example.Tagged]
"""


@pytest.fixture()
def matcher() -> ConstraintMatcher:
    table = SymbolTable.from_documents([("symbols.yaml", yaml.safe_load(SYMBOLS))])
    return ConstraintMatcher(TypeHierarchy(table))


def _template(
    *constraints: str,
    bound: Bound = Bound.EXACT,
    annotation: str | None = None,
) -> TransformationTemplate:
    return TransformationTemplate(
        name="t",
        constraints=tuple(parse_type(item) for item in constraints),
        bound=bound,
        required_annotation=annotation,
        save="{{ value }}",
        restore="{{ value }}",
    )


def _t(text: str) -> TypeBinding:
    return parse_type(text)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("bound", "candidate", "expected"),
    [
        (Bound.EXACT, "com.example.StringObject", True),
        (Bound.EXACT, "com.example.SpecialStringObject", False),
        (Bound.EXACT, "com.example.BaseStringObject", False),
        (Bound.EXTENDS, "com.example.StringObject", True),
        (Bound.EXTENDS, "com.example.SpecialStringObject", True),
        (Bound.EXTENDS, "com.example.BaseStringObject", False),
        (Bound.SUPER, "com.example.StringObject", True),
        (Bound.SUPER, "com.example.BaseStringObject", True),
        (Bound.SUPER, "java.lang.Object", True),
        (Bound.SUPER, "com.example.SpecialStringObject", False),
    ],
)
def test_bound_direction(
    matcher: ConstraintMatcher, bound: Bound, candidate: str, expected: bool
) -> None:
    template = _template("com.example.StringObject", bound=bound)

    assert matcher.matches(template, _t(candidate)) is expected


@pytest.mark.unit
def test_constraints_are_conjunctive(matcher: ConstraintMatcher) -> None:
    template = _template(
        "com.example.StringObject", "com.example.Tagged", bound=Bound.EXTENDS
    )

    assert matcher.matches(template, _t("com.example.Both"))
    assert not matcher.matches(template, _t("com.example.SpecialStringObject"))


@pytest.mark.unit
def test_parameterized_constraint_requires_equal_arguments(matcher: ConstraintMatcher) -> None:
    template = _template("java.util.List<java.lang.String>", bound=Bound.EXTENDS)

    assert matcher.matches(template, _t("java.util.ArrayList<java.lang.String>"))
    assert not matcher.matches(template, _t("java.util.ArrayList<java.lang.Integer>"))


@pytest.mark.unit
def test_exact_parameterized_compares_whole_binding(matcher: ConstraintMatcher) -> None:
    template = _template("java.util.ArrayList<java.lang.String>")

    assert matcher.matches(template, _t("java.util.ArrayList<java.lang.String>"))
    assert not matcher.matches(template, _t("java.util.ArrayList<java.lang.Integer>"))


@pytest.mark.unit
def test_array_constraints(matcher: ConstraintMatcher) -> None:
    exact = _template("com.example.StringObject[]")
    wide = _template("com.example.StringObject[]", bound=Bound.EXTENDS)

    assert matcher.matches(exact, _t("com.example.StringObject[]"))
    assert not matcher.matches(exact, _t("com.example.SpecialStringObject[]"))
    assert matcher.matches(wide, _t("com.example.SpecialStringObject[]"))
    assert not matcher.matches(wide, _t("com.example.StringObject"))


@pytest.mark.unit
def test_annotation_on_field_or_type(matcher: ConstraintMatcher) -> None:
    template = _template(annotation="com.example.Inherited")
    local = _template(annotation="com.example.Local")

    assert matcher.matches(template, _t("com.example.BaseStringObject"))
    assert matcher.matches(template, _t("com.example.SpecialStringObject"))
    assert not matcher.matches(local, _t("com.example.StringObject"))
    assert matcher.matches(
        local, _t("com.example.StringObject"), annotations=("com.example.Local",)
    )


@pytest.mark.unit
def test_annotation_and_type_constraint_both_required(matcher: ConstraintMatcher) -> None:
    template = _template(
        "com.example.StringObject", bound=Bound.EXTENDS, annotation="com.example.Local"
    )

    assert not matcher.matches(template, _t("com.example.StringObject"))
    assert matcher.matches(
        template, _t("com.example.StringObject"), annotations=["com.example.Local"]
    )
    assert not matcher.matches(
        template, _t("com.example.BaseStringObject"), annotations=["com.example.Local"]
    )


@pytest.mark.unit
def test_type_variable_matches_through_bounds(matcher: ConstraintMatcher) -> None:
    variable = TypeBinding.variable("T", _t("com.example.SpecialStringObject"))

    assert matcher.satisfies(variable, _t("com.example.StringObject"), Bound.EXTENDS)
    assert not matcher.satisfies(variable, _t("com.example.StringObject"), Bound.EXACT)
