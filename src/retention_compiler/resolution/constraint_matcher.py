"""Decide whether a transformation template applies to a type."""

from __future__ import annotations

from collections.abc import Iterable

from retention_compiler.domain.models import (
    Bound,
    TransformationTemplate,
    TypeBinding,
)
from retention_compiler.introspection.hierarchy import TypeHierarchy


class ConstraintMatcher:
    """Conjunctive check of a template's type constraints and required annotation.

    ``EXACT`` compares raw identity (whole bindings for arrays and parameterized
    constraints). ``EXTENDS`` accepts the constraint and its transitive
    subtypes, ``SUPER`` the constraint and its transitive supertypes. A
    parameterized constraint also requires equal type arguments.
    """

    __slots__ = ("_hierarchy",)

    def __init__(self, hierarchy: TypeHierarchy) -> None:
        self._hierarchy = hierarchy

    def matches(
        self,
        template: TransformationTemplate,
        binding: TypeBinding,
        *,
        annotations: Iterable[str] = (),
    ) -> bool:
        if template.required_annotation is not None:
            present = set(annotations)
            owners = binding.bounds if binding.is_type_variable else (binding,)
            for owner in owners:
                if not owner.is_array:
                    present |= self._hierarchy.annotations_of(owner.raw)
            if template.required_annotation not in present:
                return False
        return all(
            self.satisfies(binding, constraint, template.bound)
            for constraint in template.constraints
        )

    def satisfies(self, binding: TypeBinding, constraint: TypeBinding, bound: Bound) -> bool:
        if binding.is_type_variable:
            if bound is not Bound.EXTENDS:
                return binding == constraint
            return any(self.satisfies(item, constraint, bound) for item in binding.bounds)

        if bound is Bound.EXACT:
            if binding.is_array or constraint.is_array or constraint.is_parameterized:
                return binding == constraint
            return binding.raw == constraint.raw

        if bound is Bound.EXTENDS:
            sub, sup = binding, constraint
        else:
            sub, sup = constraint, binding

        if sub.is_array or sup.is_array:
            return self._hierarchy.is_assignable(sub, sup)
        if not self._hierarchy.is_subtype(sub.raw, sup.raw):
            return False
        if constraint.is_parameterized:
            return binding.arguments == constraint.arguments
        return True


__all__ = ["ConstraintMatcher"]
