"""Pick exactly one save/restore strategy per field."""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

import structlog

from retention_compiler.domain.errors import UnsupportedTypeError
from retention_compiler.domain.models import (
    BuiltinArray,
    BuiltinParameterized,
    BuiltinPrimitive,
    ConverterStrategy,
    FieldDescriptor,
    NullGuard,
    ResolvedStrategy,
    TemplateStrategy,
    TypeBinding,
    WildcardBinding,
)
from retention_compiler.introspection.hierarchy import TypeHierarchy
from retention_compiler.registry.converters import ConverterRegistry
from retention_compiler.registry.loader import RegistryBundle
from retention_compiler.resolution import builtins
from retention_compiler.resolution.constraint_matcher import ConstraintMatcher


class StrategyResolver:
    """Resolve fields against a fixed priority order; the first match wins.

    1. explicit converter on the field
    2. registered converter for the exact type
    3. built-in scalar
    4. built-in array
    5. built-in parameterized container
    6. subtype of a built-in scalar family
    7. first matching template in registration order

    Anything else is an :class:`UnsupportedTypeError`. Type variables run steps
    2-7 against each upper bound in declaration order. A variable none of whose
    bounds resolves is finally matched against the templates as a whole, so
    intersection constraints see every bound at once. Resolution reads only
    frozen inputs, so resolving the same field twice gives equal strategies.
    """

    __slots__ = ("_hierarchy", "_logger", "_matcher", "_registries")

    def __init__(
        self,
        hierarchy: TypeHierarchy,
        registries: RegistryBundle | None = None,
        *,
        matcher: ConstraintMatcher | None = None,
        logger: Any | None = None,
    ) -> None:
        self._hierarchy = hierarchy
        self._registries = registries if registries is not None else RegistryBundle.empty()
        self._matcher = matcher if matcher is not None else ConstraintMatcher(hierarchy)
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def registries(self) -> RegistryBundle:
        return self._registries

    def resolve(self, field: FieldDescriptor) -> ResolvedStrategy:
        declared = field.binding
        explicit = ConverterRegistry.explicit_for(field)
        if explicit is not None:
            strategy: ResolvedStrategy | None = ConverterStrategy(
                declared=declared, stored=declared, entry=explicit
            )
        elif declared.is_type_variable:
            strategy = None
            for bound in declared.bounds:
                strategy = self._resolve_binding(field, bound, declared)
                if strategy is not None:
                    break
            else:
                # Intersection constraints only hold for the variable as a whole.
                strategy = self._match_template(field, declared, declared)
        else:
            strategy = self._resolve_binding(field, declared, declared)

        if strategy is None:
            self._logger.debug(
                "field_unsupported", field=field.qualified_name, type=declared.display
            )
            raise UnsupportedTypeError(field)

        self._logger.debug(
            "field_resolved",
            field=field.qualified_name,
            type=declared.display,
            strategy=strategy.describe(),
            widened=strategy.widened,
        )
        return strategy

    def _resolve_binding(
        self,
        field: FieldDescriptor,
        binding: TypeBinding,
        declared: TypeBinding,
    ) -> ResolvedStrategy | None:
        registered = self._registries.converters.lookup(binding)
        if registered is not None:
            return ConverterStrategy(declared=declared, stored=binding, entry=registered)

        strategy = (
            self._builtin_scalar(binding, declared, field)
            or self._builtin_array(binding, declared)
            or self._builtin_container(binding, declared)
            or self._subtype_of_supported(binding, declared)
        )
        if strategy is not None:
            return strategy
        return self._match_template(field, binding, declared)

    def _match_template(
        self,
        field: FieldDescriptor,
        binding: TypeBinding,
        declared: TypeBinding,
    ) -> TemplateStrategy | None:
        for template in self._registries.templates:
            if self._matcher.matches(template, binding, annotations=field.annotations):
                return TemplateStrategy(declared=declared, stored=binding, template=template)
        return None

    def _builtin_scalar(
        self,
        binding: TypeBinding,
        declared: TypeBinding,
        field: FieldDescriptor | None,
    ) -> BuiltinPrimitive | None:
        if binding.is_array or binding.is_parameterized or binding.is_type_variable:
            return None
        raw = binding.raw

        accessor = builtins.PRIMITIVE_ACCESSORS.get(raw)
        if accessor is not None:
            return BuiltinPrimitive(declared=declared, stored=binding, accessor=accessor)

        primitive = builtins.BOXED_PRIMITIVES.get(raw)
        if primitive is not None:
            default_literal = field.default_literal if field is not None else None
            if default_literal is not None:
                guard = NullGuard.DEFAULT_LITERAL
            elif field is None or field.nonnull:
                guard = NullGuard.NONE
            else:
                guard = NullGuard.SKIP_IF_NULL
            return BuiltinPrimitive(
                declared=declared,
                stored=binding,
                accessor=builtins.PRIMITIVE_ACCESSORS[primitive],
                boxed=True,
                default_literal=default_literal,
                null_guard=guard,
            )

        if raw in builtins.VALUE_ACCESSORS:
            return self._family_strategy(declared, raw)
        return None

    def _builtin_array(self, binding: TypeBinding, declared: TypeBinding) -> BuiltinArray | None:
        if not binding.is_array:
            return None
        element = self._element_strategy(
            binding.element,
            accepted=builtins.ARRAY_ACCESSORS.keys(),
            fallback=builtins.array_element_families(),
        )
        if element is None:
            return None
        stored_element = element.stored.raw
        return BuiltinArray(
            declared=declared,
            stored=TypeBinding.array_of(element.stored),
            accessor=builtins.ARRAY_ACCESSORS[stored_element],
            element=element,
            polymorphic=stored_element in builtins.POLYMORPHIC_FAMILIES,
        )

    def _builtin_container(
        self,
        binding: TypeBinding,
        declared: TypeBinding,
    ) -> BuiltinParameterized | None:
        if not binding.is_parameterized or binding.raw not in builtins.CONTAINERS:
            return None
        if len(binding.arguments) != 1:
            return None
        argument = _reader_type(binding.arguments[0])
        container = binding.raw
        accepted = {
            element for owner, element in builtins.CONTAINER_ACCESSORS if owner == container
        }
        element = self._element_strategy(
            argument,
            accepted=accepted,
            fallback=builtins.container_element_families(container),
        )
        if element is None:
            return None
        stored_element = element.stored.raw
        return BuiltinParameterized(
            declared=declared,
            stored=TypeBinding.parameterized(container, element.stored),
            container=container,
            accessor=builtins.CONTAINER_ACCESSORS[(container, stored_element)],
            arguments=(element,),
            polymorphic=stored_element in builtins.POLYMORPHIC_FAMILIES,
        )

    def _subtype_of_supported(
        self,
        binding: TypeBinding,
        declared: TypeBinding,
    ) -> BuiltinPrimitive | None:
        if binding.is_array or binding.is_type_variable:
            return None
        for family in builtins.SUBTYPE_FAMILIES:
            if self._hierarchy.is_subtype(binding.raw, family):
                return self._family_strategy(declared, family)
        return None

    def _element_strategy(
        self,
        element: TypeBinding,
        *,
        accepted: Collection[str],
        fallback: tuple[str, ...],
    ) -> BuiltinPrimitive | None:
        """Resolve an array element or container argument through steps 3 and 6.

        The element's stored type must be one the enclosing accessor accepts;
        otherwise the first accepted family the element belongs to is used.
        """

        candidates = element.bounds if element.is_type_variable else (element,)
        for candidate in candidates:
            resolved = self._builtin_scalar(candidate, element, None) or self._subtype_of_supported(
                candidate, element
            )
            if resolved is not None and resolved.stored.raw in accepted:
                return resolved
            if candidate.is_array or candidate.is_type_variable:
                continue
            for family in fallback:
                if self._hierarchy.is_subtype(candidate.raw, family):
                    return self._family_strategy(element, family)
        return None

    @staticmethod
    def _family_strategy(declared: TypeBinding, family: str) -> BuiltinPrimitive:
        return BuiltinPrimitive(
            declared=declared,
            stored=TypeBinding.scalar(family),
            accessor=builtins.VALUE_ACCESSORS[family],
            polymorphic=family in builtins.POLYMORPHIC_FAMILIES,
        )


def _reader_type(argument: TypeBinding | WildcardBinding) -> TypeBinding:
    """Type a reader of the container element can rely on."""

    if isinstance(argument, WildcardBinding):
        return argument.upper_bound
    return argument


__all__ = ["StrategyResolver"]
