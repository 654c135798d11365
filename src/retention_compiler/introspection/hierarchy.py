"""Subtype oracle over a metadata provider."""

from __future__ import annotations

import threading
from collections import deque

from retention_compiler.domain.models import OBJECT_TYPE, TypeBinding
from retention_compiler.introspection.provider import MetadataProvider
from retention_compiler.introspection.type_parser import PRIMITIVE_NAMES


class TypeHierarchy:
    """Answers subtype and annotation questions about declared types.

    Undeclared reference types are treated as direct subtypes of
    ``java.lang.Object``; primitives are only subtypes of themselves.
    """

    __slots__ = ("_closures", "_lock", "_provider")

    def __init__(self, provider: MetadataProvider) -> None:
        self._provider = provider
        self._closures: dict[str, tuple[str, ...]] = {}
        self._lock = threading.Lock()

    def supertypes(self, name: str) -> tuple[str, ...]:
        """Reflexive, transitive supertypes of ``name`` in breadth-first order."""

        with self._lock:
            cached = self._closures.get(name)
        if cached is not None:
            return cached

        ordered: list[str] = []
        seen: set[str] = set()
        pending: deque[str] = deque([name])
        while pending:
            current = pending.popleft()
            if current in seen:
                continue
            seen.add(current)
            ordered.append(current)
            if self._provider.has_class(current):
                pending.extend(self._provider.describe_class(current).supertypes)
        if name not in PRIMITIVE_NAMES and OBJECT_TYPE not in seen:
            ordered.append(OBJECT_TYPE)

        closure = tuple(ordered)
        with self._lock:
            self._closures[name] = closure
        return closure

    def is_subtype(self, sub: str, sup: str) -> bool:
        """Whether ``sub`` is ``sup`` or a transitive subtype of it."""

        if sub == sup:
            return True
        if sub in PRIMITIVE_NAMES or sup in PRIMITIVE_NAMES:
            return False
        return sup in self.supertypes(sub)

    def is_assignable(self, sub: TypeBinding, sup: TypeBinding) -> bool:
        """Assignability of whole bindings, ignoring type arguments."""

        if sub.is_type_variable:
            return any(self.is_assignable(bound, sup) for bound in sub.bounds)
        if sub.is_array or sup.is_array:
            if sub.is_array and sup.is_array:
                if sub.element.raw in PRIMITIVE_NAMES or sup.element.raw in PRIMITIVE_NAMES:
                    return sub.element == sup.element
                return self.is_assignable(sub.element, sup.element)
            return sub.is_array and sup.raw == OBJECT_TYPE
        return self.is_subtype(sub.raw, sup.raw)

    def annotations_of(self, name: str) -> frozenset[str]:
        """Annotations present on ``name``, including inherited ones from superclasses."""

        if not self._provider.has_class(name):
            return frozenset()
        description = self._provider.describe_class(name)
        present = set(description.annotations)
        for ancestor in description.ancestors:
            if not self._provider.has_class(ancestor):
                continue
            for annotation in self._provider.describe_class(ancestor).annotations:
                if self._provider.is_inherited_annotation(annotation):
                    present.add(annotation)
        return frozenset(present)

    def arity(self, name: str) -> int | None:
        if not self._provider.has_class(name):
            return None
        return self._provider.describe_class(name).arity


__all__ = ["TypeHierarchy"]
