"""Ordered transformation-template registry."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from retention_compiler.domain.errors import (
    AmbiguousConstraintError,
    RegistryFrozenError,
    RegistryLoadError,
)
from retention_compiler.domain.models import TransformationTemplate


class TemplateRegistry:
    """Templates in registration order.

    Registration order is the only tie-break between templates that can match
    the same type. Two templates with an identical constraint signature would
    differ only by that order, so they are rejected up front.
    """

    __slots__ = ("_by_name", "_templates")

    def __init__(self, templates: Iterable[TransformationTemplate] = ()) -> None:
        ordered = tuple(templates)
        by_name: dict[str, TransformationTemplate] = {}
        by_signature: dict[object, TransformationTemplate] = {}
        for template in ordered:
            if template.name in by_name:
                raise RegistryLoadError(f"duplicate template name: {template.name!r}")
            clash = by_signature.get(template.signature)
            if clash is not None:
                constraints, bound, annotation = template.signature
                rendered = f"({' & '.join(constraints) or '-'}, {bound.value}, {annotation or '-'})"
                raise AmbiguousConstraintError(clash.name, template.name, rendered)
            by_name[template.name] = template
            by_signature[template.signature] = template
        self._templates = ordered
        self._by_name = by_name

    @property
    def templates(self) -> tuple[TransformationTemplate, ...]:
        return self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[TransformationTemplate]:
        return iter(self._templates)

    def by_name(self, name: str) -> TransformationTemplate | None:
        return self._by_name.get(name)

    def position(self, name: str) -> int:
        """Registration index of ``name``."""

        for index, template in enumerate(self._templates):
            if template.name == name:
                return index
        raise KeyError(name)


class TemplateRegistryBuilder:
    __slots__ = ("_frozen", "_templates")

    def __init__(self) -> None:
        self._templates: list[TransformationTemplate] = []
        self._frozen = False

    def register(self, template: TransformationTemplate) -> TransformationTemplate:
        if self._frozen:
            raise RegistryFrozenError("template registry is frozen")
        self._templates.append(template)
        return template

    def freeze(self) -> TemplateRegistry:
        self._frozen = True
        return TemplateRegistry(self._templates)


__all__ = ["TemplateRegistry", "TemplateRegistryBuilder"]
