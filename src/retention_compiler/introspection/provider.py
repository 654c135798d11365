"""Pull-based metadata provider contract consumed by the catalog and resolver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from retention_compiler.domain.models import FieldDescriptor, TypeBinding


@dataclass(frozen=True, slots=True)
class FieldFacts:
    """Declared type and annotation facts of one field."""

    owner: str
    name: str
    binding: TypeBinding
    retained: bool = False
    converter: str | None = None
    default_literal: str | None = None
    nonnull: bool = False
    static: bool = False
    annotations: tuple[str, ...] = ()

    def to_descriptor(self) -> FieldDescriptor:
        return FieldDescriptor(
            owner=self.owner,
            name=self.name,
            binding=self.binding,
            retained=self.retained,
            converter=self.converter,
            default_literal=self.default_literal,
            nonnull=self.nonnull,
            annotations=self.annotations,
        )


@dataclass(frozen=True, slots=True)
class ClassDescription:
    """Declaration of one class or interface.

    ``ancestors`` is the superclass chain, most-derived first, excluding the
    class itself. ``fields`` lists declared field names in declaration order.
    """

    name: str
    superclass: str | None = None
    interfaces: tuple[str, ...] = ()
    ancestors: tuple[str, ...] = ()
    fields: tuple[str, ...] = ()
    annotations: tuple[str, ...] = ()
    type_parameters: tuple[TypeBinding, ...] = ()
    is_interface: bool = False

    @property
    def supertypes(self) -> tuple[str, ...]:
        """Direct supertypes, superclass first."""

        if self.superclass is None:
            return self.interfaces
        return (self.superclass, *self.interfaces)

    @property
    def arity(self) -> int:
        return len(self.type_parameters)


@runtime_checkable
class MetadataProvider(Protocol):
    """Synchronous source of class and field metadata."""

    def has_class(self, name: str) -> bool: ...

    def describe_class(self, name: str) -> ClassDescription:
        """Return the declaration of ``name`` or raise ``UnknownTypeError``."""
        ...

    def describe_field(self, owner: str, name: str) -> FieldFacts:
        """Return one field of ``owner`` or raise ``UnknownTypeError``."""
        ...

    def is_inherited_annotation(self, name: str) -> bool:
        """Whether annotation type ``name`` is inherited by subclasses."""
        ...


__all__ = ["ClassDescription", "FieldFacts", "MetadataProvider"]
