"""Exception hierarchy for build-time resolution failures."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from retention_compiler.domain.models import FieldDescriptor, StorageKey, TypeBinding


class RetentionError(Exception):
    """Root of every error raised by the compiler."""


class TypeSyntaxError(RetentionError, ValueError):
    """Raised when a textual type expression cannot be parsed."""

    def __init__(self, text: str, position: int, reason: str) -> None:
        self.text = text
        self.position = position
        self.reason = reason
        super().__init__(f"invalid type {text!r} at offset {position}: {reason}")


class UnknownTypeError(RetentionError, LookupError):
    """Raised when the metadata provider has no declaration for a class."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown type: {name}")


class RegistryLoadError(RetentionError, ValueError):
    """Raised when converter/template registrations are malformed."""


class RegistryFrozenError(RetentionError, RuntimeError):
    """Raised when registering into a registry that resolution already reads."""


class ResolutionError(RetentionError):
    """Base class for failures tied to one field."""

    def __init__(self, field: FieldDescriptor, message: str) -> None:
        self.field = field
        super().__init__(message)


class UnsupportedTypeError(ResolutionError):
    """No strategy matched the field's type."""

    def __init__(self, field: FieldDescriptor, binding: TypeBinding | None = None) -> None:
        self.binding = binding if binding is not None else field.binding
        super().__init__(
            field,
            f"unsupported type {self.binding.display} for field {field.qualified_name}",
        )


class EmissionError(ResolutionError):
    """Accessor code for a resolved field could not be generated."""


class AmbiguousConstraintError(RetentionError):
    """Two templates share a constraint signature, so only order could tell them apart."""

    def __init__(self, first: str, second: str, signature: str) -> None:
        self.first = first
        self.second = second
        super().__init__(
            f"templates {first!r} and {second!r} declare the same constraint {signature}"
        )


class InheritanceKeyCollisionError(RetentionError, AssertionError):
    """Two collected fields produced the same storage key."""

    def __init__(self, key: StorageKey, first: FieldDescriptor, second: FieldDescriptor) -> None:
        self.key = key
        super().__init__(
            f"storage key {key.value!r} assigned to both "
            f"{first.qualified_name} and {second.qualified_name}"
        )


class ClassCompilationError(RetentionError):
    """Every field failure of one class, reported together."""

    def __init__(self, class_name: str, errors: Iterable[ResolutionError]) -> None:
        self.class_name = class_name
        self.errors: tuple[ResolutionError, ...] = tuple(errors)
        if not self.errors:
            detail = "unknown failure"
        else:
            detail = "\n".join(f"- {item}" for item in self.errors)
        super().__init__(f"cannot generate state retainer for {class_name}:\n{detail}")


__all__ = [
    "AmbiguousConstraintError",
    "ClassCompilationError",
    "EmissionError",
    "InheritanceKeyCollisionError",
    "RegistryFrozenError",
    "RegistryLoadError",
    "ResolutionError",
    "RetentionError",
    "TypeSyntaxError",
    "UnknownTypeError",
    "UnsupportedTypeError",
]
