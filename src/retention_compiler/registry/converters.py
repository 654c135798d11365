"""Registered and field-level converter lookup."""

from __future__ import annotations

from collections.abc import Iterable

from retention_compiler.domain.errors import RegistryFrozenError, RegistryLoadError
from retention_compiler.domain.models import (
    ConverterEntry,
    ConverterOrigin,
    FieldDescriptor,
    TypeBinding,
)


class ConverterRegistry:
    """Immutable mapping from exact type patterns to converter references."""

    __slots__ = ("_by_pattern", "_entries")

    def __init__(self, entries: Iterable[ConverterEntry] = ()) -> None:
        ordered = tuple(entries)
        by_pattern: dict[TypeBinding, ConverterEntry] = {}
        for entry in ordered:
            if entry.origin is not ConverterOrigin.REGISTERED:
                raise RegistryLoadError(
                    f"{entry.converter}: only registered converters belong in the registry"
                )
            previous = by_pattern.get(entry.pattern)
            if previous is not None:
                raise RegistryLoadError(
                    f"type {entry.pattern.display} has two converters: "
                    f"{previous.converter} and {entry.converter}"
                )
            by_pattern[entry.pattern] = entry
        self._entries = ordered
        self._by_pattern = by_pattern

    @property
    def entries(self) -> tuple[ConverterEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, binding: TypeBinding) -> ConverterEntry | None:
        """Registered converter whose pattern equals ``binding`` exactly."""

        return self._by_pattern.get(binding)

    @staticmethod
    def explicit_for(field: FieldDescriptor) -> ConverterEntry | None:
        """Field-scoped converter declared on the field itself."""

        if field.converter is None:
            return None
        return ConverterEntry(
            pattern=field.binding,
            converter=field.converter,
            origin=ConverterOrigin.EXPLICIT,
        )


class ConverterRegistryBuilder:
    """Append-only staging area, frozen before any resolution starts."""

    __slots__ = ("_entries", "_frozen")

    def __init__(self) -> None:
        self._entries: list[ConverterEntry] = []
        self._frozen = False

    def register(self, pattern: TypeBinding, converter: str) -> ConverterEntry:
        if self._frozen:
            raise RegistryFrozenError("converter registry is frozen")
        entry = ConverterEntry(pattern=pattern, converter=converter)
        self._entries.append(entry)
        return entry

    def freeze(self) -> ConverterRegistry:
        self._frozen = True
        return ConverterRegistry(self._entries)


__all__ = ["ConverterRegistry", "ConverterRegistryBuilder"]
