"""Collect retained fields across a class hierarchy and assign storage keys."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Final

import structlog

from retention_compiler.domain.errors import InheritanceKeyCollisionError
from retention_compiler.domain.keys import derive_storage_key
from retention_compiler.domain.models import OBJECT_TYPE, CatalogEntry, FieldDescriptor
from retention_compiler.introspection.provider import MetadataProvider

DEFAULT_FRAMEWORK_ROOTS: Final[tuple[str, ...]] = (
    OBJECT_TYPE,
    "android.app.Activity",
    "android.app.Fragment",
    "android.view.View",
)


class FieldCatalog:
    """Ordered view of every retained field a target class must save.

    Traversal starts at the target class and climbs its superclass chain,
    stopping before the first framework root. Fields keep declaration order
    within each class. A field that hides an ancestor field of the same name is
    a separate entry with its own key.
    """

    __slots__ = ("_framework_roots", "_key_prefix", "_key_style", "_logger", "_provider")

    def __init__(
        self,
        provider: MetadataProvider,
        *,
        framework_roots: Iterable[str] = DEFAULT_FRAMEWORK_ROOTS,
        key_prefix: str = "",
        key_style: str = "qualified",
        logger: Any | None = None,
    ) -> None:
        self._provider = provider
        self._framework_roots = frozenset(framework_roots) | {OBJECT_TYPE}
        self._key_prefix = key_prefix
        self._key_style = key_style
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def framework_roots(self) -> frozenset[str]:
        return self._framework_roots

    def lineage(self, class_name: str) -> tuple[str, ...]:
        """Classes whose fields are collected, most-derived first."""

        if class_name in self._framework_roots:
            return ()
        description = self._provider.describe_class(class_name)
        chain = [class_name]
        for ancestor in description.ancestors:
            if ancestor in self._framework_roots:
                break
            if not self._provider.has_class(ancestor):
                break
            chain.append(ancestor)
        return tuple(chain)

    def collect(self, class_name: str) -> tuple[CatalogEntry, ...]:
        entries: list[CatalogEntry] = []
        by_key: dict[str, FieldDescriptor] = {}

        for owner in self.lineage(class_name):
            description = self._provider.describe_class(owner)
            for field_name in description.fields:
                facts = self._provider.describe_field(owner, field_name)
                if not facts.retained:
                    continue
                if facts.static:
                    self._logger.warning(
                        "catalog_static_field_skipped",
                        target=class_name,
                        field=f"{owner}.{field_name}",
                    )
                    continue

                descriptor = facts.to_descriptor()
                key = derive_storage_key(
                    owner,
                    field_name,
                    prefix=self._key_prefix,
                    style=self._key_style,
                )
                previous = by_key.get(key.value)
                if previous is not None:
                    raise InheritanceKeyCollisionError(key, previous, descriptor)
                by_key[key.value] = descriptor
                entries.append(CatalogEntry(descriptor=descriptor, key=key))

        self._logger.debug(
            "catalog_collected",
            target=class_name,
            field_count=len(entries),
        )
        return tuple(entries)


__all__ = ["DEFAULT_FRAMEWORK_ROOTS", "FieldCatalog"]
