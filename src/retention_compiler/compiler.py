"""
retention-compiler — compilation pipeline

File: src/retention_compiler/compiler.py
Last updated: 2026-10-17

Purpose
- Drive catalog collection, strategy resolution and accessor emission for one
  target class, and fan independent classes out over a worker pool.

Functional requirements
- A class compiles fully or not at all; every failing field is reported.
- Batch runs isolate failures per class and keep input order in the result.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

import structlog

from retention_compiler.catalog.field_catalog import DEFAULT_FRAMEWORK_ROOTS, FieldCatalog
from retention_compiler.domain.errors import (
    ClassCompilationError,
    ResolutionError,
    RetentionError,
)
from retention_compiler.domain.models import CatalogEntry, ClassPlan, FieldPlan
from retention_compiler.emission.accessor_emitter import AccessorEmitter, receiver_for
from retention_compiler.introspection.hierarchy import TypeHierarchy
from retention_compiler.introspection.provider import MetadataProvider
from retention_compiler.registry.loader import RegistryBundle
from retention_compiler.resolution.strategy_resolver import StrategyResolver


@dataclass(frozen=True, slots=True)
class CompilationResult:
    """Outcome of one class in a batch."""

    class_name: str
    plan: ClassPlan | None = None
    error: RetentionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class BatchResult:
    results: tuple[CompilationResult, ...]

    @property
    def plans(self) -> tuple[ClassPlan, ...]:
        return tuple(item.plan for item in self.results if item.plan is not None)

    @property
    def failures(self) -> tuple[CompilationResult, ...]:
        return tuple(item for item in self.results if not item.ok)

    @property
    def ok(self) -> bool:
        return not self.failures


class RetentionCompiler:
    """Build :class:`ClassPlan` values from a metadata provider and frozen registries."""

    def __init__(
        self,
        provider: MetadataProvider,
        registries: RegistryBundle | None = None,
        *,
        framework_roots: Iterable[str] = DEFAULT_FRAMEWORK_ROOTS,
        key_prefix: str = "",
        key_style: str = "qualified",
        emitter: AccessorEmitter | None = None,
        logger: Any | None = None,
    ) -> None:
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._provider = provider
        self._hierarchy = TypeHierarchy(provider)
        self._catalog = FieldCatalog(
            provider,
            framework_roots=framework_roots,
            key_prefix=key_prefix,
            key_style=key_style,
            logger=self._logger,
        )
        self._resolver = StrategyResolver(self._hierarchy, registries, logger=self._logger)
        self._emitter = emitter if emitter is not None else AccessorEmitter()

    @property
    def catalog(self) -> FieldCatalog:
        return self._catalog

    @property
    def resolver(self) -> StrategyResolver:
        return self._resolver

    def compile_class(self, class_name: str) -> ClassPlan:
        """Plan every retained field of ``class_name``.

        Raises :class:`ClassCompilationError` listing every field that cannot be
        resolved or emitted; no partial plan is returned.
        """

        entries = self._catalog.collect(class_name)
        hidden = self._hidden_entries(class_name, entries)

        plans: list[FieldPlan] = []
        errors: list[ResolutionError] = []
        for entry in entries:
            descriptor = entry.descriptor
            receiver = receiver_for(
                descriptor.owner,
                class_name,
                hidden=(descriptor.owner, descriptor.name) in hidden,
            )
            try:
                strategy = self._resolver.resolve(descriptor)
                accessors = self._emitter.emit(descriptor, entry.key, strategy, receiver=receiver)
            except ResolutionError as exc:
                errors.append(exc)
                continue
            plans.append(
                FieldPlan(
                    descriptor=descriptor,
                    key=entry.key,
                    strategy=strategy,
                    accessors=accessors,
                )
            )

        if errors:
            self._logger.warning(
                "class_compilation_failed",
                target=class_name,
                failed_fields=[item.field.qualified_name for item in errors],
            )
            raise ClassCompilationError(class_name, errors)

        plan = ClassPlan(
            class_name=class_name,
            fields=tuple(plans),
            type_parameters=self._provider.describe_class(class_name).type_parameters,
        )
        self._logger.info(
            "class_compiled",
            target=class_name,
            field_count=len(plan.fields),
            strategies=[item.strategy.describe() for item in plan.fields],
        )
        return plan

    def compile_many(
        self,
        class_names: Sequence[str],
        *,
        max_workers: int | None = None,
    ) -> BatchResult:
        """Compile independent classes concurrently.

        Each worker only reads the provider and the frozen registries. A failure
        is recorded in that class's result and never affects the others.
        """

        ordered = list(dict.fromkeys(class_names))
        if not ordered:
            return BatchResult(results=())

        outcomes: dict[str, CompilationResult] = {}
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(self._compile_isolated, name): name for name in ordered}
            for future in as_completed(futures):
                result = future.result()
                outcomes[result.class_name] = result

        batch = BatchResult(results=tuple(outcomes[name] for name in ordered))
        self._logger.info(
            "batch_compiled",
            classes=len(ordered),
            failed=len(batch.failures),
            max_workers=max_workers,
        )
        return batch

    def _compile_isolated(self, class_name: str) -> CompilationResult:
        try:
            return CompilationResult(class_name=class_name, plan=self.compile_class(class_name))
        except RetentionError as exc:
            return CompilationResult(class_name=class_name, error=exc)

    def _hidden_entries(
        self,
        class_name: str,
        entries: Sequence[CatalogEntry],
    ) -> frozenset[tuple[str, str]]:
        """``(owner, field)`` pairs shadowed by a same-named field of a more-derived class."""

        if not entries:
            return frozenset()
        declared_below: set[str] = set()
        hidden: set[tuple[str, str]] = set()
        for owner in self._catalog.lineage(class_name):
            names = self._provider.describe_class(owner).fields
            hidden.update((owner, name) for name in names if name in declared_below)
            declared_below.update(names)
        return frozenset(hidden)


__all__ = ["BatchResult", "CompilationResult", "RetentionCompiler"]
