"""
retention-compiler — domain layer

File: src/retention_compiler/domain/__init__.py
Last updated: 2026-10-17

Purpose
- Domain types shared across stages: TypeBinding, FieldDescriptor, StorageKey,
  ConverterEntry, TransformationTemplate and the ResolvedStrategy union.

Functional requirements
- Domain objects are frozen and hashable so resolution stays idempotent.

Non-functional requirements
- Domain layer has no IO and no third-party dependencies.
"""

from retention_compiler.domain.errors import (
    AmbiguousConstraintError,
    ClassCompilationError,
    EmissionError,
    InheritanceKeyCollisionError,
    RegistryFrozenError,
    RegistryLoadError,
    ResolutionError,
    RetentionError,
    TypeSyntaxError,
    UnknownTypeError,
    UnsupportedTypeError,
)
from retention_compiler.domain.keys import derive_storage_key
from retention_compiler.domain.models import (
    AccessorCall,
    AccessorDirection,
    AccessorPair,
    Bound,
    BuiltinArray,
    BuiltinParameterized,
    BuiltinPrimitive,
    CatalogEntry,
    ClassPlan,
    ConverterEntry,
    ConverterOrigin,
    ConverterStrategy,
    FieldDescriptor,
    FieldPlan,
    NullGuard,
    ResolvedStrategy,
    Shape,
    StorageKey,
    StrategyKind,
    TemplateStrategy,
    TransformationTemplate,
    TypeBinding,
    WildcardBinding,
)

__all__ = [
    "AccessorCall",
    "AccessorDirection",
    "AccessorPair",
    "AmbiguousConstraintError",
    "Bound",
    "BuiltinArray",
    "BuiltinParameterized",
    "BuiltinPrimitive",
    "CatalogEntry",
    "ClassCompilationError",
    "ClassPlan",
    "ConverterEntry",
    "ConverterOrigin",
    "ConverterStrategy",
    "EmissionError",
    "FieldDescriptor",
    "FieldPlan",
    "InheritanceKeyCollisionError",
    "NullGuard",
    "RegistryFrozenError",
    "RegistryLoadError",
    "ResolutionError",
    "ResolvedStrategy",
    "RetentionError",
    "Shape",
    "StorageKey",
    "StrategyKind",
    "TemplateStrategy",
    "TransformationTemplate",
    "TypeBinding",
    "TypeSyntaxError",
    "UnknownTypeError",
    "UnsupportedTypeError",
    "WildcardBinding",
    "derive_storage_key",
]
