"""Field collection across class hierarchies."""

from retention_compiler.catalog.field_catalog import DEFAULT_FRAMEWORK_ROOTS, FieldCatalog

__all__ = ["DEFAULT_FRAMEWORK_ROOTS", "FieldCatalog"]
