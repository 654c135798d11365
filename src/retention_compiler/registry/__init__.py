"""
retention-compiler — registration layer

File: src/retention_compiler/registry/__init__.py
Last updated: 2026-10-17

Purpose
- Converter and transformation-template registries, loaded once per pass from
  ``*.yaml`` files and frozen before resolution reads them.

Functional requirements
- Registration order is preserved and is the sole template tie-break.
- Registering after freeze is an error.
"""

from retention_compiler.registry.converters import ConverterRegistry, ConverterRegistryBuilder
from retention_compiler.registry.loader import RegistryBundle, load_registries, register_document
from retention_compiler.registry.templates import TemplateRegistry, TemplateRegistryBuilder

__all__ = [
    "ConverterRegistry",
    "ConverterRegistryBuilder",
    "RegistryBundle",
    "TemplateRegistry",
    "TemplateRegistryBuilder",
    "load_registries",
    "register_document",
]
