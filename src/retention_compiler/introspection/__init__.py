"""
retention-compiler — introspection layer

File: src/retention_compiler/introspection/__init__.py
Last updated: 2026-10-17

Purpose
- Metadata provider contract, YAML-backed symbol tables, type expression
  parsing, and the subtype oracle used by constraint matching.

Functional requirements
- Class hierarchies are explicit inputs; nothing here touches a live type system.
"""

from retention_compiler.introspection.hierarchy import TypeHierarchy
from retention_compiler.introspection.provider import (
    ClassDescription,
    FieldFacts,
    MetadataProvider,
)
from retention_compiler.introspection.symbol_table import SymbolTable
from retention_compiler.introspection.type_parser import (
    PRIMITIVE_NAMES,
    parse_type,
    parse_type_parameter,
)

__all__ = [
    "ClassDescription",
    "FieldFacts",
    "MetadataProvider",
    "PRIMITIVE_NAMES",
    "SymbolTable",
    "TypeHierarchy",
    "parse_type",
    "parse_type_parameter",
]
