"""
retention-compiler: generate per-class state retainers for annotated fields.

File: src/retention_compiler/__init__.py
Last updated: 2026-10-17

Purpose
- Package root. Defines package-level metadata and import boundaries.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
