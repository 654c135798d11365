"""
retention-compiler — resolution layer

File: src/retention_compiler/resolution/__init__.py
Last updated: 2026-10-17

Purpose
- Decide, for every retained field, which strategy saves and restores it.

Functional requirements
- Strategy priority is fixed and the first match wins.
- Template constraints are conjunctive; registration order breaks ties.
- Resolution is deterministic and idempotent over frozen registries.
"""

from retention_compiler.resolution.constraint_matcher import ConstraintMatcher
from retention_compiler.resolution.strategy_resolver import StrategyResolver

__all__ = ["ConstraintMatcher", "StrategyResolver"]
