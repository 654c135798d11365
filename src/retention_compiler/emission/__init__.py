"""
retention-compiler — emission layer

File: src/retention_compiler/emission/__init__.py
Last updated: 2026-10-17

Purpose
- Produce save/restore accessor descriptors for resolved fields and render the
  generated retainer source.

Functional requirements
- Restore descriptors expose the field's declared type.
- Fields hidden by a subclass are reached through a cast to their owner.
- Template snippets render with strict, whitelisted variables.
"""

from retention_compiler.emission.accessor_emitter import AccessorEmitter, receiver_for
from retention_compiler.emission.java_renderer import JavaSourceRenderer, RenderedSource
from retention_compiler.emission.snippets import SnippetError, render_snippet

__all__ = [
    "AccessorEmitter",
    "JavaSourceRenderer",
    "RenderedSource",
    "SnippetError",
    "receiver_for",
    "render_snippet",
]
