"""Render a resolved class plan as a Java retainer source file."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from jinja2 import Environment, StrictUndefined

from retention_compiler.domain.models import ClassPlan, TypeBinding

RETAINER_SUFFIX: Final[str] = "$$StateRetainer"
DEFAULT_TEMPLATE_NAME: Final[str] = "retainer.java.j2"

_VERSION_RE: Final[re.Pattern[str]] = re.compile(r"\{#\s*template-version:\s*([^\s#]+)\s*#\}")


class RendererError(RuntimeError):
    """Raised when the retainer template is missing or unusable."""


@dataclass(frozen=True, slots=True)
class RenderedSource:
    class_name: str
    retainer_name: str
    file_name: str
    source: str
    source_hash: str
    template_version: str


class JavaSourceRenderer:
    """Deterministic retainer renderer backed by a strict jinja2 template."""

    def __init__(
        self,
        *,
        template_root: Path | str | None = None,
        template_name: str = DEFAULT_TEMPLATE_NAME,
    ) -> None:
        root = Path(template_root) if template_root is not None else _default_template_root()
        template_path = (root / template_name).resolve()
        if not template_path.is_file():
            raise RendererError(f"retainer template not found: {template_path}")

        self._template_path = template_path
        self._template_source = template_path.read_text(encoding="utf-8").replace("\r\n", "\n")
        self._environment = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            newline_sequence="\n",
            keep_trailing_newline=True,
        )
        self._template = self._environment.from_string(self._template_source)

    @property
    def template_path(self) -> Path:
        return self._template_path

    def render(self, plan: ClassPlan) -> RenderedSource:
        package_name, _, simple_name = plan.class_name.rpartition(".")
        retainer_name = f"{simple_name}{RETAINER_SUFFIX}"
        source = self._template.render(
            package_name=package_name,
            retainer_name=retainer_name,
            target_type=_target_type(plan),
            type_parameters=_type_parameter_clause(plan.type_parameters),
            save_statements=[item.accessors.save.statement for item in plan.fields],
            restore_statements=[item.accessors.restore.statement for item in plan.fields],
        )
        return RenderedSource(
            class_name=plan.class_name,
            retainer_name=retainer_name,
            file_name=f"{retainer_name}.java",
            source=source,
            source_hash=hashlib.sha256(source.encode("utf-8")).hexdigest(),
            template_version=_extract_template_version(self._template_source),
        )


def _target_type(plan: ClassPlan) -> str:
    if not plan.type_parameters:
        return plan.class_name
    names = ", ".join(item.raw for item in plan.type_parameters)
    return f"{plan.class_name}<{names}>"


def _type_parameter_clause(parameters: tuple[TypeBinding, ...]) -> str:
    if not parameters:
        return ""
    rendered = []
    for parameter in parameters:
        bounds = [item.display for item in parameter.bounds if item.raw != "java.lang.Object"]
        if bounds:
            rendered.append(f"{parameter.raw} extends {' & '.join(bounds)}")
        else:
            rendered.append(parameter.raw)
    return f"<{', '.join(rendered)}> "


def _extract_template_version(source: str) -> str:
    match = _VERSION_RE.search(source)
    return match.group(1) if match else "unversioned"


def _default_template_root() -> Path:
    return Path(__file__).resolve().parent / "templates"


__all__ = ["JavaSourceRenderer", "RETAINER_SUFFIX", "RenderedSource", "RendererError"]
