"""Deterministic YAML loader for converter and template registrations."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Final, TypeAlias

from retention_compiler.domain.errors import RegistryLoadError, TypeSyntaxError
from retention_compiler.domain.models import Bound, TransformationTemplate, TypeBinding
from retention_compiler.emission.snippets import SnippetError, validate_snippet
from retention_compiler.introspection.type_parser import ArityLookup, parse_type
from retention_compiler.registry.converters import ConverterRegistry, ConverterRegistryBuilder
from retention_compiler.registry.templates import TemplateRegistry, TemplateRegistryBuilder
from retention_compiler.utils import coercion

PathLike: TypeAlias = str | os.PathLike[str]

_ALLOWED_ROOT_FIELDS: Final[frozenset[str]] = frozenset({"converters", "templates"})
_REQUIRED_CONVERTER_FIELDS: Final[frozenset[str]] = frozenset({"type", "converter"})
_REQUIRED_TEMPLATE_FIELDS: Final[frozenset[str]] = frozenset({"name", "save", "restore"})
_ALLOWED_TEMPLATE_FIELDS: Final[frozenset[str]] = frozenset(
    {"name", "constraints", "bound", "annotation", "save", "restore"}
)

_read_yaml = partial(coercion.read_yaml, error=RegistryLoadError)
_check_fields = partial(coercion.check_fields, error=RegistryLoadError)
_as_string_key_mapping = partial(coercion.as_string_key_mapping, error=RegistryLoadError)
_as_list = partial(coercion.as_list, error=RegistryLoadError)
_coerce_non_empty_str = partial(coercion.coerce_non_empty_str, error=RegistryLoadError)
_coerce_qualified_name = partial(coercion.coerce_qualified_name, error=RegistryLoadError)


@dataclass(frozen=True, slots=True)
class RegistryBundle:
    """Frozen registries shared read-only by every resolution in one pass."""

    converters: ConverterRegistry
    templates: TemplateRegistry
    source_files: tuple[Path, ...] = ()

    @classmethod
    def empty(cls) -> RegistryBundle:
        return cls(converters=ConverterRegistry(), templates=TemplateRegistry())


def load_registries(
    paths: PathLike | Sequence[PathLike] = (),
    *,
    arity: ArityLookup | None = None,
) -> RegistryBundle:
    """Load every ``*.yaml`` registration file.

    Directories contribute their files in lexicographic order; the resulting
    order (file order, then order within a file) is the template tie-break.
    """

    candidates = [paths] if isinstance(paths, (str, os.PathLike)) else list(paths)
    files: list[Path] = []
    for candidate in candidates:
        root = Path(candidate).expanduser()
        if not root.exists():
            raise FileNotFoundError(f"registry path does not exist: {root}")
        if root.is_dir():
            files.extend(sorted(root.glob("*.yaml"), key=lambda path: (path.name, path.as_posix())))
        else:
            files.append(root)

    converters = ConverterRegistryBuilder()
    templates = TemplateRegistryBuilder()
    for source_file in files:
        register_document(
            _read_yaml(source_file),
            location=source_file.name,
            converters=converters,
            templates=templates,
            arity=arity,
        )

    return RegistryBundle(
        converters=converters.freeze(),
        templates=templates.freeze(),
        source_files=tuple(files),
    )


def register_document(
    document: object,
    *,
    location: str,
    converters: ConverterRegistryBuilder,
    templates: TemplateRegistryBuilder,
    arity: ArityLookup | None = None,
) -> None:
    """Append the registrations of one parsed document to the builders."""

    if document is None:
        return
    parsed = _as_string_key_mapping(document, location)
    unknown = sorted(set(parsed) - _ALLOWED_ROOT_FIELDS)
    if unknown:
        raise RegistryLoadError(f"{location}: unexpected fields: {unknown}")

    for index, item in enumerate(_as_list(parsed.get("converters"), f"{location}.converters")):
        path = f"{location}.converters[{index}]"
        entry = _as_string_key_mapping(item, path)
        _check_fields(
            entry,
            path,
            required=_REQUIRED_CONVERTER_FIELDS,
            allowed=_REQUIRED_CONVERTER_FIELDS,
        )
        converters.register(
            _coerce_type(entry["type"], f"{path}.type", arity),
            _coerce_qualified_name(entry["converter"], f"{path}.converter"),
        )

    for index, item in enumerate(_as_list(parsed.get("templates"), f"{location}.templates")):
        templates.register(_parse_template(item, f"{location}.templates[{index}]", arity))


def _parse_template(value: object, path: str, arity: ArityLookup | None) -> TransformationTemplate:
    entry = _as_string_key_mapping(value, path)
    _check_fields(
        entry, path, required=_REQUIRED_TEMPLATE_FIELDS, allowed=_ALLOWED_TEMPLATE_FIELDS
    )

    raw_constraints = entry.get("constraints", [])
    if isinstance(raw_constraints, str):
        raw_constraints = [raw_constraints]
    constraints = tuple(
        _coerce_type(item, f"{path}.constraints[{index}]", arity)
        for index, item in enumerate(_as_list(raw_constraints, f"{path}.constraints"))
    )
    bound = _coerce_bound(entry.get("bound", Bound.EXACT.value), f"{path}.bound")
    annotation_raw = entry.get("annotation")
    annotation = (
        _coerce_qualified_name(annotation_raw, f"{path}.annotation")
        if annotation_raw is not None
        else None
    )

    try:
        return TransformationTemplate(
            name=_coerce_non_empty_str(entry["name"], f"{path}.name"),
            constraints=constraints,
            bound=bound,
            required_annotation=annotation,
            save=_coerce_snippet(entry["save"], f"{path}.save"),
            restore=_coerce_snippet(entry["restore"], f"{path}.restore"),
        )
    except ValueError as exc:
        raise RegistryLoadError(f"{path}: {exc}") from exc


def _coerce_type(value: object, path: str, arity: ArityLookup | None) -> TypeBinding:
    parsed = _coerce_non_empty_str(value, path)
    try:
        return parse_type(parsed, arity=arity)
    except TypeSyntaxError as exc:
        raise RegistryLoadError(f"{path}: {exc}") from exc


def _coerce_bound(value: object, path: str) -> Bound:
    raw = _coerce_non_empty_str(value, path).lower()
    if raw == "exactly":
        raw = Bound.EXACT.value
    try:
        return Bound(raw)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in Bound)
        raise RegistryLoadError(
            f"{path}: invalid bound {raw!r}; expected one of: {allowed}"
        ) from exc


def _coerce_snippet(value: object, path: str) -> str:
    source = _coerce_non_empty_str(value, path)
    try:
        return validate_snippet(source)
    except SnippetError as exc:
        raise RegistryLoadError(f"{path}: {exc}") from exc


__all__ = ["RegistryBundle", "load_registries", "register_document"]
