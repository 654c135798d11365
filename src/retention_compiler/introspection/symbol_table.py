"""YAML-backed symbol table implementing ``MetadataProvider``.

A symbol table stands in for compiler reflection: each document declares
classes with their supertypes, type parameters, annotations and fields. The
bundled platform table (``platform.yaml``) declares the framework types the
built-in strategies know about and is layered under every user table.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Final, TypeAlias, cast

import yaml

from retention_compiler.domain.errors import TypeSyntaxError, UnknownTypeError
from retention_compiler.domain.models import OBJECT_TYPE, TypeBinding
from retention_compiler.introspection.provider import ClassDescription, FieldFacts
from retention_compiler.introspection.type_parser import (
    PRIMITIVE_NAMES,
    parse_type,
    parse_type_parameter,
)
from retention_compiler.utils.coercion import (
    as_list,
    as_string_key_mapping,
    check_fields,
    coerce_bool,
    coerce_identifier,
    coerce_non_empty_str,
    coerce_qualified_name,
    read_yaml,
)

PathLike: TypeAlias = str | os.PathLike[str]

PLATFORM_RESOURCE: Final[str] = "platform.yaml"

_ALLOWED_ROOT_FIELDS: Final[frozenset[str]] = frozenset({"classes", "annotation_types"})
_REQUIRED_CLASS_FIELDS: Final[frozenset[str]] = frozenset({"name"})
_ALLOWED_CLASS_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "superclass",
        "interfaces",
        "interface",
        "annotations",
        "type_parameters",
        "fields",
    }
)
_REQUIRED_FIELD_FIELDS: Final[frozenset[str]] = frozenset({"name", "type"})
_ALLOWED_FIELD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "type",
        "retained",
        "converter",
        "default",
        "nonnull",
        "static",
        "annotations",
    }
)


@dataclass(frozen=True, slots=True)
class _RawField:
    name: str
    type_text: str
    retained: bool
    converter: str | None
    default_literal: str | None
    nonnull: bool
    static: bool
    annotations: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class _RawClass:
    name: str
    superclass: str | None
    interfaces: tuple[str, ...]
    is_interface: bool
    annotations: tuple[str, ...]
    type_parameters: tuple[tuple[str, tuple[str, ...]], ...]
    fields: tuple[_RawField, ...]
    location: str


class SymbolTable:
    """In-memory class/field metadata with deterministic declaration order."""

    __slots__ = ("_classes", "_fields", "_inherited_annotations", "_source_files")

    def __init__(
        self,
        *,
        classes: Mapping[str, ClassDescription],
        fields: Mapping[tuple[str, str], FieldFacts],
        inherited_annotations: Iterable[str] = (),
        source_files: Sequence[Path] = (),
    ) -> None:
        self._classes = dict(classes)
        self._fields = dict(fields)
        self._inherited_annotations = frozenset(inherited_annotations)
        self._source_files = tuple(source_files)

    @property
    def class_names(self) -> tuple[str, ...]:
        """Declared class names in load order."""

        return tuple(self._classes)

    @property
    def source_files(self) -> tuple[Path, ...]:
        return self._source_files

    def has_class(self, name: str) -> bool:
        return name in self._classes

    def describe_class(self, name: str) -> ClassDescription:
        try:
            return self._classes[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    def describe_field(self, owner: str, name: str) -> FieldFacts:
        try:
            return self._fields[(owner, name)]
        except KeyError:
            raise UnknownTypeError(f"{owner}.{name}") from None

    def is_inherited_annotation(self, name: str) -> bool:
        return name in self._inherited_annotations

    def classes_with_retained_fields(self) -> tuple[str, ...]:
        """Classes declaring at least one retained, non-static field."""

        owners: list[str] = []
        for name, description in self._classes.items():
            for field_name in description.fields:
                facts = self._fields[(name, field_name)]
                if facts.retained and not facts.static:
                    owners.append(name)
                    break
        return tuple(owners)

    @classmethod
    def from_documents(
        cls,
        documents: Iterable[tuple[str, object]],
        *,
        include_platform: bool = True,
        source_files: Sequence[Path] = (),
    ) -> SymbolTable:
        """Build a table from ``(location, parsed_yaml)`` documents."""

        raw_classes: dict[str, _RawClass] = {}
        inherited: set[str] = set()

        layered: list[tuple[str, object]] = []
        if include_platform:
            layered.append((PLATFORM_RESOURCE, _load_platform_document()))
        layered.extend(documents)

        for location, document in layered:
            classes, annotation_types = _parse_document(document, location)
            for item in classes:
                previous = raw_classes.get(item.name)
                if previous is not None:
                    raise ValueError(
                        f"{item.location}: class {item.name!r} already declared "
                        f"at {previous.location}"
                    )
                raw_classes[item.name] = item
            inherited.update(name for name, is_inherited in annotation_types if is_inherited)

        return _link(raw_classes, inherited, source_files)

    @classmethod
    def load(
        cls,
        paths: PathLike | Sequence[PathLike],
        *,
        include_platform: bool = True,
    ) -> SymbolTable:
        """Load symbol files; directories contribute their ``*.yaml`` files in name order."""

        candidates = [paths] if isinstance(paths, (str, os.PathLike)) else list(paths)
        files: list[Path] = []
        for candidate in candidates:
            root = Path(candidate).expanduser()
            if not root.exists():
                raise FileNotFoundError(f"symbol table path does not exist: {root}")
            if root.is_dir():
                files.extend(sorted(root.glob("*.yaml"), key=lambda path: path.name))
            else:
                files.append(root)

        documents = [(path.name, read_yaml(path)) for path in files]
        return cls.from_documents(
            documents,
            include_platform=include_platform,
            source_files=files,
        )


def _link(
    raw_classes: Mapping[str, _RawClass],
    inherited_annotations: set[str],
    source_files: Sequence[Path],
) -> SymbolTable:
    arities = {name: len(item.type_parameters) for name, item in raw_classes.items()}

    def arity(name: str) -> int | None:
        return arities.get(name)

    classes: dict[str, ClassDescription] = {}
    fields: dict[tuple[str, str], FieldFacts] = {}

    for name, item in raw_classes.items():
        parameters: list[TypeBinding] = []
        for index, (parameter, bounds) in enumerate(item.type_parameters):
            try:
                parameters.append(parse_type_parameter(parameter, bounds, arity=arity))
            except TypeSyntaxError as exc:
                raise ValueError(f"{item.location}.type_parameters[{index}]: {exc}") from exc
        in_scope = {binding.raw: binding for binding in parameters}

        classes[name] = ClassDescription(
            name=name,
            superclass=item.superclass,
            interfaces=item.interfaces,
            ancestors=_ancestors(name, raw_classes),
            fields=tuple(entry.name for entry in item.fields),
            annotations=item.annotations,
            type_parameters=tuple(parameters),
            is_interface=item.is_interface,
        )

        for index, entry in enumerate(item.fields):
            location = f"{item.location}.fields[{index}]"
            try:
                binding = parse_type(entry.type_text, type_variables=in_scope, arity=arity)
            except TypeSyntaxError as exc:
                raise ValueError(f"{location}.type: {exc}") from exc
            fields[(name, entry.name)] = FieldFacts(
                owner=name,
                name=entry.name,
                binding=binding,
                retained=entry.retained,
                converter=entry.converter,
                default_literal=entry.default_literal,
                nonnull=entry.nonnull,
                static=entry.static,
                annotations=entry.annotations,
            )

    return SymbolTable(
        classes=classes,
        fields=fields,
        inherited_annotations=inherited_annotations,
        source_files=source_files,
    )


def _ancestors(name: str, raw_classes: Mapping[str, _RawClass]) -> tuple[str, ...]:
    chain: list[str] = []
    seen = {name}
    current = raw_classes[name].superclass
    while current is not None:
        if current in seen:
            raise ValueError(f"class {name!r}: cyclic superclass chain through {current!r}")
        seen.add(current)
        chain.append(current)
        parent = raw_classes.get(current)
        if parent is None:
            if current != OBJECT_TYPE:
                chain.append(OBJECT_TYPE)
            break
        current = parent.superclass
    return tuple(chain)


def _load_platform_document() -> object:
    source = resources.files("retention_compiler.introspection").joinpath(PLATFORM_RESOURCE)
    try:
        return cast("object", yaml.safe_load(source.read_text(encoding="utf-8")))
    except yaml.YAMLError as exc:
        raise ValueError(f"{PLATFORM_RESOURCE}: invalid YAML ({exc})") from exc


def _parse_document(
    document: object, location: str
) -> tuple[list[_RawClass], list[tuple[str, bool]]]:
    if document is None:
        return [], []
    parsed = as_string_key_mapping(document, location)
    unknown = sorted(set(parsed) - _ALLOWED_ROOT_FIELDS)
    if unknown:
        raise ValueError(f"{location}: unexpected fields: {unknown}")

    classes: list[_RawClass] = []
    for index, item in enumerate(as_list(parsed.get("classes", []), f"{location}.classes")):
        classes.append(_parse_class(item, f"{location}.classes[{index}]"))

    annotation_types: list[tuple[str, bool]] = []
    raw_annotations = as_list(parsed.get("annotation_types", []), f"{location}.annotation_types")
    for index, item in enumerate(raw_annotations):
        path = f"{location}.annotation_types[{index}]"
        entry = as_string_key_mapping(item, path)
        name = coerce_qualified_name(entry.get("name"), f"{path}.name")
        annotation_types.append((name, coerce_bool(entry.get("inherited", False), path)))
    return classes, annotation_types


def _parse_class(value: object, location: str) -> _RawClass:
    parsed = as_string_key_mapping(value, location)
    check_fields(
        parsed, location, required=_REQUIRED_CLASS_FIELDS, allowed=_ALLOWED_CLASS_FIELDS
    )

    name = coerce_qualified_name(parsed["name"], f"{location}.name")
    if name in PRIMITIVE_NAMES:
        raise ValueError(f"{location}.name: {name} is a primitive type")
    is_interface = coerce_bool(parsed.get("interface", False), f"{location}.interface")

    raw_superclass = parsed.get("superclass")
    superclass: str | None
    if raw_superclass is not None:
        superclass = coerce_qualified_name(raw_superclass, f"{location}.superclass")
    elif is_interface or name == OBJECT_TYPE:
        superclass = None
    else:
        superclass = OBJECT_TYPE

    interfaces = _coerce_name_tuple(parsed.get("interfaces", []), f"{location}.interfaces")
    annotations = _coerce_name_tuple(parsed.get("annotations", []), f"{location}.annotations")

    type_parameters: list[tuple[str, tuple[str, ...]]] = []
    raw_parameters = as_list(parsed.get("type_parameters", []), f"{location}.type_parameters")
    for index, item in enumerate(raw_parameters):
        path = f"{location}.type_parameters[{index}]"
        if isinstance(item, str):
            type_parameters.append((coerce_identifier(item, path), ()))
            continue
        entry = as_string_key_mapping(item, path)
        parameter = coerce_identifier(entry.get("name"), f"{path}.name")
        bounds = tuple(
            coerce_non_empty_str(bound, f"{path}.bounds[{bound_index}]")
            for bound_index, bound in enumerate(as_list(entry.get("bounds", []), f"{path}.bounds"))
        )
        type_parameters.append((parameter, bounds))

    fields: list[_RawField] = []
    seen_names: set[str] = set()
    for index, item in enumerate(as_list(parsed.get("fields", []), f"{location}.fields")):
        raw_field = _parse_field(item, f"{location}.fields[{index}]")
        if raw_field.name in seen_names:
            raise ValueError(f"{location}.fields[{index}]: duplicate field {raw_field.name!r}")
        seen_names.add(raw_field.name)
        fields.append(raw_field)

    return _RawClass(
        name=name,
        superclass=superclass,
        interfaces=interfaces,
        is_interface=is_interface,
        annotations=annotations,
        type_parameters=tuple(type_parameters),
        fields=tuple(fields),
        location=f"{location}({name})",
    )


def _parse_field(value: object, location: str) -> _RawField:
    parsed = as_string_key_mapping(value, location)
    check_fields(
        parsed, location, required=_REQUIRED_FIELD_FIELDS, allowed=_ALLOWED_FIELD_FIELDS
    )

    converter = parsed.get("converter")
    default = parsed.get("default")
    return _RawField(
        name=coerce_identifier(parsed["name"], f"{location}.name"),
        type_text=coerce_non_empty_str(parsed["type"], f"{location}.type"),
        retained=coerce_bool(parsed.get("retained", False), f"{location}.retained"),
        converter=(
            coerce_qualified_name(converter, f"{location}.converter")
            if converter is not None
            else None
        ),
        default_literal=(
            _coerce_literal(default, f"{location}.default") if default is not None else None
        ),
        nonnull=coerce_bool(parsed.get("nonnull", False), f"{location}.nonnull"),
        static=coerce_bool(parsed.get("static", False), f"{location}.static"),
        annotations=_coerce_name_tuple(parsed.get("annotations", []), f"{location}.annotations"),
    )


def _coerce_name_tuple(value: object, path: str) -> tuple[str, ...]:
    names: list[str] = []
    for index, item in enumerate(as_list(value, path)):
        name = coerce_qualified_name(item, f"{path}[{index}]")
        if name not in names:
            names.append(name)
    return tuple(names)


def _coerce_literal(value: object, path: str) -> str:
    # YAML turns `0` and `false` into scalars; keep their Java spelling.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return coerce_non_empty_str(value, path)


__all__ = ["PLATFORM_RESOURCE", "SymbolTable"]
