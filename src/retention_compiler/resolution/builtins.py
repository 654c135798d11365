"""Types the state container can store natively, and the accessors that store them."""

from __future__ import annotations

from typing import Final

STRING: Final[str] = "java.lang.String"
INTEGER: Final[str] = "java.lang.Integer"
CHAR_SEQUENCE: Final[str] = "java.lang.CharSequence"
SERIALIZABLE: Final[str] = "java.io.Serializable"
PARCELABLE: Final[str] = "android.os.Parcelable"
BUNDLE: Final[str] = "android.os.Bundle"
IBINDER: Final[str] = "android.os.IBinder"
SIZE: Final[str] = "android.util.Size"
SIZE_F: Final[str] = "android.util.SizeF"
ARRAY_LIST: Final[str] = "java.util.ArrayList"
SPARSE_ARRAY: Final[str] = "android.util.SparseArray"

PRIMITIVE_ACCESSORS: Final[dict[str, str]] = {
    "boolean": "Boolean",
    "byte": "Byte",
    "short": "Short",
    "int": "Int",
    "long": "Long",
    "char": "Char",
    "float": "Float",
    "double": "Double",
}

BOXED_PRIMITIVES: Final[dict[str, str]] = {
    "java.lang.Boolean": "boolean",
    "java.lang.Byte": "byte",
    "java.lang.Short": "short",
    INTEGER: "int",
    "java.lang.Long": "long",
    "java.lang.Character": "char",
    "java.lang.Float": "float",
    "java.lang.Double": "double",
}

# Framework value types stored with a dedicated accessor.
VALUE_ACCESSORS: Final[dict[str, str]] = {
    STRING: "String",
    CHAR_SEQUENCE: "CharSequence",
    SIZE: "Size",
    SIZE_F: "SizeF",
    IBINDER: "Binder",
    BUNDLE: "Bundle",
    SERIALIZABLE: "Serializable",
    PARCELABLE: "Parcelable",
}

ARRAY_ACCESSORS: Final[dict[str, str]] = {
    **{primitive: f"{accessor}Array" for primitive, accessor in PRIMITIVE_ACCESSORS.items()},
    STRING: "StringArray",
    CHAR_SEQUENCE: "CharSequenceArray",
    PARCELABLE: "ParcelableArray",
}

CONTAINER_ACCESSORS: Final[dict[tuple[str, str], str]] = {
    (ARRAY_LIST, STRING): "StringArrayList",
    (ARRAY_LIST, INTEGER): "IntegerArrayList",
    (ARRAY_LIST, CHAR_SEQUENCE): "CharSequenceArrayList",
    (ARRAY_LIST, PARCELABLE): "ParcelableArrayList",
    (SPARSE_ARRAY, PARCELABLE): "SparseParcelableArray",
}

CONTAINERS: Final[frozenset[str]] = frozenset(container for container, _ in CONTAINER_ACCESSORS)

# Consulted in this order, so a type belonging to several families gets the first.
SUBTYPE_FAMILIES: Final[tuple[str, ...]] = (
    CHAR_SEQUENCE,
    BUNDLE,
    IBINDER,
    PARCELABLE,
    SIZE,
    SIZE_F,
    SERIALIZABLE,
)

# Families whose getters are generic in the element type, so the restore side
# can assign the result to any declared subtype without a cast.
POLYMORPHIC_FAMILIES: Final[frozenset[str]] = frozenset({PARCELABLE})

def array_element_families() -> tuple[str, ...]:
    """Reference families with an array accessor, in family order."""

    return tuple(family for family in SUBTYPE_FAMILIES if family in ARRAY_ACCESSORS)

def container_element_families(container: str) -> tuple[str, ...]:
    return tuple(
        family
        for family in SUBTYPE_FAMILIES
        if (container, family) in CONTAINER_ACCESSORS
    )

__all__ = [
    "ARRAY_ACCESSORS",
    "ARRAY_LIST",
    "BOXED_PRIMITIVES",
    "BUNDLE",
    "CHAR_SEQUENCE",
    "CONTAINERS",
    "CONTAINER_ACCESSORS",
    "IBINDER",
    "INTEGER",
    "PARCELABLE",
    "POLYMORPHIC_FAMILIES",
    "PRIMITIVE_ACCESSORS",
    "SERIALIZABLE",
    "SIZE",
    "SIZE_F",
    "SPARSE_ARRAY",
    "STRING",
    "SUBTYPE_FAMILIES",
    "VALUE_ACCESSORS",
    "array_element_families",
    "container_element_families",
]
