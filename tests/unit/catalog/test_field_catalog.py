"""
retention-compiler — unit tests for retained-field collection
"""

from __future__ import annotations

import pytest
import yaml
from structlog.testing import capture_logs

from retention_compiler.catalog import FieldCatalog
from retention_compiler.domain import InheritanceKeyCollisionError
from retention_compiler.introspection import SymbolTable

SYMBOLS = """
classes:
  - name: com.example.BaseActivity
    superclass: android.app.Activity
    fields:
      - {name: count, type: int, retained: true}
      - {name: title, type: java.lang.String, retained: true}
  - name: com.example.MainActivity
    superclass: com.example.BaseActivity
    fields:
      - {name: count, type: long, retained: true}
      - {name: ignored, type: int}
      - {name: TAG, type: java.lang.String, retained: true, static: true}
      - {name: extra, type: boolean, retained: true}
  - name: com.example.Model
    fields:
      - {name: value, type: double, retained: true}
  - name: com.example.Sub
    superclass: com.example.Model
"""


def _catalog(**kwargs: object) -> FieldCatalog:
    table = SymbolTable.from_documents([("symbols.yaml", yaml.safe_load(SYMBOLS))])
    return FieldCatalog(table, **kwargs)  # type: ignore[arg-type]


@pytest.mark.unit
def test_lineage_stops_at_framework_root() -> None:
    catalog = _catalog()

    assert catalog.lineage("com.example.MainActivity") == (
        "com.example.MainActivity",
        "com.example.BaseActivity",
    )
    assert catalog.lineage("android.app.Activity") == ()


@pytest.mark.unit
def test_collect_orders_most_derived_first_then_declaration_order() -> None:
    entries = _catalog().collect("com.example.MainActivity")

    assert [entry.descriptor.qualified_name for entry in entries] == [
        "com.example.MainActivity.count",
        "com.example.MainActivity.extra",
        "com.example.BaseActivity.count",
        "com.example.BaseActivity.title",
    ]


@pytest.mark.unit
def test_hidden_fields_get_distinct_keys() -> None:
    entries = _catalog(key_prefix="s:").collect("com.example.MainActivity")
    keys = [entry.key.value for entry in entries]

    assert "s:com.example.MainActivity.count" in keys
    assert "s:com.example.BaseActivity.count" in keys
    assert len(set(keys)) == len(keys)


@pytest.mark.unit
def test_repeated_collection_yields_identical_keys() -> None:
    catalog = _catalog(key_prefix="s:")

    first = catalog.collect("com.example.MainActivity")
    second = catalog.collect("com.example.MainActivity")
    fresh = _catalog(key_prefix="s:").collect("com.example.MainActivity")

    assert [entry.key for entry in first] == [entry.key for entry in second]
    assert [entry.key for entry in first] == [entry.key for entry in fresh]
    assert first == second


@pytest.mark.unit
def test_static_fields_are_skipped_with_warning() -> None:
    with capture_logs() as logs:
        entries = _catalog().collect("com.example.MainActivity")

    assert all(entry.descriptor.name != "TAG" for entry in entries)
    assert any(
        item["event"] == "catalog_static_field_skipped"
        and item["field"] == "com.example.MainActivity.TAG"
        for item in logs
    )


@pytest.mark.unit
def test_plain_class_hierarchy_collects_inherited_fields() -> None:
    entries = _catalog().collect("com.example.Sub")

    assert [entry.key.value for entry in entries] == ["com.example.Model.value"]


@pytest.mark.unit
def test_simple_key_style_collision_is_reported() -> None:
    document = yaml.safe_load(
        """
classes:
  - name: com.one.Screen
    fields:
      - {name: count, type: int, retained: true}
  - name: com.two.Screen
    superclass: com.one.Screen
    fields:
      - {name: count, type: int, retained: true}
"""
    )
    table = SymbolTable.from_documents([("clash.yaml", document)])
    catalog = FieldCatalog(table, key_style="simple")

    with pytest.raises(InheritanceKeyCollisionError, match="Screen\\$count"):
        catalog.collect("com.two.Screen")
