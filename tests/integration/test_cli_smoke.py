"""
retention-compiler — CLI smoke contracts

File: tests/integration/test_cli_smoke.py
Last updated: 2026-10-17

Purpose
- Enforce CLI behavior for `retain resolve|emit|check|config`.
- Verify exit codes, JSON payloads, and generated file side effects.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from retention_compiler.main import ExitCode, cli_entrypoint
from retention_compiler.ui.cli import run_cli

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"

SYMBOLS = """
annotation_types:
  - {name: com.example.Keep, inherited: true}
classes:
  - name: com.example.BaseActivity
    superclass: android.app.Activity
    fields:
      - {name: count, type: int, retained: true}
  - name: com.example.MainActivity
    superclass: com.example.BaseActivity
    fields:
      - {name: count, type: java.lang.Integer, retained: true}
      - {name: title, type: java.lang.StringBuilder, retained: true}
      - {name: price, type: com.example.Money, retained: true}
      - {name: ledger, type: com.example.Ledger, retained: true}
  - name: com.example.Money
  - name: com.example.Ledger
    annotations: [com.example.Keep]
"""

BROKEN_SYMBOLS = """
classes:
  - name: com.example.BrokenActivity
    superclass: android.app.Activity
    fields:
      - {name: host, type: android.app.Activity, retained: true}
"""

REGISTRY = """
converters:
  - type: com.example.Money
    converter: com.example.MoneyConverter
templates:
  - name: keep
    annotation: com.example.Keep
    save: "{{ value }}.saveTo({{ bundle }}, {{ key }})"
    restore: "{{ value }}.restoreFrom({{ bundle }}, {{ key }})"
"""


def _write(path: Path, contents: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("RETENTION_"):
            monkeypatch.delenv(name)
    yield
    structlog.reset_defaults()


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    _write(tmp_path / "symbols" / "app.yaml", SYMBOLS)
    _write(tmp_path / "registry" / "app.yaml", REGISTRY)
    _write(
        tmp_path / "retention.toml",
        """
[catalog]
symbol_paths = ["symbols"]

[registry]
paths = ["registry"]

[observability]
log_level = "WARNING"
""".strip(),
    )
    return tmp_path


@pytest.mark.integration
def test_resolve_json_reports_every_field(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(["resolve", "--json"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["command"] == "resolve"
    assert payload["failures"] == []
    plans = {item["class"]: item for item in payload["plans"]}
    assert list(plans) == ["com.example.BaseActivity", "com.example.MainActivity"]
    plan = plans["com.example.MainActivity"]
    strategies = {item["key"]: item["strategy"] for item in plan["fields"]}
    assert strategies == {
        "com.example.MainActivity.count": "builtin_primitive(Int)",
        "com.example.MainActivity.title": "builtin_primitive(CharSequence)",
        "com.example.MainActivity.price": (
            "converter(com.example.MoneyConverter, registered)"
        ),
        "com.example.MainActivity.ledger": "template(keep)",
        "com.example.BaseActivity.count": "builtin_primitive(Int)",
    }


@pytest.mark.integration
def test_resolve_text_output(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = run_cli(["resolve", "com.example.MainActivity", "--key-prefix", "s:"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "com.example.MainActivity:" in out
    assert "s:com.example.BaseActivity.count" in out


@pytest.mark.integration
def test_emit_writes_retainers_by_package(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(["emit", "--output-dir", "out"])

    assert exit_code == 0
    generated = project / "out" / "com" / "example" / "MainActivity$$StateRetainer.java"
    assert generated.is_file()
    source = generated.read_text(encoding="utf-8")
    assert "public final class MainActivity$$StateRetainer {" in source
    assert (
        'bundle.putInt("com.example.BaseActivity.count", '
        "((com.example.BaseActivity) target).count);"
    ) in source
    assert (
        'new com.example.MoneyConverter().save(bundle, target.price, '
        '"com.example.MainActivity.price");'
    ) in source
    assert "OK" in capsys.readouterr().out


@pytest.mark.integration
def test_emit_dry_run_writes_nothing(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = run_cli(["emit", "--dry-run"])

    assert exit_code == 0
    assert "// MainActivity$$StateRetainer.java" in capsys.readouterr().out
    assert not (project / "generated").exists()


@pytest.mark.integration
def test_unsupported_field_fails_class_but_not_batch(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write(project / "symbols" / "broken.yaml", BROKEN_SYMBOLS)

    exit_code = run_cli(["resolve", "--json"])

    assert exit_code == 1
    payload = json.loads(capsys.readouterr().out)
    assert [plan["class"] for plan in payload["plans"]] == [
        "com.example.BaseActivity",
        "com.example.MainActivity",
    ]
    (failure,) = payload["failures"]
    assert failure["class"] == "com.example.BrokenActivity"
    assert "com.example.BrokenActivity.host" in failure["errors"][0]


@pytest.mark.integration
def test_unknown_target_class_is_input_error(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(["resolve", "com.example.Nope"])

    assert exit_code == 2
    assert "unknown target class" in capsys.readouterr().err


@pytest.mark.integration
def test_check_json_summarizes_inputs(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = run_cli(["check", "--json"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["targets"] == ["com.example.BaseActivity", "com.example.MainActivity"]
    assert payload["converters"] == 1
    assert payload["templates"] == ["keep"]
    assert [Path(item).name for item in payload["symbol_files"]] == ["app.yaml"]


@pytest.mark.integration
def test_config_json_shows_cli_overrides(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(["config", "--json", "--key-style", "simple", "--max-workers", "2"])

    assert exit_code == 0
    config = json.loads(capsys.readouterr().out)["config"]
    assert config["keys"]["style"] == "simple"
    assert config["compiler"]["max_workers"] == 2
    assert config["observability"]["log_level"] == "WARNING"


@pytest.mark.integration
def test_entrypoint_maps_input_errors_to_exit_two(
    project: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert cli_entrypoint(["check", "--config", "missing.toml"]) == ExitCode.INPUT_ERROR
    assert "config file not found" in capsys.readouterr().err

    _write(
        project / "registry" / "dup.yaml",
        """
templates:
  - name: keep-again
    annotation: com.example.Keep
    save: "{{ value }}"
    restore: "{{ value }}"
""",
    )
    assert cli_entrypoint(["check"]) == ExitCode.INPUT_ERROR
    assert "same constraint" in capsys.readouterr().err


@pytest.mark.integration
def test_entrypoint_maps_usage_errors_to_exit_two(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint([]) == ExitCode.INPUT_ERROR
    assert "usage" in capsys.readouterr().err


@pytest.mark.integration
def test_module_entrypoint_subprocess(project: Path) -> None:
    env = os.environ.copy()
    existing_pythonpath = env.get("PYTHONPATH")
    env["PYTHONPATH"] = (
        str(SRC_PATH) if not existing_pythonpath else f"{SRC_PATH}:{existing_pythonpath}"
    )
    completed = subprocess.run(
        [sys.executable, "-m", "retention_compiler", "check", "--json"],
        cwd=project,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )

    assert completed.returncode == 0, completed.stderr
    assert json.loads(completed.stdout)["command"] == "check"
