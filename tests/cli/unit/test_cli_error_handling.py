"""CLI error-handling tests."""

from __future__ import annotations

import json
from pathlib import Path

from kube_typegen.cli import main


def _write_definition(tmp_path: Path, versions: list[dict]) -> Path:
    definition = {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "spec": {"group": "example.io", "names": {"kind": "Widget"}, "versions": versions},
    }
    path = tmp_path / "widget.yaml"
    path.write_text(json.dumps(definition), encoding="utf-8")
    return path


def _version(label: str, x_type: str, *, storage: bool = False) -> dict:
    return {
        "name": label,
        "served": True,
        "storage": storage,
        "schema": {
            "openAPIV3Schema": {"type": "object", "properties": {"x": {"type": x_type}}}
        },
    }


def test_missing_argument_returns_clean_click_error(capsys) -> None:
    exit_code = main(["analyze"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "Missing argument" in captured.err
    assert "Traceback" not in captured.err


def test_unknown_option_returns_clean_click_error(capsys) -> None:
    exit_code = main(["analyze", "widget.yaml", "--bogus"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "No such option: --bogus" in captured.err
    assert "Traceback" not in captured.err


def test_missing_definition_file_is_reported(tmp_path: Path, capsys) -> None:
    exit_code = main(["analyze", str(tmp_path / "absent.yaml")])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Resource definition file not found" in captured.err


def test_irreconcilable_versions_report_the_schema_path(tmp_path: Path, capsys) -> None:
    path = _write_definition(
        tmp_path, [_version("v1", "string", storage=True), _version("v1beta1", "integer")]
    )

    exit_code = main(["analyze", str(path), "--combine-versions"])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert captured.err.startswith("Widget.x: versions disagree on the scalar type")
    assert captured.out == ""


def test_unknown_pinned_version_lists_available_ones(tmp_path: Path, capsys) -> None:
    path = _write_definition(tmp_path, [_version("v1", "string", storage=True)])

    exit_code = main(["analyze", str(path), "--api-version", "v2"])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Version 'v2' not found; available versions are v1" in captured.err


def test_invalid_capability_rule_is_reported(tmp_path: Path, capsys) -> None:
    path = _write_definition(tmp_path, [_version("v1", "string", storage=True)])

    exit_code = main(["analyze", str(path), "--derive", "@bogus=default"])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Unknown selector '@bogus'" in captured.err


def test_relaxed_run_reports_diagnostics_and_logs_a_warning(tmp_path: Path, capsys) -> None:
    path = _write_definition(
        tmp_path,
        [
            {
                "name": "v1",
                "storage": True,
                "schema": {
                    "openAPIV3Schema": {
                        "type": "object",
                        "properties": {"odd": {"description": "no type"}},
                    }
                },
            }
        ],
    )

    exit_code = main(["analyze", str(path), "--relaxed", "--format", "json"])
    captured = capsys.readouterr()

    assert exit_code == 0
    projected = json.loads(captured.out)
    assert projected["diagnostics"] == [
        {
            "path": "Widget.odd",
            "classification": "unsupported-schema-construct",
            "message": "untyped schema without x-kubernetes-preserve-unknown-fields",
        }
    ]
    assert projected["types"][0]["fields"][0]["type"] == "optional[any]"
    assert "[kube-typegen] WARNING relaxed: treating Widget.odd" in captured.err
