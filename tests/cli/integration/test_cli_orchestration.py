"""CLI orchestration integration tests."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from click.testing import CliRunner
from kube_typegen.cli import CliError, cli


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _sample(name: str) -> str:
    return str(_project_root() / "samples" / name)


def _types_by_name(projected: dict) -> dict[str, dict]:
    return {entry["name"]: entry for entry in projected["types"]}


def test_versions_command_lists_versions_by_priority() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["versions", _sample("server-crd.yaml")])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["v1beta1 (storage)", "v1alpha1"]


def test_analyze_prints_yaml_projection_of_storage_version() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["analyze", _sample("server-crd.yaml")])

    assert result.exit_code == 0
    projected = yaml.safe_load(result.output)
    assert projected["version"] == "v1beta1"
    assert projected["root"] == "Server"
    assert [entry["name"] for entry in projected["types"]] == [
        "Operator",
        "MatchExpressions",
        "PodSelector",
        "ProxyProtocol",
        "Spec",
        "Status",
        "Server",
    ]
    spec_fields = {field["name"]: field for field in _types_by_name(projected)["Spec"]["fields"]}
    assert spec_fields["port"]["type"] == "external IntOrString"
    assert spec_fields["podSelector"]["absence"] == "required"
    assert projected["diagnostics"] == []


def test_analyze_applies_configuration_file() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "analyze",
            _sample("server-crd.yaml"),
            "--config",
            _sample("generator-config.yaml"),
            "--format",
            "json",
        ],
    )

    assert result.exit_code == 0
    types = _types_by_name(json.loads(result.output))
    assert {name: entry["capabilities"] for name, entry in types.items()} == {
        "Operator": ["equality"],
        "MatchExpressions": ["equality"],
        "PodSelector": ["default", "equality"],
        "ProxyProtocol": ["default", "equality"],
        "Spec": ["default", "equality"],
        "Status": ["default", "equality"],
        "Server": ["default", "equality"],
    }
    assert types["MatchExpressions"]["elided"] is True
    assert types["Spec"]["documentation"] == "Describes the server."
    selector_fields = {field["name"]: field["type"] for field in types["PodSelector"]["fields"]}
    assert selector_fields["matchLabels"] == "optional[external LabelMap]"
    assert [field["name"] for field in types["Status"]["fields"]] == ["conditions"]


def test_flags_suppress_shapes_and_request_capabilities() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "analyze",
            _sample("server-crd.yaml"),
            "--no-condition",
            "--builders",
            "--derive",
            "Spec=ordering",
            "--format",
            "json",
        ],
    )

    assert result.exit_code == 0
    projected = json.loads(result.output)
    assert [entry["name"] for entry in projected["types"]][-4:] == [
        "Status",
        "Conditions",
        "ServerStatus",
        "Server",
    ]
    types = _types_by_name(projected)
    assert [variant["label"] for variant in types["Status"]["variants"]] == [
        "True",
        "False",
        "Unknown",
    ]
    assert types["Spec"]["capabilities"] == ["builder"]
    assert types["Operator"]["capabilities"] == []


def test_analyze_all_versions_prints_one_graph_per_version() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["analyze", _sample("server-crd.yaml"), "--all-versions", "--format", "json"]
    )

    assert result.exit_code == 0
    projected = json.loads(result.output)
    assert list(projected) == ["v1beta1", "v1alpha1"]
    assert [entry["name"] for entry in projected["v1alpha1"]["types"]] == ["Spec", "Server"]


def test_generate_config_writes_scaffold_once(tmp_path: Path) -> None:
    runner = CliRunner()
    output_path = tmp_path / "kube-typegen.yaml"

    result = runner.invoke(cli, ["generate-config", "--output", str(output_path)])

    assert result.exit_code == 0
    assert output_path.exists()
    assert str(output_path.resolve()) in result.output

    second = runner.invoke(cli, ["generate-config", "--output", str(output_path)])

    assert second.exit_code == 1
    assert isinstance(second.exception, CliError)
    assert "already exists" in str(second.exception)
