"""CLI smoke tests."""

from click.testing import CliRunner
from kube_typegen.cli import cli


def test_cli_displays_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "analyze" in result.output
    assert "versions" in result.output
    assert "generate-config" in result.output


def test_analyze_help_lists_generator_options() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["analyze", "--help"])

    assert result.exit_code == 0
    for option in ("--api-version", "--combine-versions", "--relaxed", "--derive", "--overrides"):
        assert option in result.output
