"""Configuration scaffold builder tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from kube_typegen.configuration import GeneratorConfig, load_configuration
from kube_typegen.configuration.config_scaffold_builder import (
    build_placeholder_configuration,
    write_placeholder_configuration,
)


def test_build_placeholder_configuration_lists_every_option() -> None:
    scaffold = build_placeholder_configuration()

    for key in (
        "version_pin",
        "combine_versions:",
        "enable_docs:",
        "enable_builders:",
        "schema_capability_mode:",
        "extra_capabilities:",
        "elide:",
        "relaxed:",
        "suppress_known_shapes:",
        "map_representation:",
        "auto:",
        "property_order:",
        "max_depth:",
        "overrides:",
    ):
        assert key in scaffold


def test_written_scaffold_loads_as_defaults(tmp_path: Path) -> None:
    output_path = tmp_path / "kube-typegen.yaml"

    written_path = write_placeholder_configuration(output_path)

    assert written_path == output_path.resolve()
    assert load_configuration(written_path) == GeneratorConfig()


def test_write_placeholder_configuration_fails_when_file_exists(tmp_path: Path) -> None:
    output_path = tmp_path / "kube-typegen.yaml"
    output_path.write_text("existing", encoding="utf-8")

    with pytest.raises(FileExistsError):
        write_placeholder_configuration(output_path)
