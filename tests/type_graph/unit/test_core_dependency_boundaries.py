"""Boundary tests for type_graph internal dependencies."""

from __future__ import annotations

from pathlib import Path


def _project_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _core_modules() -> tuple[Path, ...]:
    type_graph_dir = _project_root() / "src" / "kube_typegen" / "type_graph"
    return (
        type_graph_dir / "graph_models.py",
        type_graph_dir / "graph_builder.py",
        type_graph_dir / "graph_projection.py",
        type_graph_dir / "naming.py",
    )


def test_type_graph_core_does_not_import_outer_layers() -> None:
    forbidden_import_fragments = (
        "import click",
        "import yaml",
        "kube_typegen.cli",
        "kube_typegen.type_synthesis",
        "kube_typegen.capability_resolution",
        "kube_typegen.version_reconciliation",
    )

    for module_path in _core_modules():
        text = module_path.read_text(encoding="utf-8")
        for fragment in forbidden_import_fragments:
            assert fragment not in text, f"Forbidden core dependency in {module_path}: {fragment}"


def test_configuration_is_imported_for_type_checking_only() -> None:
    for module_path in _core_modules():
        for line in module_path.read_text(encoding="utf-8").splitlines():
            if "kube_typegen.configuration" in line:
                assert line.startswith("    "), f"Runtime configuration import in {module_path}"
