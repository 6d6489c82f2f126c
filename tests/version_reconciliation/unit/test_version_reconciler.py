"""Version reconciliation tests."""

from __future__ import annotations

import pytest
from kube_typegen.configuration import GeneratorConfig
from kube_typegen.schema_model import (
    EnumerationNode,
    SchemaVersion,
    UnknownNode,
    parse_schema_document,
)
from kube_typegen.type_graph import IrreconcilableUnion, ReconcileError
from kube_typegen.version_reconciliation import reconcile_versions


def _version(label: str, raw: dict, *, served: bool = True, storage: bool = False):
    return SchemaVersion(
        label=label, document=parse_schema_document(raw), served=served, storage=storage
    )


def _object(properties: dict, required: tuple[str, ...] = ()) -> dict:
    return {"type": "object", "required": list(required), "properties": properties}


_STRING_X = _object({"x": {"type": "string"}})
_INTEGER_X = _object({"x": {"type": "integer"}})


def test_pinned_version_is_used() -> None:
    versions = [_version("v1", _STRING_X, storage=True), _version("v1beta1", _INTEGER_X)]

    reconciled = reconcile_versions(versions, GeneratorConfig(version_pin="v1beta1"))

    assert reconciled.version_label == "v1beta1"
    assert reconciled.document is versions[1].document


def test_missing_pin_lists_available_versions() -> None:
    versions = [_version("v1beta1", _STRING_X), _version("v1", _STRING_X)]

    with pytest.raises(ReconcileError, match="available versions are v1, v1beta1"):
        reconcile_versions(versions, GeneratorConfig(version_pin="v2"))


def test_storage_version_wins_over_priority() -> None:
    versions = [_version("v1", _STRING_X), _version("v1beta1", _INTEGER_X, storage=True)]

    assert reconcile_versions(versions, GeneratorConfig()).version_label == "v1beta1"


def test_highest_priority_served_version_without_storage() -> None:
    versions = [
        _version("v1alpha1", _STRING_X),
        _version("v2", _STRING_X, served=False),
        _version("v1", _STRING_X),
        _version("v2beta1", _STRING_X),
    ]

    assert reconcile_versions(versions, GeneratorConfig()).version_label == "v1"


@pytest.mark.parametrize(
    ("versions", "message"),
    [
        ([], "no versions"),
        (
            [_version("v1", _STRING_X), _version("v1", _STRING_X)],
            "duplicate version labels: v1",
        ),
        (
            [
                _version("v1", _STRING_X, storage=True),
                _version("v2", _STRING_X, storage=True),
            ],
            "multiple storage versions",
        ),
    ],
)
def test_invalid_version_sets(versions: list, message: str) -> None:
    with pytest.raises(ReconcileError, match=message):
        reconcile_versions(versions, GeneratorConfig())


def test_combining_conflicting_scalar_types_fails_with_path() -> None:
    versions = [_version("v1", _STRING_X), _version("v1beta1", _INTEGER_X)]

    with pytest.raises(IrreconcilableUnion) as excinfo:
        reconcile_versions(versions, GeneratorConfig(combine_versions=True), root_name="Widget")

    assert excinfo.value.path == "Widget.x"
    assert "string vs integer" in excinfo.value.message


def test_relaxed_combination_turns_conflicts_into_opaque_values() -> None:
    versions = [_version("v1", _STRING_X), _version("v1beta1", _INTEGER_X)]

    reconciled = reconcile_versions(
        versions, GeneratorConfig(combine_versions=True, relaxed=True), root_name="Widget"
    )

    assert reconciled.document.root.properties["x"] == UnknownNode()
    [diagnostic] = reconciled.diagnostics
    assert (diagnostic.path, diagnostic.classification) == ("Widget.x", "irreconcilable-union")


def test_combination_keeps_every_field_and_only_common_requirements() -> None:
    versions = [
        _version("v1beta1", _object({"a": {"type": "string"}}, required=("a",))),
        _version(
            "v1",
            _object({"a": {"type": "string"}, "b": {"type": "string"}}, required=("a", "b")),
        ),
    ]

    reconciled = reconcile_versions(versions, GeneratorConfig(combine_versions=True))

    assert reconciled.version_label == "v1"
    assert list(reconciled.document.root.properties) == ["a", "b"]
    assert reconciled.document.root.required == frozenset({"a"})


def test_combination_unions_enumeration_literals() -> None:
    versions = [
        _version("v1", _object({"mode": {"type": "string", "enum": ["A", "B"]}})),
        _version("v1beta1", _object({"mode": {"type": "string", "enum": ["B", "C"]}})),
    ]

    reconciled = reconcile_versions(versions, GeneratorConfig(combine_versions=True))

    mode = reconciled.document.root.properties["mode"]
    assert isinstance(mode, EnumerationNode)
    assert mode.literals == ("A", "B", "C")


def test_pin_takes_precedence_over_combination() -> None:
    versions = [_version("v1", _STRING_X), _version("v1beta1", _INTEGER_X)]

    reconciled = reconcile_versions(
        versions, GeneratorConfig(combine_versions=True, version_pin="v1beta1")
    )

    assert reconciled.version_label == "v1beta1"
    assert reconciled.diagnostics == ()
