"""Type graph projection tests."""

from __future__ import annotations

import pytest
from kube_typegen.configuration import GeneratorConfig
from kube_typegen.known_shapes import KnownShape
from kube_typegen.schema_model import ListType, ScalarKind, parse_schema_document
from kube_typegen.type_graph import (
    ExternalRef,
    GeneratedRef,
    MapRef,
    OpaqueRef,
    OptionalRef,
    PrimitiveRef,
    SequenceRef,
    build_type_graph,
    project_type_graph,
    render_type_reference,
)


@pytest.mark.parametrize(
    ("reference", "expected"),
    [
        (PrimitiveRef(ScalarKind.STRING, "date-time"), "string(date-time)"),
        (OpaqueRef(), "any"),
        (GeneratedRef("Tree", indirect=True), "Tree (indirect)"),
        (ExternalRef("Condition", KnownShape.CONDITION), "external Condition"),
        (SequenceRef(PrimitiveRef(ScalarKind.STRING), ListType.SET), "set[string]"),
        (
            SequenceRef(GeneratedRef("Port"), ListType.MAP, ("name", "protocol")),
            "list[Port] keyed by name, protocol",
        ),
        (MapRef(OpaqueRef()), "map[string, any]"),
        (OptionalRef(SequenceRef(GeneratedRef("Groups"))), "optional[list[Groups]]"),
    ],
)
def test_render_type_reference(reference, expected: str) -> None:
    assert render_type_reference(reference) == expected


def test_projects_records_and_enumerations() -> None:
    document = parse_schema_document(
        {
            "type": "object",
            "description": "A widget.",
            "required": ["mode"],
            "properties": {
                "mode": {"type": "string", "enum": ["fast", "slow"], "default": "slow"},
                "size": {"type": "integer", "description": "Size in units."},
            },
        }
    )
    graph = build_type_graph(document, "Widget", GeneratorConfig(), version_label="v1")

    projected = project_type_graph(graph)

    assert projected["version"] == "v1"
    assert projected["root"] == "Widget"
    assert projected["map_representation"] == "ordered"
    assert projected["diagnostics"] == []
    assert projected["types"] == [
        {
            "name": "Mode",
            "kind": "unit_enum",
            "origin": "Widget.mode",
            "variants": [
                {"label": "Fast", "literal": "fast"},
                {"label": "Slow", "literal": "slow"},
            ],
            "default_variant": "Slow",
            "capabilities": [],
        },
        {
            "name": "Widget",
            "kind": "record",
            "origin": "Widget",
            "documentation": "A widget.",
            "fields": [
                {"name": "mode", "type": "Mode", "optional": False, "absence": "required"},
                {
                    "name": "size",
                    "type": "optional[integer]",
                    "optional": True,
                    "absence": "omit_when_absent",
                    "documentation": "Size in units.",
                },
            ],
            "capabilities": [],
        },
    ]
