"""Plain-data projection of a type graph for emitters and output."""

from __future__ import annotations

from typing import Any

from kube_typegen.schema_model import ListType

from .graph_models import (
    CompositeType,
    ExternalRef,
    GeneratedRef,
    GeneratedType,
    MapRef,
    OpaqueRef,
    OptionalRef,
    PrimitiveRef,
    SequenceRef,
    TypeGraph,
    TypeRef,
)


def project_type_graph(graph: TypeGraph) -> dict[str, Any]:
    """Project a graph to nested dicts and lists.

    Types keep graph order, fields keep their order, and capabilities are
    sorted, so two equal graphs always project to equal data.
    """
    return {
        "version": graph.version_label,
        "root": render_type_reference(graph.root) if graph.root is not None else None,
        "map_representation": graph.map_representation.value,
        "schema_capability_mode": graph.schema_capability_mode.value,
        "types": [_project_type(generated) for generated in graph.types.values()],
        "diagnostics": [
            {
                "path": diagnostic.path,
                "classification": diagnostic.classification,
                "message": diagnostic.message,
            }
            for diagnostic in graph.diagnostics
        ],
    }


def render_type_reference(reference: TypeRef) -> str:
    """Render a reference as compact text, e.g. `optional[list[Groups]]`."""
    if isinstance(reference, PrimitiveRef):
        if reference.format:
            return f"{reference.kind.value}({reference.format})"
        return reference.kind.value
    if isinstance(reference, OpaqueRef):
        return "any"
    if isinstance(reference, GeneratedRef):
        return f"{reference.name} (indirect)" if reference.indirect else reference.name
    if isinstance(reference, ExternalRef):
        return f"external {reference.name}"
    if isinstance(reference, SequenceRef):
        item = render_type_reference(reference.item)
        if reference.list_type is ListType.SET:
            return f"set[{item}]"
        if reference.list_type is ListType.MAP and reference.map_keys:
            return f"list[{item}] keyed by {', '.join(reference.map_keys)}"
        return f"list[{item}]"
    if isinstance(reference, MapRef):
        return f"map[string, {render_type_reference(reference.value)}]"
    if isinstance(reference, OptionalRef):
        return f"optional[{render_type_reference(reference.inner)}]"
    raise TypeError(f"Unsupported type reference: {reference!r}")


def _project_type(generated: GeneratedType) -> dict[str, Any]:
    projected: dict[str, Any] = {
        "name": generated.name,
        "kind": generated.kind.value,
        "origin": generated.origin_path,
    }
    if generated.documentation:
        projected["documentation"] = generated.documentation
    if isinstance(generated, CompositeType):
        if generated.open_fields:
            projected["open_fields"] = True
        projected["fields"] = [
            _drop_empty(
                {
                    "name": item.name,
                    "type": render_type_reference(item.type_ref),
                    "optional": item.optional,
                    "absence": item.absence_policy.value,
                    "documentation": item.documentation,
                }
            )
            for item in generated.fields
        ]
    else:
        projected["variants"] = [
            _drop_empty(
                {
                    "label": variant.label,
                    "literal": variant.literal,
                    "payload": (
                        render_type_reference(variant.payload)
                        if variant.payload is not None
                        else None
                    ),
                    "documentation": variant.documentation,
                }
            )
            for variant in generated.variants
        ]
        if generated.default_variant is not None:
            projected["default_variant"] = generated.default_variant
    projected["capabilities"] = sorted(generated.capabilities)
    if generated.elided:
        projected["elided"] = True
    return projected


def _drop_empty(entry: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in entry.items() if value is not None}
