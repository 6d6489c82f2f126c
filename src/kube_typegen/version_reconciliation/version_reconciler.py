"""Selection or combination of the operative schema version."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from kube_typegen.schema_model import (
    ArrayNode,
    EnumerationNode,
    MapNode,
    ObjectNode,
    ReferenceNode,
    ScalarNode,
    SchemaDocument,
    SchemaNode,
    SchemaVersion,
    UnknownNode,
)
from kube_typegen.type_graph.analysis_errors import IrreconcilableUnion, ReconcileError
from kube_typegen.type_graph.graph_models import Diagnostic
from kube_typegen.type_graph.naming import SchemaPath

from .api_versions import ApiVersion

if TYPE_CHECKING:
    from kube_typegen.configuration.runtime_settings import GeneratorConfig

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciledSchema:
    """The one schema document analysis runs on."""

    document: SchemaDocument
    version_label: str
    diagnostics: tuple[Diagnostic, ...] = ()


@dataclass
class _MergeContext:
    relaxed: bool
    definitions: dict[str, SchemaNode]
    conflicting_definitions: set[str] = field(default_factory=set)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def reconcile_versions(
    versions: Sequence[SchemaVersion], config: GeneratorConfig, *, root_name: str = "root"
) -> ReconciledSchema:
    """Pick, or merge, the schema version that type synthesis runs on.

    A pinned version wins. Otherwise the single storage version is used, then
    the highest-priority served version. With `combine_versions` every
    version is merged in priority order into one document.

    Raises:
      ReconcileError: For a missing pin, duplicate labels, several storage
        versions or no versions at all.
      IrreconcilableUnion: When combined versions disagree on a field type
        outside relaxed mode.
    """
    if not versions:
        raise ReconcileError("resource definition has no versions")
    labels = [version.label for version in versions]
    duplicates = sorted({label for label in labels if labels.count(label) > 1})
    if duplicates:
        raise ReconcileError(f"duplicate version labels: {', '.join(duplicates)}")

    ordered = sorted(versions, key=lambda version: ApiVersion.parse(version.label).priority_key())
    if config.version_pin is not None:
        for version in ordered:
            if version.label == config.version_pin:
                return ReconciledSchema(document=version.document, version_label=version.label)
        raise ReconcileError(
            f"Version '{config.version_pin}' not found; available versions are "
            f"{', '.join(version.label for version in ordered)}"
        )

    storage = [version for version in versions if version.storage]
    if len(storage) > 1:
        raise ReconcileError(
            f"multiple storage versions: {', '.join(version.label for version in storage)}"
        )
    if config.combine_versions and len(ordered) > 1:
        return _combine(ordered, config, root_name)

    if storage:
        selected = storage[0]
    else:
        served = [version for version in ordered if version.served]
        selected = served[0] if served else ordered[0]
    _LOGGER.debug("selected version %s", selected.label)
    return ReconciledSchema(document=selected.document, version_label=selected.label)


def _combine(
    ordered: Sequence[SchemaVersion], config: GeneratorConfig, root_name: str
) -> ReconciledSchema:
    primary = ordered[0]
    context = _MergeContext(relaxed=config.relaxed, definitions=dict(primary.document.definitions))
    root = primary.document.root
    for version in ordered[1:]:
        _merge_definitions(context, version.document.definitions)
        root = _merge(root, version.document.root, SchemaPath.root(root_name), context)
        _LOGGER.debug("merged version %s into %s", version.label, primary.label)
    return ReconciledSchema(
        document=SchemaDocument(root=root, definitions=context.definitions),
        version_label=primary.label,
        diagnostics=tuple(context.diagnostics),
    )


def _merge_definitions(context: _MergeContext, definitions: Mapping[str, SchemaNode]) -> None:
    for target, definition in definitions.items():
        existing = context.definitions.get(target)
        if existing is None:
            context.definitions[target] = definition
        elif existing != definition:
            context.conflicting_definitions.add(target)


def _merge(
    first: SchemaNode, second: SchemaNode, path: SchemaPath, context: _MergeContext
) -> SchemaNode:
    if first == second:
        return first
    if isinstance(first, ObjectNode) and isinstance(second, ObjectNode):
        return _merge_objects(first, second, path, context)
    if isinstance(first, ArrayNode) and isinstance(second, ArrayNode):
        return replace(
            first,
            items=_merge(first.items, second.items, path.child_items(), context),
            nullable=first.nullable or second.nullable,
        )
    if isinstance(first, MapNode) and isinstance(second, MapNode):
        return replace(
            first,
            value=_merge(first.value, second.value, path.child_value(), context),
            nullable=first.nullable or second.nullable,
        )
    if isinstance(first, ScalarNode) and isinstance(second, ScalarNode):
        return _merge_scalars(first, second, path, context)
    if isinstance(first, EnumerationNode) and isinstance(second, EnumerationNode):
        return _merge_enumerations(first, second, path, context)
    if isinstance(first, ReferenceNode) and isinstance(second, ReferenceNode):
        conflicting = context.conflicting_definitions
        definition = context.definitions.get(first.target)
        if (
            first.target not in conflicting
            and second.target not in conflicting
            and definition is not None
            and definition == context.definitions.get(second.target)
        ):
            return replace(first, nullable=first.nullable or second.nullable)
        return _irreconcilable(
            f"versions reference different definitions ({first.target}, {second.target})",
            first,
            path,
            context,
        )
    if isinstance(first, UnknownNode) and isinstance(second, UnknownNode):
        return first
    return _irreconcilable(
        f"versions disagree on the shape ({_shape_name(first)} vs {_shape_name(second)})",
        first,
        path,
        context,
    )


def _merge_objects(
    first: ObjectNode, second: ObjectNode, path: SchemaPath, context: _MergeContext
) -> SchemaNode:
    properties: dict[str, SchemaNode] = {}
    for name, node in first.properties.items():
        if name in second.properties:
            properties[name] = _merge(
                node, second.properties[name], path.child_property(name), context
            )
        else:
            properties[name] = node
    for name, node in second.properties.items():
        properties.setdefault(name, node)
    return replace(
        first,
        properties=properties,
        required=first.required & second.required,
        preserve_unknown_fields=first.preserve_unknown_fields or second.preserve_unknown_fields,
        nullable=first.nullable or second.nullable,
        description=first.description or second.description,
    )


def _merge_scalars(
    first: ScalarNode, second: ScalarNode, path: SchemaPath, context: _MergeContext
) -> SchemaNode:
    if first.kind is not second.kind or first.int_or_string != second.int_or_string:
        return _irreconcilable(
            f"versions disagree on the scalar type ({_shape_name(first)} vs "
            f"{_shape_name(second)})",
            first,
            path,
            context,
        )
    if first.format != second.format:
        _LOGGER.debug(
            "keeping format %s over %s at %s", first.format, second.format, path.render()
        )
    return replace(
        first,
        nullable=first.nullable or second.nullable,
        description=first.description or second.description,
    )


def _merge_enumerations(
    first: EnumerationNode, second: EnumerationNode, path: SchemaPath, context: _MergeContext
) -> SchemaNode:
    if first.kind is not second.kind:
        return _irreconcilable(
            f"versions disagree on the enumeration type ({first.kind.value} vs "
            f"{second.kind.value})",
            first,
            path,
            context,
        )
    literals = list(first.literals)
    for literal in second.literals:
        if not any(type(literal) is type(seen) and literal == seen for seen in literals):
            literals.append(literal)
    return replace(
        first,
        literals=tuple(literals),
        nullable=first.nullable or second.nullable,
        default=first.default if first.default is not None else second.default,
    )


def _irreconcilable(
    message: str, first: SchemaNode, path: SchemaPath, context: _MergeContext
) -> SchemaNode:
    rendered = path.render()
    if not context.relaxed:
        raise IrreconcilableUnion(message, rendered)
    _LOGGER.warning("relaxed: treating %s as an opaque value (%s)", rendered, message)
    context.diagnostics.append(
        Diagnostic(
            path=rendered,
            classification=IrreconcilableUnion.classification,
            message=message,
        )
    )
    return UnknownNode(description=first.description)


def _shape_name(node: SchemaNode) -> str:
    if isinstance(node, ScalarNode):
        return "int-or-string" if node.int_or_string else node.kind.value
    if isinstance(node, EnumerationNode):
        return f"enum of {node.kind.value}"
    return type(node).__name__.removesuffix("Node").lower()
