"""Capability annotation and elision over a finished type graph."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from kube_typegen.type_graph.graph_models import (
    CompositeType,
    EnumeratedType,
    ExternalRef,
    GeneratedRef,
    GeneratedType,
    MapRef,
    OpaqueRef,
    OptionalRef,
    PrimitiveRef,
    SchemaCapabilityMode,
    SequenceRef,
    TypeGraph,
    TypeGraphFrozenError,
    TypeKind,
    TypeRef,
    iter_references,
    type_references,
)

from .capability_targets import Capability, CapabilityRule, all_types

if TYPE_CHECKING:
    from kube_typegen.configuration.runtime_settings import GeneratorConfig

_LOGGER = logging.getLogger(__name__)


def requested_capability_rules(config: GeneratorConfig) -> tuple[CapabilityRule, ...]:
    """Rules from the configuration plus the ones implied by builders and schema mode."""
    rules = list(config.extra_capabilities)
    if config.enable_builders:
        rules.append(all_types(Capability.BUILDER))
    if config.schema_capability_mode is SchemaCapabilityMode.DERIVED:
        rules.append(all_types(Capability.SCHEMA_REFLECTION))
    return tuple(rules)


def resolve_capabilities(graph: TypeGraph, config: GeneratorConfig) -> TypeGraph:
    """Annotate every type with its capabilities, then freeze the graph.

    Capabilities that cannot hold for a type are withheld silently: `default`
    needs a known default for every required field, `ordering` needs a type
    free of opaque values and `builder` applies to records only. Types named
    in `elide` are flagged, never removed, so every reference still resolves.
    """
    if graph.is_frozen:
        raise TypeGraphFrozenError("Capabilities were already resolved for this graph.")

    rules = requested_capability_rules(config)
    analysis = _CapabilityAnalysis(graph)
    for name, generated in list(graph.types.items()):
        requested = {
            rule.capability for rule in rules if rule.target.applies_to(name, generated.kind)
        }
        granted = frozenset(
            capability for capability in requested if analysis.grants(capability, generated)
        )
        withheld = requested - granted
        if withheld:
            _LOGGER.debug("withholding %s from %s", ", ".join(sorted(withheld)), name)
        updated = replace(generated, capabilities=granted, elided=name in config.elide)
        if not config.enable_docs:
            updated = _without_documentation(updated)
        graph.replace(updated)
    graph.freeze()
    return graph


class _CapabilityAnalysis:
    """Memoized default and ordering checks over the original graph structure."""

    def __init__(self, graph: TypeGraph) -> None:
        self._graph = graph
        self._defaultable: dict[str, bool] = {}
        self._orderable: dict[str, bool] = {}

    def grants(self, capability: str, generated: GeneratedType) -> bool:
        if capability == Capability.DEFAULT:
            return self._grants_default(generated)
        if capability == Capability.ORDERING:
            return self._is_orderable(generated.name)
        if capability == Capability.BUILDER:
            return _grants_builder(generated.kind)
        return True

    def _grants_default(self, generated: GeneratedType) -> bool:
        kind = generated.kind
        if kind is TypeKind.RECORD:
            return self._is_defaultable(generated.name)
        if kind is TypeKind.UNIT_ENUM:
            return isinstance(generated, EnumeratedType) and generated.default_variant is not None
        if kind is TypeKind.TAGGED_ENUM:
            return False
        raise ValueError(f"Unhandled type kind: {kind}")

    def _is_defaultable(self, name: str) -> bool:
        if name in self._defaultable:
            return self._defaultable[name]
        self._defaultable[name] = False
        generated = self._graph.get(name)
        if generated is None:
            return False
        if isinstance(generated, CompositeType):
            result = all(
                self._reference_has_default(item.type_ref)
                for item in generated.fields
                if not item.optional
            )
        else:
            result = self._grants_default(generated)
        self._defaultable[name] = result
        return result

    def _reference_has_default(self, reference: TypeRef) -> bool:
        if isinstance(reference, (PrimitiveRef, OpaqueRef, SequenceRef, MapRef, OptionalRef)):
            return True
        if isinstance(reference, ExternalRef):
            return reference.shape is not None
        if isinstance(reference, GeneratedRef):
            return not reference.indirect and self._is_defaultable(reference.name)
        raise TypeError(f"Unsupported type reference: {reference!r}")

    def _is_orderable(self, name: str) -> bool:
        if name not in self._orderable:
            self._orderable[name] = not any(
                self._holds_opaque(reachable) for reachable in self._reachable(name)
            )
        return self._orderable[name]

    def _reachable(self, name: str) -> set[str]:
        seen: set[str] = set()
        pending = [name]
        while pending:
            current = pending.pop()
            generated = self._graph.get(current)
            if current in seen or generated is None:
                continue
            seen.add(current)
            for reference in type_references(generated):
                pending.extend(
                    nested.name
                    for nested in iter_references(reference)
                    if isinstance(nested, GeneratedRef)
                )
        return seen

    def _holds_opaque(self, name: str) -> bool:
        generated = self._graph.get(name)
        return generated is not None and any(
            isinstance(nested, OpaqueRef)
            for reference in type_references(generated)
            for nested in iter_references(reference)
        )


def _grants_builder(kind: TypeKind) -> bool:
    if kind is TypeKind.RECORD:
        return True
    if kind in (TypeKind.UNIT_ENUM, TypeKind.TAGGED_ENUM):
        return False
    raise ValueError(f"Unhandled type kind: {kind}")


def _without_documentation(generated: GeneratedType) -> GeneratedType:
    if isinstance(generated, CompositeType):
        return replace(
            generated,
            documentation=None,
            fields=tuple(replace(item, documentation=None) for item in generated.fields),
        )
    return replace(
        generated,
        documentation=None,
        variants=tuple(replace(variant, documentation=None) for variant in generated.variants),
    )
