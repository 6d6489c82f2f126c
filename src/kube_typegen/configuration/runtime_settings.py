"""Configuration domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from kube_typegen.capability_resolution.capability_targets import CapabilityRule
from kube_typegen.known_shapes import KnownShape
from kube_typegen.property_overrides import PropertyOverrides
from kube_typegen.type_graph.graph_models import (
    MapRepresentation,
    PropertyOrder,
    SchemaCapabilityMode,
)

DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True)
class GeneratorConfig:  # pylint: disable=too-many-instance-attributes
    """Options controlling one type synthesis run."""

    version_pin: str | None = None
    combine_versions: bool = False
    enable_docs: bool = False
    enable_builders: bool = False
    schema_capability_mode: SchemaCapabilityMode = SchemaCapabilityMode.DISABLED
    extra_capabilities: tuple[CapabilityRule, ...] = ()
    elide: frozenset[str] = frozenset()
    relaxed: bool = False
    suppress_known_shapes: frozenset[KnownShape] = frozenset()
    map_representation: MapRepresentation = MapRepresentation.ORDERED
    auto: bool = False
    property_order: PropertyOrder = PropertyOrder.DECLARED
    max_depth: int = DEFAULT_MAX_DEPTH
    overrides: PropertyOverrides = field(default_factory=PropertyOverrides)

    def effective(self) -> GeneratorConfig:
        """Apply `auto`, which turns on documentation and derived schema reflection."""
        if not self.auto:
            return self
        return replace(
            self,
            enable_docs=True,
            schema_capability_mode=SchemaCapabilityMode.DERIVED,
        )
