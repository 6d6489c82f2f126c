"""Type synthesis entities."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from kube_typegen.configuration.runtime_settings import GeneratorConfig
from kube_typegen.schema_model import ResourceDefinition
from kube_typegen.type_graph.graph_models import Diagnostic, TypeGraph


@dataclass(frozen=True)
class SynthesisRequest:
    """Input contract for synthesizing one type graph."""

    definition: ResourceDefinition
    config: GeneratorConfig
    should_cancel: Callable[[], bool] | None = None


@dataclass(frozen=True)
class SynthesisOutcome:
    """Output contract for one finished synthesis."""

    graph: TypeGraph
    version_label: str
    diagnostics: tuple[Diagnostic, ...]
