"""Type synthesis use-case service."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from kube_typegen.capability_resolution import resolve_capabilities
from kube_typegen.configuration.runtime_settings import GeneratorConfig
from kube_typegen.schema_model import ResourceDefinition
from kube_typegen.type_graph import build_type_graph
from kube_typegen.version_reconciliation import reconcile_versions, sort_version_labels

from .synthesis_contracts import SynthesisOutcome, SynthesisRequest

_LOGGER = logging.getLogger(__name__)


def synthesize_type_graph(request: SynthesisRequest) -> SynthesisOutcome:
    """Reconcile versions, build the graph and resolve capabilities for one request.

    Raises:
      TypeSynthesisError: Any analysis failure; no partial graph is returned.
    """
    config = request.config.effective()
    definition = request.definition
    reconciled = reconcile_versions(definition.versions, config, root_name=definition.kind)
    graph = build_type_graph(
        reconciled.document,
        definition.kind,
        config,
        version_label=reconciled.version_label,
        should_cancel=request.should_cancel,
    )
    for diagnostic in reconciled.diagnostics:
        graph.add_diagnostic(diagnostic)
    resolve_capabilities(graph, config)
    _LOGGER.debug(
        "synthesized %s %s with %d types", definition.kind, reconciled.version_label, len(graph)
    )
    return SynthesisOutcome(
        graph=graph,
        version_label=reconciled.version_label,
        diagnostics=graph.diagnostics,
    )


def synthesize_each_version(
    definition: ResourceDefinition,
    config: GeneratorConfig,
    *,
    max_workers: int = 4,
) -> dict[str, SynthesisOutcome]:
    """Synthesize one independent graph per version, concurrently.

    Each worker runs its own builder on its own graph. Results are keyed by
    version label in priority order; the first failure is re-raised.
    """
    labels = sort_version_labels(version.label for version in definition.versions)
    requests = {
        label: SynthesisRequest(
            definition=definition,
            config=replace(config, version_pin=label, combine_versions=False),
        )
        for label in labels
    }
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            label: executor.submit(synthesize_type_graph, request)
            for label, request in requests.items()
        }
        return {label: future.result() for label, future in futures.items()}
