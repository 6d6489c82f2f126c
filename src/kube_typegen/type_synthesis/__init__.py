"""Type synthesis exports."""

from .synthesis_contracts import SynthesisOutcome, SynthesisRequest
from .synthesis_use_case import synthesize_each_version, synthesize_type_graph

__all__ = [
    "SynthesisRequest",
    "SynthesisOutcome",
    "synthesize_type_graph",
    "synthesize_each_version",
]
