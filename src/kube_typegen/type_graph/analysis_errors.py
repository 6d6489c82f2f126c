"""Failure taxonomy for type synthesis."""

from __future__ import annotations


class TypeSynthesisError(Exception):
    """Base class for failures raised while synthesizing a type graph.

    Every failure carries the rendered schema path of the offending node when
    one is known, so callers can print a message that points into the schema.
    """

    classification = "type-synthesis-error"

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class UnsupportedSchemaConstruct(TypeSynthesisError):
    """Raised for schema constructs that have no type mapping."""

    classification = "unsupported-schema-construct"


class NamingCollision(TypeSynthesisError):
    """Raised when no unique type name can be derived from a path."""

    classification = "naming-collision"


class IrreconcilableUnion(TypeSynthesisError):
    """Raised when union variants or version shapes cannot be told apart or merged."""

    classification = "irreconcilable-union"


class CycleDepthExceeded(TypeSynthesisError):
    """Raised when the path depth cap is reached."""

    classification = "cycle-depth-exceeded"


class ReconcileError(TypeSynthesisError):
    """Raised when no operative schema version can be selected."""

    classification = "reconcile-error"


class AnalysisCancelled(TypeSynthesisError):
    """Raised when the caller cancels an analysis in progress."""

    classification = "analysis-cancelled"
