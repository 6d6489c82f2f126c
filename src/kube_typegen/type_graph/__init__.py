"""Type graph exports."""

from .analysis_errors import (
    AnalysisCancelled,
    CycleDepthExceeded,
    IrreconcilableUnion,
    NamingCollision,
    ReconcileError,
    TypeSynthesisError,
    UnsupportedSchemaConstruct,
)
from .graph_builder import TypeGraphBuilder, build_type_graph
from .graph_models import (
    AbsencePolicy,
    CompositeType,
    Diagnostic,
    EnumeratedType,
    EnumVariant,
    ExternalRef,
    FieldDef,
    GeneratedRef,
    GeneratedType,
    MapRef,
    MapRepresentation,
    OpaqueRef,
    OptionalRef,
    PrimitiveRef,
    PropertyOrder,
    SchemaCapabilityMode,
    SequenceRef,
    TypeGraph,
    TypeGraphFrozenError,
    TypeKind,
    TypeRef,
)
from .graph_projection import project_type_graph, render_type_reference
from .naming import PathSegment, SchemaPath, SegmentRole, pascal_case

__all__ = [
    "AbsencePolicy",
    "CompositeType",
    "Diagnostic",
    "EnumeratedType",
    "EnumVariant",
    "ExternalRef",
    "FieldDef",
    "GeneratedRef",
    "GeneratedType",
    "MapRef",
    "MapRepresentation",
    "OpaqueRef",
    "OptionalRef",
    "PrimitiveRef",
    "PropertyOrder",
    "SchemaCapabilityMode",
    "SequenceRef",
    "TypeGraph",
    "TypeGraphFrozenError",
    "TypeKind",
    "TypeRef",
    "AnalysisCancelled",
    "CycleDepthExceeded",
    "IrreconcilableUnion",
    "NamingCollision",
    "ReconcileError",
    "TypeSynthesisError",
    "UnsupportedSchemaConstruct",
    "TypeGraphBuilder",
    "build_type_graph",
    "project_type_graph",
    "render_type_reference",
    "PathSegment",
    "SchemaPath",
    "SegmentRole",
    "pascal_case",
]
