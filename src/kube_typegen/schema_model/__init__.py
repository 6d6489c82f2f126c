"""Schema model exports."""

from .resource_loader import ResourceLoadError, load_resource_definition, parse_resource_definition
from .schema_nodes import (
    ArrayNode,
    EnumerationNode,
    ListType,
    MapNode,
    ObjectNode,
    ReferenceNode,
    ResourceDefinition,
    ScalarKind,
    ScalarNode,
    SchemaDocument,
    SchemaNode,
    SchemaVersion,
    UnionNode,
    UnknownNode,
    UnsupportedNode,
)
from .schema_parser import SchemaParseError, parse_schema_document

__all__ = [
    "ArrayNode",
    "EnumerationNode",
    "ListType",
    "MapNode",
    "ObjectNode",
    "ReferenceNode",
    "ResourceDefinition",
    "ScalarKind",
    "ScalarNode",
    "SchemaDocument",
    "SchemaNode",
    "SchemaVersion",
    "UnionNode",
    "UnknownNode",
    "UnsupportedNode",
    "SchemaParseError",
    "parse_schema_document",
    "ResourceLoadError",
    "load_resource_definition",
    "parse_resource_definition",
]
