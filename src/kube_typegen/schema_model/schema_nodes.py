"""Schema model entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum


class ScalarKind(str, Enum):
    """JSON scalar kinds understood by the analyzer."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


class ListType(str, Enum):
    """Values of the `x-kubernetes-list-type` extension."""

    ATOMIC = "atomic"
    SET = "set"
    MAP = "map"


@dataclass(frozen=True)
class SchemaNode:
    """Base entity for every parsed schema node."""

    description: str | None = field(default=None, kw_only=True)
    nullable: bool = field(default=False, kw_only=True)
    int_or_string: bool = field(default=False, kw_only=True)
    title: str | None = field(default=None, kw_only=True)


@dataclass(frozen=True)
class ScalarNode(SchemaNode):
    """Plain scalar value, optionally narrowed by a format."""

    kind: ScalarKind
    format: str | None = None


@dataclass(frozen=True)
class ObjectNode(SchemaNode):
    """Object with a fixed set of named properties."""

    properties: Mapping[str, SchemaNode]
    required: frozenset[str] = frozenset()
    preserve_unknown_fields: bool = False
    embedded_resource: bool = False


@dataclass(frozen=True)
class ArrayNode(SchemaNode):
    """Homogeneous array."""

    items: SchemaNode
    list_type: ListType = ListType.ATOMIC
    list_map_keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class MapNode(SchemaNode):
    """Open object keyed by string (`additionalProperties`)."""

    value: SchemaNode


@dataclass(frozen=True)
class UnionNode(SchemaNode):
    """`oneOf` / `anyOf` over several shapes."""

    variants: tuple[SchemaNode, ...]
    combinator: str = "oneOf"


@dataclass(frozen=True)
class EnumerationNode(SchemaNode):
    """Closed set of literal values."""

    literals: tuple[object, ...]
    kind: ScalarKind = ScalarKind.STRING
    default: object | None = None


@dataclass(frozen=True)
class UnknownNode(SchemaNode):
    """Schema-less value (`x-kubernetes-preserve-unknown-fields`)."""


@dataclass(frozen=True)
class ReferenceNode(SchemaNode):
    """Pointer into `SchemaDocument.definitions`."""

    target: str


@dataclass(frozen=True)
class UnsupportedNode(SchemaNode):
    """Construct without a defined mapping, kept so analysis can report it with its path."""

    reason: str


@dataclass(frozen=True)
class SchemaDocument:
    """One parsed schema with its named definitions."""

    root: SchemaNode
    definitions: Mapping[str, SchemaNode] = field(default_factory=dict)


@dataclass(frozen=True)
class SchemaVersion:
    """One served version of a resource definition."""

    label: str
    document: SchemaDocument
    served: bool = True
    storage: bool = False


@dataclass(frozen=True)
class ResourceDefinition:
    """Custom resource definition reduced to what type synthesis needs."""

    kind: str
    group: str
    plural: str
    scope: str
    versions: tuple[SchemaVersion, ...]
