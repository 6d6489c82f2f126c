"""Recognition of well-known Kubernetes value shapes."""

from __future__ import annotations

from collections.abc import Collection
from enum import Enum

from kube_typegen.schema_model import ObjectNode, SchemaNode


class KnownShape(str, Enum):
    """Subtrees replaced by a canonical external type."""

    CONDITION = "condition"
    OBJECT_REFERENCE = "object-reference"
    INT_OR_STRING = "int-or-string"

    @property
    def canonical_name(self) -> str:
        return _CANONICAL_NAMES[self]


_CANONICAL_NAMES = {
    KnownShape.CONDITION: "Condition",
    KnownShape.OBJECT_REFERENCE: "ObjectReference",
    KnownShape.INT_OR_STRING: "IntOrString",
}

SUPPRESSIBLE_SHAPES = frozenset({KnownShape.CONDITION, KnownShape.OBJECT_REFERENCE})

_CONDITION_FIELDS = frozenset({"type", "status", "reason", "message", "lastTransitionTime"})
_CONDITION_OPTIONAL_FIELDS = frozenset({"observedGeneration"})
_OBJECT_REFERENCE_FIELDS = frozenset(
    {"apiVersion", "fieldPath", "kind", "name", "namespace", "resourceVersion", "uid"}
)


def detect_known_shape(
    node: SchemaNode, suppressed: Collection[KnownShape] = ()
) -> KnownShape | None:
    """Return the known shape `node` matches, ignoring suppressed ones.

    Int-or-string is a property of the value encoding and cannot be suppressed.
    """
    if node.int_or_string:
        return KnownShape.INT_OR_STRING
    if not isinstance(node, ObjectNode):
        return None

    names = frozenset(node.properties)
    if KnownShape.CONDITION not in suppressed and _is_condition(node, names):
        return KnownShape.CONDITION
    if KnownShape.OBJECT_REFERENCE not in suppressed and names == _OBJECT_REFERENCE_FIELDS:
        return KnownShape.OBJECT_REFERENCE
    return None


def _is_condition(node: ObjectNode, names: frozenset[str]) -> bool:
    return (
        _CONDITION_FIELDS <= names
        and names <= _CONDITION_FIELDS | _CONDITION_OPTIONAL_FIELDS
        and node.required <= _CONDITION_FIELDS | _CONDITION_OPTIONAL_FIELDS
    )


def reserved_type_names(suppressed: Collection[KnownShape] = ()) -> frozenset[str]:
    """Canonical names that generated types may not take while their substitution is active."""
    return frozenset(
        shape.canonical_name for shape in KnownShape if shape not in suppressed
    )
