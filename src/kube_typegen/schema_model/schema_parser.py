"""Conversion of loosely-typed schema documents into schema nodes."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .schema_nodes import (
    ArrayNode,
    EnumerationNode,
    ListType,
    MapNode,
    ObjectNode,
    ReferenceNode,
    ScalarKind,
    ScalarNode,
    SchemaDocument,
    SchemaNode,
    UnionNode,
    UnknownNode,
    UnsupportedNode,
)

_LOGGER = logging.getLogger(__name__)

_INT_OR_STRING = "x-kubernetes-int-or-string"
_PRESERVE_UNKNOWN_FIELDS = "x-kubernetes-preserve-unknown-fields"
_EMBEDDED_RESOURCE = "x-kubernetes-embedded-resource"
_LIST_TYPE = "x-kubernetes-list-type"
_LIST_MAP_KEYS = "x-kubernetes-list-map-keys"

_SCALAR_KINDS = frozenset(kind.value for kind in ScalarKind)
_DEFINITION_SECTIONS = ("definitions", "$defs")
_SHAPE_KEYS = frozenset(
    {
        "type",
        "properties",
        "items",
        "additionalProperties",
        "enum",
        "const",
        "$ref",
        "oneOf",
        "anyOf",
        "allOf",
        _INT_OR_STRING,
        _PRESERVE_UNKNOWN_FIELDS,
    }
)


class SchemaParseError(Exception):
    """Raised when a schema document cannot be read at all."""


@dataclass
class _ParseContext:
    """Mutable state for one document parse."""

    raw_definitions: Mapping[str, Any]
    definitions: dict[str, SchemaNode] = field(default_factory=dict)
    pending: list[str] = field(default_factory=list)
    active: dict[int, str | None] = field(default_factory=dict)
    parsed: dict[int, SchemaNode] = field(default_factory=dict)
    alias_count: int = 0


def parse_schema_document(raw: Any) -> SchemaDocument:
    """Parse one OpenAPI v3 schema mapping into a schema document.

    Shape problems never raise here; they become `UnsupportedNode` entries so
    that analysis can report them together with their path.

    Raises:
      SchemaParseError: If the root is not a mapping.
    """
    if not isinstance(raw, Mapping):
        raise SchemaParseError("Schema root must be a mapping.")

    context = _ParseContext(raw_definitions=_collect_raw_definitions(raw))
    root = _parse_node(raw, context)
    while context.pending:
        pointer = context.pending.pop(0)
        if pointer in context.definitions:
            continue
        context.definitions[pointer] = _parse_node(context.raw_definitions[pointer], context)
    return SchemaDocument(root=root, definitions=dict(context.definitions))


def _collect_raw_definitions(raw: Mapping[str, Any]) -> dict[str, Any]:
    collected: dict[str, Any] = {}
    for section in _DEFINITION_SECTIONS:
        entries = raw.get(section)
        if isinstance(entries, Mapping):
            for name, definition in entries.items():
                collected[f"#/{section}/{name}"] = definition
    return collected


def _parse_node(raw: Any, context: _ParseContext) -> SchemaNode:
    if isinstance(raw, bool):
        if raw:
            return UnknownNode()
        return UnsupportedNode(reason="schema 'false' admits no value")
    if not isinstance(raw, Mapping):
        return UnsupportedNode(reason=f"schema node must be a mapping, got {type(raw).__name__}")

    # A mapping reached twice (YAML anchors) parses once for the whole document.
    identity = id(raw)
    if identity in context.parsed:
        return context.parsed[identity]
    if identity in context.active:
        return ReferenceNode(target=_alias_target(identity, context))

    context.active[identity] = None
    try:
        node = _parse_mapping(raw, context)
    finally:
        alias = context.active.pop(identity)
    if alias is not None:
        context.definitions[alias] = node
        node = ReferenceNode(target=alias)
    context.parsed[identity] = node
    return node


def _alias_target(identity: int, context: _ParseContext) -> str:
    alias = context.active[identity]
    if alias is None:
        context.alias_count += 1
        alias = f"#/aliases/{context.alias_count}"
        context.active[identity] = alias
        _LOGGER.debug("recursive alias detected, registered as %s", alias)
    return alias


def _parse_mapping(raw: Mapping[str, Any], context: _ParseContext) -> SchemaNode:
    if "$ref" in raw:
        return _parse_reference(raw["$ref"], _common_attributes(raw), context)

    if "allOf" in raw:
        flattened = _flatten_all_of(raw)
        if isinstance(flattened, str):
            return UnsupportedNode(reason=flattened, **_common_attributes(raw))
        if "$ref" in flattened:
            if _SHAPE_KEYS.intersection(flattened.keys()) - {"$ref"}:
                return UnsupportedNode(
                    reason="allOf combining $ref with inline shapes cannot be flattened",
                    **_common_attributes(raw),
                )
            return _parse_reference(flattened["$ref"], _common_attributes(flattened), context)
        raw = flattened

    common = _common_attributes(raw)
    types, nullable_type = _declared_types(raw)
    common["nullable"] = common["nullable"] or nullable_type
    if len(types) > 1:
        if set(types) == {"integer", "string"}:
            return ScalarNode(kind=ScalarKind.STRING, **{**common, "int_or_string": True})
        return UnsupportedNode(reason=f"multiple types {list(types)} are not supported", **common)
    declared = types[0] if types else None

    if common["int_or_string"] or _is_int_or_string_union(raw):
        kind = ScalarKind(declared) if declared in _SCALAR_KINDS else ScalarKind.STRING
        return ScalarNode(kind=kind, **{**common, "int_or_string": True})

    union = _parse_union(raw, declared, common, context)
    if union is not None:
        return union

    if "enum" in raw or "const" in raw:
        return _parse_enumeration(raw, declared, common)

    if declared == "object" or (
        declared is None and ("properties" in raw or "additionalProperties" in raw)
    ):
        return _parse_object(raw, common, context)
    if declared == "array" or (declared is None and "items" in raw):
        return _parse_array(raw, common, context)
    if declared in _SCALAR_KINDS:
        node_format = raw.get("format")
        return ScalarNode(
            kind=ScalarKind(declared),
            format=node_format if isinstance(node_format, str) else None,
            **common,
        )
    if declared is None:
        if raw.get(_PRESERVE_UNKNOWN_FIELDS):
            return UnknownNode(**common)
        return UnsupportedNode(
            reason="untyped schema without x-kubernetes-preserve-unknown-fields", **common
        )
    return UnsupportedNode(reason=f"unknown type '{declared}'", **common)


def _common_attributes(raw: Mapping[str, Any]) -> dict[str, Any]:
    description = raw.get("description")
    title = raw.get("title")
    return {
        "description": description if isinstance(description, str) else None,
        "title": title if isinstance(title, str) else None,
        "nullable": bool(raw.get("nullable", False)),
        "int_or_string": bool(raw.get(_INT_OR_STRING, False)),
    }


def _declared_types(raw: Mapping[str, Any]) -> tuple[tuple[str, ...], bool]:
    node_type = raw.get("type")
    if isinstance(node_type, str):
        if node_type == "null":
            return (), True
        return (node_type,), False
    if isinstance(node_type, list):
        names = tuple(value for value in node_type if isinstance(value, str) and value != "null")
        return names, "null" in node_type
    return (), False


def _is_int_or_string_union(raw: Mapping[str, Any]) -> bool:
    for combinator in ("anyOf", "oneOf"):
        branches = raw.get(combinator)
        if not isinstance(branches, list) or len(branches) != 2:
            continue
        branch_types = {
            branch.get("type") for branch in branches if isinstance(branch, Mapping)
        }
        if branch_types == {"integer", "string"}:
            return True
    return False


def _is_constraint_only(branch: Any) -> bool:
    return isinstance(branch, Mapping) and not _SHAPE_KEYS.intersection(branch.keys())


def _is_null_branch(branch: Any) -> bool:
    return (
        isinstance(branch, Mapping)
        and branch.get("type") == "null"
        and set(branch.keys()) <= {"type", "description"}
    )


def _parse_union(
    raw: Mapping[str, Any],
    declared: str | None,
    common: dict[str, Any],
    context: _ParseContext,
) -> SchemaNode | None:
    for combinator in ("oneOf", "anyOf"):
        branches = raw.get(combinator)
        if branches is None:
            continue
        if not isinstance(branches, list) or not branches:
            return UnsupportedNode(reason=f"{combinator} must be a non-empty list", **common)
        if all(_is_constraint_only(branch) for branch in branches):
            _LOGGER.debug("ignoring validation-only %s branches", combinator)
            continue
        if declared is not None or any(
            key in raw for key in ("properties", "items", "additionalProperties", "enum")
        ):
            return UnsupportedNode(
                reason=f"{combinator} alongside an explicit type cannot be represented",
                **common,
            )
        nullable = common["nullable"]
        variants: list[SchemaNode] = []
        for branch in branches:
            if _is_null_branch(branch):
                nullable = True
                continue
            variants.append(_parse_node(branch, context))
        if not variants:
            return UnsupportedNode(reason=f"{combinator} without non-null variants", **common)
        return UnionNode(
            variants=tuple(variants),
            combinator=combinator,
            **{**common, "nullable": nullable},
        )
    return None


def _parse_enumeration(
    raw: Mapping[str, Any], declared: str | None, common: dict[str, Any]
) -> SchemaNode:
    literals = raw["enum"] if "enum" in raw else [raw["const"]]
    if not isinstance(literals, list):
        return UnsupportedNode(reason="enum must be a list", **common)

    nullable = common["nullable"]
    values: list[object] = []
    for literal in literals:
        if literal is None:
            nullable = True
            continue
        if not any(_same_literal(literal, seen) for seen in values):
            values.append(literal)
    if not values:
        return UnsupportedNode(reason="enumeration without non-null literals", **common)

    if declared is None:
        kind = _infer_literal_kind(values)
        if kind is None:
            return UnsupportedNode(reason="enumeration mixes literal types", **common)
    elif declared in _SCALAR_KINDS:
        kind = ScalarKind(declared)
    else:
        return UnsupportedNode(reason=f"enumeration of {declared} values", **common)

    return EnumerationNode(
        literals=tuple(values),
        kind=kind,
        default=raw.get("default"),
        **{**common, "nullable": nullable},
    )


def _same_literal(left: object, right: object) -> bool:
    return type(left) is type(right) and left == right


def _infer_literal_kind(values: Sequence[object]) -> ScalarKind | None:
    if all(isinstance(value, str) for value in values):
        return ScalarKind.STRING
    if all(isinstance(value, bool) for value in values):
        return ScalarKind.BOOLEAN
    if all(isinstance(value, int) and not isinstance(value, bool) for value in values):
        return ScalarKind.INTEGER
    if all(isinstance(value, int | float) and not isinstance(value, bool) for value in values):
        return ScalarKind.NUMBER
    return None


def _parse_object(
    raw: Mapping[str, Any], common: dict[str, Any], context: _ParseContext
) -> SchemaNode:
    properties_raw = raw.get("properties") or {}
    if not isinstance(properties_raw, Mapping):
        return UnsupportedNode(reason="properties must be a mapping", **common)
    additional = raw.get("additionalProperties")
    preserve = bool(raw.get(_PRESERVE_UNKNOWN_FIELDS, False))
    embedded = bool(raw.get(_EMBEDDED_RESOURCE, False))

    if properties_raw:
        if isinstance(additional, Mapping):
            return UnsupportedNode(
                reason="properties and additionalProperties are mutually exclusive", **common
            )
        properties = {
            str(name): _parse_node(child, context) for name, child in properties_raw.items()
        }
        return ObjectNode(
            properties=properties,
            required=_required_names(raw, properties),
            preserve_unknown_fields=preserve,
            embedded_resource=embedded,
            **common,
        )
    if isinstance(additional, Mapping):
        return MapNode(value=_parse_node(additional, context), **common)
    if additional is True or preserve:
        return MapNode(value=UnknownNode(), **common)
    return ObjectNode(properties={}, embedded_resource=embedded, **common)


def _required_names(raw: Mapping[str, Any], properties: Mapping[str, SchemaNode]) -> frozenset[str]:
    required = raw.get("required") or []
    if not isinstance(required, list):
        return frozenset()
    names = set()
    for name in required:
        if name in properties:
            names.add(name)
        else:
            _LOGGER.debug("dropping required name %r without a property definition", name)
    return frozenset(names)


def _parse_array(
    raw: Mapping[str, Any], common: dict[str, Any], context: _ParseContext
) -> SchemaNode:
    items = raw.get("items")
    if items is None:
        return UnsupportedNode(reason="array without items", **common)
    if isinstance(items, list):
        return UnsupportedNode(reason="tuple-typed arrays are not supported", **common)
    try:
        list_type = ListType(raw.get(_LIST_TYPE, ListType.ATOMIC.value))
    except ValueError:
        return UnsupportedNode(reason=f"unknown list type {raw.get(_LIST_TYPE)!r}", **common)
    map_keys = raw.get(_LIST_MAP_KEYS) or ()
    return ArrayNode(
        items=_parse_node(items, context),
        list_type=list_type,
        list_map_keys=tuple(str(key) for key in map_keys),
        **common,
    )


def _parse_reference(ref: Any, common: dict[str, Any], context: _ParseContext) -> SchemaNode:
    if not isinstance(ref, str) or not ref.startswith(
        tuple(f"#/{section}/" for section in _DEFINITION_SECTIONS)
    ):
        return UnsupportedNode(reason=f"unsupported $ref {ref!r}", **common)
    if ref not in context.raw_definitions:
        return UnsupportedNode(reason=f"unresolvable $ref {ref!r}", **common)
    if ref not in context.definitions and ref not in context.pending:
        context.pending.append(ref)
    return ReferenceNode(target=ref, **common)


def _flatten_all_of(raw: Mapping[str, Any]) -> dict[str, Any] | str:
    """Merge `allOf` branches into one mapping, or return why that is impossible."""
    branches = raw.get("allOf")
    if not isinstance(branches, list):
        return "allOf must be a list"

    merged: dict[str, Any] = {key: value for key, value in raw.items() if key != "allOf"}
    if isinstance(merged.get("properties"), Mapping):
        merged["properties"] = dict(merged["properties"])
    for branch in branches:
        if not isinstance(branch, Mapping):
            return "allOf branches must be mappings"
        if "allOf" in branch:
            nested = _flatten_all_of(branch)
            if isinstance(nested, str):
                return nested
            branch = nested
        for key, value in branch.items():
            problem = _merge_all_of_key(merged, key, value)
            if problem:
                return problem
    return merged


def _merge_all_of_key(merged: dict[str, Any], key: str, value: Any) -> str | None:
    if key == "properties":
        if not isinstance(value, Mapping):
            return "allOf properties must be a mapping"
        properties = merged.setdefault("properties", {})
        for name, definition in value.items():
            if name in properties and properties[name] != definition:
                return f"allOf branches disagree on property '{name}'"
            properties[name] = definition
        return None
    if key == "required":
        existing = list(merged.get("required") or [])
        existing.extend(name for name in value or [] if name not in existing)
        merged["required"] = existing
        return None
    if key in ("description", "title"):
        merged.setdefault(key, value)
        return None
    if key in merged and merged[key] != value:
        return f"allOf branches disagree on '{key}'"
    merged[key] = value
    return None
