"""Recursive synthesis of a type graph from one schema document."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from kube_typegen.known_shapes import detect_known_shape, reserved_type_names
from kube_typegen.property_overrides import OverrideAction
from kube_typegen.schema_model import (
    ArrayNode,
    EnumerationNode,
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

from .analysis_errors import (
    AnalysisCancelled,
    CycleDepthExceeded,
    IrreconcilableUnion,
    NamingCollision,
    TypeSynthesisError,
    UnsupportedSchemaConstruct,
)
from .graph_models import (
    AbsencePolicy,
    CompositeType,
    Diagnostic,
    EnumeratedType,
    EnumVariant,
    ExternalRef,
    FieldDef,
    GeneratedRef,
    MapRef,
    OpaqueRef,
    OptionalRef,
    PrimitiveRef,
    PropertyOrder,
    SequenceRef,
    TypeGraph,
    TypeKind,
    TypeRef,
)
from .naming import SchemaPath, is_type_name, pascal_case

if TYPE_CHECKING:
    from kube_typegen.configuration.runtime_settings import GeneratorConfig

_LOGGER = logging.getLogger(__name__)

_ENVELOPE_KEYS = frozenset({"apiVersion", "kind", "metadata"})
_DOWNGRADABLE = (UnsupportedSchemaConstruct, IrreconcilableUnion)


@dataclass
class _ObjectFrame:
    """Object currently being built; `name` is set once a recursion claims it."""

    node: ObjectNode
    path: SchemaPath
    name: str | None = None


@dataclass
class _BuildState:
    """Per-invocation state; nothing here outlives one `build()` call."""

    graph: TypeGraph
    names_taken: set[str]
    structures: dict[tuple, str] = field(default_factory=dict)
    definitions_in_progress: dict[str, str | None] = field(default_factory=dict)
    definition_depths: dict[str, int] = field(default_factory=dict)
    object_frames: list[_ObjectFrame] = field(default_factory=list)
    definitions_built: dict[str, TypeRef] = field(default_factory=dict)
    cyclic: set[str] = field(default_factory=set)


class TypeGraphBuilder:
    """Walks one schema document and populates a fresh type graph.

    Inline objects are built children first so that a finished structure can
    be compared against the ones already registered before it claims a name.
    Definitions reached through references claim their name up front, which
    lets a recursive reference point back at them.
    """

    def __init__(
        self,
        document: SchemaDocument,
        root_name: str,
        config: GeneratorConfig,
        *,
        version_label: str | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> None:
        self._document = document
        self._root_name = root_name
        self._config = config
        self._should_cancel = should_cancel
        self._state = _BuildState(
            graph=TypeGraph(
                version_label=version_label,
                map_representation=config.map_representation,
                schema_capability_mode=config.schema_capability_mode,
            ),
            names_taken=set(reserved_type_names(config.suppress_known_shapes)),
        )
        self._built = False

    def build(self) -> TypeGraph:
        """Synthesize the graph; it is returned only when the whole schema was analyzed."""
        if self._built:
            raise RuntimeError("A TypeGraphBuilder builds exactly one graph.")
        self._built = True

        graph = self._state.graph
        graph.set_root(self._visit_root(SchemaPath.root(self._root_name)))
        unresolved = graph.unresolved_references()
        if unresolved:
            raise TypeSynthesisError(
                f"internal error: unresolved type references {', '.join(unresolved)}"
            )
        _LOGGER.debug("synthesized %d types for %s", len(graph), self._root_name)
        return graph

    def _visit_root(self, path: SchemaPath) -> TypeRef:
        state = self._state
        node = self._resolve(self._document.root)
        if not isinstance(node, ObjectNode):
            return self._visit(node, path)
        name = self._claim_name(path)
        # A root reached through references can be referred to by its own fields.
        targets = self._reference_chain(self._document.root)
        for target in targets:
            state.definitions_in_progress[target] = name
        state.object_frames.append(_ObjectFrame(node, path, name))
        try:
            fields = self._build_fields(node, path, skip_envelope=True)
        finally:
            state.object_frames.pop()
            for target in targets:
                del state.definitions_in_progress[target]
        state.graph.add(
            CompositeType(
                name=name,
                origin_path=path.render(),
                fields=fields,
                documentation=node.description,
                open_fields=node.preserve_unknown_fields,
            )
        )
        for target in targets:
            state.definitions_built[target] = GeneratedRef(name)
        return GeneratedRef(name)

    def _visit(self, node: SchemaNode, path: SchemaPath) -> TypeRef:
        self._check_cancelled(path)
        if path.depth > self._config.max_depth:
            raise CycleDepthExceeded(
                f"schema nesting exceeds {self._config.max_depth} path segments", path.render()
            )

        shape = detect_known_shape(node, self._config.suppress_known_shapes)
        if shape is not None:
            _LOGGER.debug("substituting %s at %s", shape.canonical_name, path)
            return ExternalRef(shape.canonical_name, shape)

        if isinstance(node, ReferenceNode):
            return self._visit_reference(node, path)
        if isinstance(node, ScalarNode):
            return PrimitiveRef(node.kind, node.format)
        if isinstance(node, EnumerationNode):
            return self._visit_enumeration(node, path)
        if isinstance(node, ObjectNode):
            if not node.properties:
                return MapRef(OpaqueRef())
            return self._visit_object(node, path)
        if isinstance(node, ArrayNode):
            return SequenceRef(
                self._visit_member(node.items, path.child_items()),
                node.list_type,
                node.list_map_keys,
            )
        if isinstance(node, MapNode):
            return MapRef(self._visit_member(node.value, path.child_value()))
        if isinstance(node, UnionNode):
            return self._visit_union(node, path)
        if isinstance(node, UnknownNode):
            return OpaqueRef()
        if isinstance(node, UnsupportedNode):
            return self._fallback(UnsupportedSchemaConstruct(node.reason, path.render()))
        raise UnsupportedSchemaConstruct(
            f"unhandled schema node {type(node).__name__}", path.render()
        )

    def _visit_object(self, node: ObjectNode, path: SchemaPath) -> TypeRef:
        state = self._state
        for frame in state.object_frames:
            if frame.node is node and frame.name is not None:
                return GeneratedRef(frame.name, indirect=True)

        frame = _ObjectFrame(node, path)
        state.object_frames.append(frame)
        try:
            fields = self._build_fields(node, path)
        finally:
            state.object_frames.pop()
        if frame.name is None:
            return self._register_composite(node, path, fields)
        return self._register_composite(node, path, fields, name=frame.name, collapsible=False)

    def _visit_member(self, node: SchemaNode, path: SchemaPath) -> TypeRef:
        reference = self._visit(node, path)
        if (node.nullable or self._resolve(node).nullable) and not isinstance(
            reference, OptionalRef
        ):
            return OptionalRef(reference)
        return reference

    def _build_fields(
        self, node: ObjectNode, path: SchemaPath, *, skip_envelope: bool = False
    ) -> tuple[FieldDef, ...]:
        names = list(node.properties)
        if self._config.property_order is PropertyOrder.LEXICAL:
            names.sort()

        fields = []
        for name in names:
            if skip_envelope and name in _ENVELOPE_KEYS:
                continue
            child = node.properties[name]
            child_path = path.child_property(name)
            decision = self._config.overrides.decide(
                name, child_path.render(), self._node_kind(child)
            )
            if decision is not None and decision.action is OverrideAction.OMIT:
                _LOGGER.debug("omitting %s by property rule", child_path)
                continue
            if decision is not None and decision.replacement is not None:
                _LOGGER.debug("replacing %s with %s", child_path, decision.replacement)
                reference: TypeRef = ExternalRef(decision.replacement)
            else:
                reference = self._visit(child, child_path)
            fields.append(self._field(name, child, reference, required=name in node.required))
        return tuple(fields)

    def _field(
        self, name: str, node: SchemaNode, reference: TypeRef, *, required: bool
    ) -> FieldDef:
        resolved = self._resolve(node)
        nullable = node.nullable or resolved.nullable
        if not required or nullable or isinstance(reference, OpaqueRef):
            if not isinstance(reference, OptionalRef):
                reference = OptionalRef(reference)
            optional, policy = True, AbsencePolicy.OMIT_WHEN_ABSENT
        elif isinstance(reference, (SequenceRef, MapRef)):
            optional, policy = False, AbsencePolicy.TREAT_AS_EMPTY
        else:
            optional, policy = False, AbsencePolicy.REQUIRED
        return FieldDef(
            name=name,
            type_ref=reference,
            optional=optional,
            documentation=node.description or resolved.description,
            absence_policy=policy,
        )

    def _visit_reference(self, node: ReferenceNode, path: SchemaPath) -> TypeRef:
        state = self._state
        target = node.target
        definition = self._document.definitions.get(target)
        if definition is None:
            return self._fallback(
                UnsupportedSchemaConstruct(f"unresolvable reference {target}", path.render())
            )

        shape = detect_known_shape(definition, self._config.suppress_known_shapes)
        if shape is not None:
            _LOGGER.debug("substituting %s for %s at %s", shape.canonical_name, target, path)
            return ExternalRef(shape.canonical_name, shape)
        if target in state.definitions_built:
            return state.definitions_built[target]
        if target in state.definitions_in_progress:
            name = state.definitions_in_progress[target]
            if name is None:
                return self._revisit_container(target, definition, path)
            state.cyclic.add(name)
            _LOGGER.debug("recursive reference to %s at %s", name, path)
            return GeneratedRef(name, indirect=True)

        if not (isinstance(definition, ObjectNode) and definition.properties):
            state.definitions_in_progress[target] = None
            state.definition_depths[target] = len(state.object_frames)
            try:
                reference = self._visit(definition, path)
            finally:
                del state.definitions_in_progress[target]
                del state.definition_depths[target]
            state.definitions_built[target] = reference
            return reference

        name = self._claim_name(path)
        state.definitions_in_progress[target] = name
        state.object_frames.append(_ObjectFrame(definition, path, name))
        try:
            fields = self._build_fields(definition, path)
        finally:
            state.object_frames.pop()
            del state.definitions_in_progress[target]
        reference = self._register_composite(
            definition, path, fields, name=name, collapsible=name not in state.cyclic
        )
        state.definitions_built[target] = reference
        return reference

    def _revisit_container(
        self, target: str, definition: SchemaNode, path: SchemaPath
    ) -> TypeRef:
        """Close a recursion through a non-object definition at the objects it passed.

        Every object entered since the definition claims its name now, and the
        definition is visited once more so its containers wrap an indirect
        reference to the first of them.
        """
        state = self._state
        frames = state.object_frames[state.definition_depths[target] :]
        if not frames:
            return self._fallback(
                UnsupportedSchemaConstruct(
                    f"recursive reference {target} does not pass through an object",
                    path.render(),
                )
            )
        for frame in frames:
            if frame.name is None:
                frame.name = self._claim_name(frame.path)
            state.cyclic.add(frame.name)
        _LOGGER.debug("recursive reference to %s through %s at %s", frames[0].name, target, path)
        return self._visit(definition, path)

    def _register_composite(
        self,
        node: ObjectNode,
        path: SchemaPath,
        fields: tuple[FieldDef, ...],
        *,
        name: str | None = None,
        collapsible: bool = True,
    ) -> GeneratedRef:
        composite = CompositeType(
            name=name or "",
            origin_path=path.render(),
            fields=fields,
            documentation=node.description,
            open_fields=node.preserve_unknown_fields,
        )
        key = (TypeKind.RECORD, composite.structure_key())
        if collapsible:
            existing = self._state.structures.get(key)
            if existing is not None:
                if name is not None:
                    self._state.names_taken.discard(name)
                _LOGGER.debug("reusing %s for %s", existing, path)
                return GeneratedRef(existing)
        if name is None:
            name = self._claim_name(path)
        self._state.graph.add(replace(composite, name=name))
        if collapsible:
            self._state.structures[key] = name
        _LOGGER.debug("synthesized record %s at %s", name, path)
        return GeneratedRef(name)

    def _visit_enumeration(self, node: EnumerationNode, path: SchemaPath) -> TypeRef:
        variants: list[EnumVariant] = []
        labels: set[str] = set()
        default_variant = None
        for position, literal in enumerate(node.literals, start=1):
            if not _is_enum_literal(literal):
                return self._fallback(
                    UnsupportedSchemaConstruct(
                        f"enumeration literal {literal!r} is not a string, number or boolean",
                        path.render(),
                    )
                )
            label = _unique_label(_literal_label(literal, position), labels, position)
            variants.append(EnumVariant(label=label, literal=literal))
            if _same_literal(literal, node.default):
                default_variant = label
        return self._register_enumeration(
            EnumeratedType(
                name="",
                origin_path=path.render(),
                variants=tuple(variants),
                documentation=node.description,
                default_variant=default_variant,
            ),
            path,
        )

    def _visit_union(self, node: UnionNode, path: SchemaPath) -> TypeRef:
        if len(node.variants) == 1:
            return self._visit(node.variants[0], path)

        resolved = [self._resolve(variant) for variant in node.variants]
        literal_variants = [item for item in resolved if isinstance(item, EnumerationNode)]
        if len(literal_variants) == len(resolved):
            return self._visit_enumeration(_merge_literals(node, literal_variants), path)
        if literal_variants:
            return self._fallback(
                UnsupportedSchemaConstruct(
                    f"{node.combinator} mixes literal values with shapes", path.render()
                )
            )
        if any(isinstance(item, UnknownNode) for item in resolved):
            return self._fallback(
                IrreconcilableUnion(
                    f"{node.combinator} has a schema-less variant", path.render()
                )
            )

        seen_kinds: set[str] = set()
        for item in resolved:
            kinds = _json_kinds(item)
            if kinds in ({"object"}, {"unknown"}):
                continue
            overlap = seen_kinds & kinds
            if overlap:
                return self._fallback(
                    IrreconcilableUnion(
                        f"{node.combinator} variants share the JSON kind "
                        f"'{sorted(overlap)[0]}'",
                        path.render(),
                    )
                )
            seen_kinds |= kinds

        variants: list[EnumVariant] = []
        labels: set[str] = set()
        for position, (variant, item) in enumerate(zip(node.variants, resolved), start=1):
            label = _unique_label(_variant_label(variant, item, position), labels, position)
            payload = self._visit_member(variant, path.child_variant(label))
            variants.append(
                EnumVariant(
                    label=label,
                    payload=payload,
                    documentation=variant.description or item.description,
                )
            )
        return self._register_enumeration(
            EnumeratedType(
                name="",
                origin_path=path.render(),
                variants=tuple(variants),
                documentation=node.description,
            ),
            path,
        )

    def _register_enumeration(self, enumeration: EnumeratedType, path: SchemaPath) -> TypeRef:
        key = (enumeration.kind, enumeration.structure_key(), enumeration.default_variant)
        existing = self._state.structures.get(key)
        if existing is not None:
            _LOGGER.debug("reusing %s for %s", existing, path)
            return GeneratedRef(existing)
        name = self._claim_name(path)
        self._state.graph.add(replace(enumeration, name=name))
        self._state.structures[key] = name
        _LOGGER.debug("synthesized %s %s at %s", enumeration.kind.value, name, path)
        return GeneratedRef(name)

    def _claim_name(self, path: SchemaPath) -> str:
        candidates = path.name_candidates()
        if not candidates:
            raise UnsupportedSchemaConstruct(
                "no usable type name can be derived from this path", path.render()
            )
        for candidate in candidates:
            if candidate not in self._state.names_taken:
                self._state.names_taken.add(candidate)
                if candidate != candidates[0]:
                    _LOGGER.debug("widened %s to %s at %s", candidates[0], candidate, path)
                return candidate
        raise NamingCollision(
            f"every candidate type name is taken ({', '.join(candidates)})", path.render()
        )

    def _fallback(self, error: TypeSynthesisError) -> TypeRef:
        if not (self._config.relaxed and isinstance(error, _DOWNGRADABLE)):
            raise error
        _LOGGER.warning("relaxed: treating %s as an opaque value (%s)", error.path, error.message)
        self._state.graph.add_diagnostic(
            Diagnostic(
                path=error.path or self._root_name,
                classification=error.classification,
                message=error.message,
            )
        )
        return OpaqueRef()

    def _check_cancelled(self, path: SchemaPath) -> None:
        if self._should_cancel is not None and self._should_cancel():
            raise AnalysisCancelled("analysis cancelled", path.render())

    def _resolve(self, node: SchemaNode) -> SchemaNode:
        seen: set[str] = set()
        while isinstance(node, ReferenceNode) and node.target not in seen:
            seen.add(node.target)
            target = self._document.definitions.get(node.target)
            if target is None:
                break
            node = target
        return node

    def _reference_chain(self, node: SchemaNode) -> tuple[str, ...]:
        targets: list[str] = []
        while isinstance(node, ReferenceNode) and node.target not in targets:
            target = self._document.definitions.get(node.target)
            if target is None:
                break
            targets.append(node.target)
            node = target
        return tuple(targets)

    def _node_kind(self, node: SchemaNode) -> str:
        resolved = self._resolve(node)
        if isinstance(resolved, ObjectNode):
            return "object"
        if isinstance(resolved, ArrayNode):
            return "array"
        if isinstance(resolved, MapNode):
            return "map"
        if isinstance(resolved, ScalarNode):
            return resolved.kind.value
        if isinstance(resolved, EnumerationNode):
            return "enum"
        if isinstance(resolved, UnionNode):
            return "union"
        return "unknown"


def build_type_graph(
    document: SchemaDocument,
    root_name: str,
    config: GeneratorConfig,
    *,
    version_label: str | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> TypeGraph:
    """Synthesize the type graph for one schema document.

    Args:
      document: Parsed schema of the operative version.
      root_name: Name of the root type, usually the resource kind.
      config: Generator options; `auto` is expected to be applied already.
      version_label: Operative version recorded on the graph.
      should_cancel: Polled once per visited node; returning True aborts.

    Raises:
      TypeSynthesisError: On the first failure; no partial graph is returned.
    """
    return TypeGraphBuilder(
        document,
        root_name,
        config,
        version_label=version_label,
        should_cancel=should_cancel,
    ).build()


def _is_enum_literal(literal: object) -> bool:
    return isinstance(literal, (str, int, float))


def _same_literal(left: object, right: object) -> bool:
    return type(left) is type(right) and left == right


def _literal_label(literal: str | int | float, position: int) -> str:
    if isinstance(literal, bool):
        return "True" if literal else "False"
    if isinstance(literal, int):
        return f"Value{literal}" if literal >= 0 else f"ValueMinus{-literal}"
    if isinstance(literal, float):
        return f"Variant{position}"
    label = pascal_case(literal)
    if is_type_name(label):
        return label
    if label.isalnum():
        return f"Value{label}"
    return f"Variant{position}"


def _variant_label(variant: SchemaNode, resolved: SchemaNode, position: int) -> str:
    title = variant.title or resolved.title
    if title and is_type_name(pascal_case(title)):
        return pascal_case(title)
    kinds = _json_kinds(resolved)
    if kinds == {"object"}:
        return f"Variant{position}"
    if resolved.int_or_string:
        return "IntOrString"
    if isinstance(resolved, ScalarNode):
        return pascal_case(resolved.kind.value)
    return pascal_case(sorted(kinds)[0])


def _unique_label(label: str, taken: set[str], position: int) -> str:
    if label in taken:
        label = f"{label}{position}"
    taken.add(label)
    return label


def _json_kinds(node: SchemaNode) -> set[str]:
    if node.int_or_string:
        return {"integer", "string"}
    if isinstance(node, (ObjectNode, MapNode)):
        return {"object"}
    if isinstance(node, ArrayNode):
        return {"array"}
    if isinstance(node, (ScalarNode, EnumerationNode)):
        if node.kind is ScalarKind.NUMBER:
            return {"number", "integer"}
        return {node.kind.value}
    if isinstance(node, UnionNode):
        kinds: set[str] = set()
        for variant in node.variants:
            kinds |= _json_kinds(variant)
        return kinds
    return {"unknown"}


def _merge_literals(node: UnionNode, branches: list[EnumerationNode]) -> EnumerationNode:
    literals: list[object] = []
    for branch in branches:
        for literal in branch.literals:
            if not any(_same_literal(literal, seen) for seen in literals):
                literals.append(literal)
    default = next((branch.default for branch in branches if branch.default is not None), None)
    return EnumerationNode(
        literals=tuple(literals),
        kind=branches[0].kind,
        default=default,
        description=node.description,
        nullable=node.nullable,
    )
