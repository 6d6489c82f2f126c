"""Type graph entities."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from kube_typegen.known_shapes import KnownShape
from kube_typegen.schema_model import ListType, ScalarKind


class TypeGraphFrozenError(Exception):
    """Raised when a frozen type graph is mutated."""


class TypeKind(str, Enum):
    """Closed set of generated type categories."""

    RECORD = "record"
    UNIT_ENUM = "unit_enum"
    TAGGED_ENUM = "tagged_enum"


class AbsencePolicy(str, Enum):
    """What an emitter does when a field is missing from a resource."""

    REQUIRED = "required"
    OMIT_WHEN_ABSENT = "omit_when_absent"
    TREAT_AS_EMPTY = "treat_as_empty"


class MapRepresentation(str, Enum):
    """Key ordering an emitter uses for generated maps."""

    ORDERED = "ordered"
    UNORDERED = "unordered"


class PropertyOrder(str, Enum):
    """Field order of generated records."""

    DECLARED = "declared"
    LEXICAL = "lexical"


class SchemaCapabilityMode(str, Enum):
    """How schema reflection is provided for generated types."""

    DISABLED = "disabled"
    MANUAL = "manual"
    DERIVED = "derived"


@dataclass(frozen=True)
class PrimitiveRef:
    kind: ScalarKind
    format: str | None = None


@dataclass(frozen=True)
class OpaqueRef:
    """Schema-less value, passed through untouched."""


@dataclass(frozen=True)
class GeneratedRef:
    """Reference to a type in the same graph; `indirect` marks a recursive edge."""

    name: str
    indirect: bool = False


@dataclass(frozen=True)
class ExternalRef:
    """Reference to a type the emitter provides, such as a known shape."""

    name: str
    shape: KnownShape | None = None


@dataclass(frozen=True)
class SequenceRef:
    item: TypeRef
    list_type: ListType = ListType.ATOMIC
    map_keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class MapRef:
    """String-keyed map."""

    value: TypeRef


@dataclass(frozen=True)
class OptionalRef:
    inner: TypeRef


TypeRef = PrimitiveRef | OpaqueRef | GeneratedRef | ExternalRef | SequenceRef | MapRef | OptionalRef


@dataclass(frozen=True)
class FieldDef:
    """One field of a composite type."""

    name: str
    type_ref: TypeRef
    optional: bool
    documentation: str | None = None
    absence_policy: AbsencePolicy = AbsencePolicy.REQUIRED


@dataclass(frozen=True)
class EnumVariant:
    """Unit literal (`payload is None`) or tagged variant wrapping a type reference."""

    label: str
    literal: str | int | float | None = None
    payload: TypeRef | None = None
    documentation: str | None = None


@dataclass(frozen=True)
class CompositeType:
    """Generated record type with a fixed set of named fields."""

    name: str
    origin_path: str
    fields: tuple[FieldDef, ...]
    documentation: str | None = None
    open_fields: bool = False
    capabilities: frozenset[str] = frozenset()
    elided: bool = False

    @property
    def kind(self) -> TypeKind:
        return TypeKind.RECORD

    def structure_key(self) -> frozenset[tuple[str, TypeRef, bool]]:
        """Order-insensitive identity used to collapse identical records."""
        return frozenset((item.name, item.type_ref, item.optional) for item in self.fields)


@dataclass(frozen=True)
class EnumeratedType:
    """Generated closed set of literals or tagged union of shapes."""

    name: str
    origin_path: str
    variants: tuple[EnumVariant, ...]
    documentation: str | None = None
    default_variant: str | None = None
    capabilities: frozenset[str] = frozenset()
    elided: bool = False

    @property
    def kind(self) -> TypeKind:
        if all(variant.payload is None for variant in self.variants):
            return TypeKind.UNIT_ENUM
        return TypeKind.TAGGED_ENUM

    def structure_key(self) -> frozenset[tuple[str, str | int | float | None, TypeRef | None]]:
        return frozenset(
            (variant.label, variant.literal, variant.payload) for variant in self.variants
        )


GeneratedType = CompositeType | EnumeratedType


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal finding recorded while analyzing in relaxed mode."""

    path: str
    classification: str
    message: str


@dataclass
class TypeGraph:
    """Named generated types plus the reference to the root type.

    A graph is populated by one builder invocation and frozen by the
    capability resolver; after `freeze()` every mutation raises
    `TypeGraphFrozenError`.
    """

    version_label: str | None = None
    map_representation: MapRepresentation = MapRepresentation.ORDERED
    schema_capability_mode: SchemaCapabilityMode = SchemaCapabilityMode.DISABLED
    _types: dict[str, GeneratedType] = field(default_factory=dict, repr=False)
    _diagnostics: list[Diagnostic] = field(default_factory=list, repr=False)
    _root: TypeRef | None = field(default=None, repr=False)
    _frozen: bool = field(default=False, repr=False)

    @property
    def types(self) -> Mapping[str, GeneratedType]:
        return MappingProxyType(self._types)

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    @property
    def root(self) -> TypeRef | None:
        return self._root

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def set_root(self, reference: TypeRef) -> None:
        self._ensure_mutable()
        self._root = reference

    def add(self, generated: GeneratedType) -> None:
        self._ensure_mutable()
        if generated.name in self._types:
            raise ValueError(f"Type name '{generated.name}' is already taken.")
        self._types[generated.name] = generated

    def replace(self, generated: GeneratedType) -> None:
        self._ensure_mutable()
        if generated.name not in self._types:
            raise KeyError(generated.name)
        self._types[generated.name] = generated

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        self._ensure_mutable()
        self._diagnostics.append(diagnostic)

    def get(self, name: str) -> GeneratedType | None:
        return self._types.get(name)

    def freeze(self) -> None:
        self._frozen = True

    def unresolved_references(self) -> tuple[str, ...]:
        """Names referenced through `GeneratedRef` that have no type in the graph."""
        missing: list[str] = []
        for reference in self._all_references():
            for nested in iter_references(reference):
                if (
                    isinstance(nested, GeneratedRef)
                    and nested.name not in self._types
                    and nested.name not in missing
                ):
                    missing.append(nested.name)
        return tuple(missing)

    def _all_references(self) -> Iterator[TypeRef]:
        if self._root is not None:
            yield self._root
        for generated in self._types.values():
            yield from type_references(generated)

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise TypeGraphFrozenError("Type graph is frozen and can no longer be modified.")

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)


def iter_references(reference: TypeRef) -> Iterator[TypeRef]:
    """Yield a reference and every reference nested inside it."""
    yield reference
    if isinstance(reference, SequenceRef):
        yield from iter_references(reference.item)
    elif isinstance(reference, MapRef):
        yield from iter_references(reference.value)
    elif isinstance(reference, OptionalRef):
        yield from iter_references(reference.inner)


def type_references(generated: GeneratedType) -> Iterator[TypeRef]:
    """Yield the top-level references held by the fields or variants of a type."""
    if isinstance(generated, CompositeType):
        for item in generated.fields:
            yield item.type_ref
    else:
        for variant in generated.variants:
            if variant.payload is not None:
                yield variant.payload
