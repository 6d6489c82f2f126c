"""Schema paths and the type names derived from them."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


class SegmentRole(str, Enum):
    """How a path segment was reached from its parent."""

    ROOT = "root"
    PROPERTY = "property"
    ITEMS = "items"
    VALUE = "value"
    VARIANT = "variant"


@dataclass(frozen=True)
class PathSegment:
    """One step of a schema path."""

    label: str
    role: SegmentRole


@dataclass(frozen=True)
class SchemaPath:
    """Location of a node inside a schema, from the root type downwards."""

    segments: tuple[PathSegment, ...] = ()

    @classmethod
    def root(cls, label: str) -> SchemaPath:
        return cls((PathSegment(label, SegmentRole.ROOT),))

    def child_property(self, name: str) -> SchemaPath:
        return self._extend(PathSegment(name, SegmentRole.PROPERTY))

    def child_items(self) -> SchemaPath:
        return self._extend(PathSegment("[]", SegmentRole.ITEMS))

    def child_value(self) -> SchemaPath:
        return self._extend(PathSegment("{}", SegmentRole.VALUE))

    def child_variant(self, label: str) -> SchemaPath:
        return self._extend(PathSegment(label, SegmentRole.VARIANT))

    @property
    def depth(self) -> int:
        return len(self.segments)

    def render(self) -> str:
        """Render the path as `Server.spec.podSelector[].operator`."""
        parts: list[str] = []
        for segment in self.segments:
            if segment.role is SegmentRole.ROOT:
                parts.append(segment.label)
            elif segment.role is SegmentRole.PROPERTY:
                parts.append(f".{segment.label}" if parts else segment.label)
            elif segment.role is SegmentRole.VARIANT:
                parts.append(f"<{segment.label}>")
            else:
                parts.append(segment.label)
        return "".join(parts)

    def name_units(self) -> tuple[str, ...]:
        """Return the PascalCase word groups this path contributes to a type name.

        Root and property segments start a unit (a root label that already is
        a type name is kept as written), variant segments extend the current
        one, and array items or map values add nothing.
        """
        units: list[str] = []
        for segment in self.segments:
            if segment.role is SegmentRole.ROOT:
                label = segment.label
                units.append(label if is_type_name(label) else pascal_case(label))
            elif segment.role is SegmentRole.PROPERTY:
                units.append(pascal_case(segment.label))
            elif segment.role is SegmentRole.VARIANT:
                if units:
                    units[-1] += pascal_case(segment.label)
                else:
                    units.append(pascal_case(segment.label))
        return tuple(units)

    def name_candidates(self) -> tuple[str, ...]:
        """Candidate type names, innermost unit first, each widening by one unit."""
        units = self.name_units()
        candidates: list[str] = []
        for start in range(len(units) - 1, -1, -1):
            candidate = "".join(units[start:])
            if is_type_name(candidate) and candidate not in candidates:
                candidates.append(candidate)
        return tuple(candidates)

    def _extend(self, segment: PathSegment) -> SchemaPath:
        return SchemaPath(self.segments + (segment,))

    def __str__(self) -> str:
        return self.render()


def pascal_case(label: str) -> str:
    """Convert `podSelector` to `PodSelector` and `HTTPRoute` to `HttpRoute`."""
    return "".join(word[:1].upper() + word[1:].lower() for word in _WORD_PATTERN.findall(label))


def is_type_name(candidate: str) -> bool:
    return bool(candidate) and candidate[0].isalpha() and candidate.isalnum()
