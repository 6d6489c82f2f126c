"""Capability names and the rules that request them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kube_typegen.type_graph.graph_models import TypeKind


class CapabilityRuleError(Exception):
    """Raised when a capability rule cannot be parsed."""


class Capability(str, Enum):
    """Capabilities with elision rules; any other name passes through unchanged."""

    EQUALITY = "equality"
    ORDERING = "ordering"
    DEFAULT = "default"
    SCHEMA_REFLECTION = "schema-reflection"
    BUILDER = "builder"


class TargetScope(str, Enum):
    ALL = "all"
    TYPE = "type"
    RECORDS = "records"
    ENUMS = "enums"
    UNIT_ENUMS = "unit-enums"


_SELECTORS = {
    "@record": TargetScope.RECORDS,
    "@records": TargetScope.RECORDS,
    "@struct": TargetScope.RECORDS,
    "@structs": TargetScope.RECORDS,
    "@enum": TargetScope.ENUMS,
    "@enums": TargetScope.ENUMS,
    "@enum:simple": TargetScope.UNIT_ENUMS,
    "@enums:simple": TargetScope.UNIT_ENUMS,
}
_CANONICAL_SELECTORS = {
    TargetScope.RECORDS: "@record",
    TargetScope.ENUMS: "@enum",
    TargetScope.UNIT_ENUMS: "@enum:simple",
}


@dataclass(frozen=True)
class CapabilityTarget:
    """Which generated types a rule applies to."""

    scope: TargetScope
    type_name: str | None = None

    def applies_to(self, name: str, kind: TypeKind) -> bool:
        if self.scope is TargetScope.ALL:
            return True
        if self.scope is TargetScope.TYPE:
            return name == self.type_name
        if self.scope is TargetScope.RECORDS:
            return kind is TypeKind.RECORD
        if self.scope is TargetScope.ENUMS:
            return kind in (TypeKind.UNIT_ENUM, TypeKind.TAGGED_ENUM)
        if self.scope is TargetScope.UNIT_ENUMS:
            return kind is TypeKind.UNIT_ENUM
        raise ValueError(f"Unhandled target scope: {self.scope}")

    def render(self) -> str:
        if self.scope is TargetScope.TYPE:
            return str(self.type_name)
        return _CANONICAL_SELECTORS.get(self.scope, "")


ALL_TYPES = CapabilityTarget(TargetScope.ALL)


@dataclass(frozen=True)
class CapabilityRule:
    """Request for one capability on a set of generated types."""

    target: CapabilityTarget
    capability: str

    def render(self) -> str:
        selector = self.target.render()
        return f"{selector}={self.capability}" if selector else self.capability


def parse_capability_rule(text: str) -> CapabilityRule:
    """Parse `capability`, `TypeName=capability` or `@selector=capability`.

    Examples:
      `equality`, `IssuerSpec=ordering`, `@enum:simple=default`.
    """
    if not isinstance(text, str):
        raise CapabilityRuleError(f"Capability rule must be a string, got {text!r}.")
    selector, separator, capability = text.strip().partition("=")
    if not separator:
        selector, capability = "", selector
    capability = capability.strip()
    if not capability or any(character.isspace() for character in capability):
        raise CapabilityRuleError(f"Invalid capability name in rule '{text}'.")
    if not separator:
        return CapabilityRule(target=ALL_TYPES, capability=capability)

    selector = selector.strip()
    if selector.startswith("@"):
        scope = _SELECTORS.get(selector)
        if scope is None:
            raise CapabilityRuleError(
                f"Unknown selector '{selector}' in rule '{text}'; "
                f"expected one of {', '.join(sorted(_SELECTORS))}."
            )
        return CapabilityRule(target=CapabilityTarget(scope), capability=capability)
    if not selector:
        raise CapabilityRuleError(f"Missing target before '=' in rule '{text}'.")
    return CapabilityRule(
        target=CapabilityTarget(TargetScope.TYPE, type_name=selector), capability=capability
    )


def all_types(capability: str | Capability) -> CapabilityRule:
    value = capability.value if isinstance(capability, Capability) else capability
    return CapabilityRule(target=ALL_TYPES, capability=value)
