"""Property override exports."""

from .override_rules import (
    NODE_KINDS,
    OverrideAction,
    OverrideDecision,
    OverrideRuleError,
    PropertyOverrides,
    PropertyRule,
    load_property_overrides,
    parse_property_overrides,
)

__all__ = [
    "NODE_KINDS",
    "OverrideAction",
    "OverrideDecision",
    "OverrideRuleError",
    "PropertyOverrides",
    "PropertyRule",
    "load_property_overrides",
    "parse_property_overrides",
]
