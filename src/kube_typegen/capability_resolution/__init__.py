"""Capability resolution exports."""

from .capability_resolver import requested_capability_rules, resolve_capabilities
from .capability_targets import (
    ALL_TYPES,
    Capability,
    CapabilityRule,
    CapabilityRuleError,
    CapabilityTarget,
    TargetScope,
    all_types,
    parse_capability_rule,
)

__all__ = [
    "ALL_TYPES",
    "Capability",
    "CapabilityRule",
    "CapabilityRuleError",
    "CapabilityTarget",
    "TargetScope",
    "all_types",
    "parse_capability_rule",
    "requested_capability_rules",
    "resolve_capabilities",
]
