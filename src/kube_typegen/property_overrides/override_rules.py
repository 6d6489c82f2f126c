"""User rules that replace or omit properties before synthesis."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

_LOGGER = logging.getLogger(__name__)

NODE_KINDS = frozenset(
    {
        "object",
        "array",
        "map",
        "string",
        "integer",
        "number",
        "boolean",
        "enum",
        "union",
        "unknown",
    }
)
_RULE_KEYS = frozenset({"matchName", "matchPath", "matchKind", "matchSuccess"})


class OverrideRuleError(Exception):
    """Raised when property override rules are malformed."""


class OverrideAction(str, Enum):
    REPLACE = "replace"
    OMIT = "omit"


@dataclass(frozen=True)
class OverrideDecision:
    """What to do with a property a rule matched."""

    action: OverrideAction
    replacement: str | None = None


@dataclass(frozen=True)
class PropertyRule:
    """One compiled `propertyRules` entry."""

    decision: OverrideDecision
    exact_names: frozenset[str] = frozenset()
    name_patterns: tuple[re.Pattern[str], ...] = ()
    path_pattern: re.Pattern[str] | None = None
    match_kind: str | None = None

    def matches(self, name: str, path: str, kind: str) -> bool:
        if self.exact_names or self.name_patterns:
            if name not in self.exact_names and not any(
                pattern.search(name) for pattern in self.name_patterns
            ):
                return False
        if self.path_pattern is not None and not self.path_pattern.search(path):
            return False
        return self.match_kind is None or self.match_kind == kind


@dataclass(frozen=True)
class PropertyOverrides:
    """Ordered rule set with an index of exact property names.

    Rules with exact names are tried first through the index, then every
    rule is scanned in declaration order. The first match wins.
    """

    rules: tuple[PropertyRule, ...] = ()
    _index: Mapping[str, tuple[PropertyRule, ...]] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        index: dict[str, list[PropertyRule]] = {}
        for rule in self.rules:
            for name in sorted(rule.exact_names):
                index.setdefault(name, []).append(rule)
        object.__setattr__(
            self, "_index", {name: tuple(rules) for name, rules in index.items()}
        )

    def decide(self, name: str, path: str, kind: str) -> OverrideDecision | None:
        """Return the decision of the first rule matching a property, if any."""
        for rule in self._index.get(name, ()):
            if rule.matches(name, path, kind):
                return rule.decision
        for rule in self.rules:
            if rule.matches(name, path, kind):
                return rule.decision
        return None

    def extend(self, other: PropertyOverrides) -> PropertyOverrides:
        return PropertyOverrides(rules=self.rules + other.rules)

    @property
    def is_empty(self) -> bool:
        return not self.rules


def load_property_overrides(paths: Iterable[Path | str]) -> PropertyOverrides:
    """Load and concatenate override files in the order given."""
    overrides = PropertyOverrides()
    for raw_path in paths:
        path = Path(raw_path)
        if not path.exists():
            raise OverrideRuleError(f"Override file not found: {path}")
        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise OverrideRuleError(f"Failed to parse override file {path}: {exc}") from exc
        overrides = overrides.extend(parse_property_overrides(parsed, source=str(path)))
    return overrides


def parse_property_overrides(raw: Any, *, source: str = "<inline>") -> PropertyOverrides:
    """Compile a parsed override document, reporting every problem at once."""
    if raw is None:
        return PropertyOverrides()
    if not isinstance(raw, Mapping):
        raise OverrideRuleError(f"Override document {source} must be a mapping.")
    entries = raw.get("propertyRules") or []
    if not isinstance(entries, list):
        raise OverrideRuleError(f"propertyRules in {source} must be a list.")

    errors: list[str] = []
    rules = []
    for position, entry in enumerate(entries):
        rule = _parse_rule(entry, f"propertyRules[{position}]", errors)
        if rule is not None:
            rules.append(rule)
    if errors:
        rendered = "\n".join(f"  - {error}" for error in errors)
        raise OverrideRuleError(f"Invalid property rules in {source}:\n{rendered}")
    _LOGGER.debug("compiled %d property rules from %s", len(rules), source)
    return PropertyOverrides(rules=tuple(rules))


def _parse_rule(raw: Any, label: str, errors: list[str]) -> PropertyRule | None:
    if not isinstance(raw, Mapping):
        errors.append(f"{label} must be a mapping")
        return None
    for key in raw:
        if key not in _RULE_KEYS:
            errors.append(f"{label}: unsupported key '{key}'")
    if not any(key in raw for key in ("matchName", "matchPath", "matchKind")):
        errors.append(f"{label} must declare matchName, matchPath or matchKind")

    problems_before = len(errors)
    decision = _parse_match_success(raw.get("matchSuccess"), label, errors)
    exact_names, name_patterns = _parse_match_name(raw.get("matchName"), label, errors)
    path_pattern = None
    if "matchPath" in raw:
        path_pattern = _compile(raw["matchPath"], f"{label}.matchPath", errors)
    match_kind = raw.get("matchKind")
    if match_kind is not None and match_kind not in NODE_KINDS:
        errors.append(f"{label}.matchKind must be one of {sorted(NODE_KINDS)}")

    if decision is None or len(errors) > problems_before:
        return None
    return PropertyRule(
        decision=decision,
        exact_names=exact_names,
        name_patterns=name_patterns,
        path_pattern=path_pattern,
        match_kind=match_kind,
    )


def _parse_match_success(raw: Any, label: str, errors: list[str]) -> OverrideDecision | None:
    if raw == OverrideAction.OMIT.value:
        return OverrideDecision(action=OverrideAction.OMIT)
    if isinstance(raw, Mapping) and set(raw) == {OverrideAction.REPLACE.value}:
        replacement = raw[OverrideAction.REPLACE.value]
        if isinstance(replacement, str) and replacement.strip():
            return OverrideDecision(action=OverrideAction.REPLACE, replacement=replacement.strip())
        errors.append(f"{label}.matchSuccess.replace must be a non-empty string")
        return None
    errors.append(f"{label}.matchSuccess must be 'omit' or {{replace: TypeName}}")
    return None


def _parse_match_name(
    raw: Any, label: str, errors: list[str]
) -> tuple[frozenset[str], tuple[re.Pattern[str], ...]]:
    if raw is None:
        return frozenset(), ()
    if not isinstance(raw, list):
        errors.append(f"{label}.matchName must be a list")
        return frozenset(), ()
    exact: set[str] = set()
    patterns: list[re.Pattern[str]] = []
    for position, matcher in enumerate(raw):
        matcher_label = f"{label}.matchName[{position}]"
        if isinstance(matcher, Mapping) and set(matcher) == {"exact"}:
            if isinstance(matcher["exact"], str):
                exact.add(matcher["exact"])
            else:
                errors.append(f"{matcher_label}.exact must be a string")
        elif isinstance(matcher, Mapping) and set(matcher) == {"regex"}:
            pattern = _compile(matcher["regex"], f"{matcher_label}.regex", errors)
            if pattern is not None:
                patterns.append(pattern)
        else:
            errors.append(f"{matcher_label} must be {{exact: ...}} or {{regex: ...}}")
    return frozenset(exact), tuple(patterns)


def _compile(raw: Any, label: str, errors: list[str]) -> re.Pattern[str] | None:
    if not isinstance(raw, str):
        errors.append(f"{label} must be a string")
        return None
    try:
        return re.compile(raw)
    except re.error as exc:
        errors.append(f"{label}: invalid regular expression {raw!r} ({exc})")
        return None
