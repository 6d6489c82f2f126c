"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import yaml

from kube_typegen.capability_resolution.capability_targets import (
    CapabilityRule,
    CapabilityRuleError,
    parse_capability_rule,
)
from kube_typegen.known_shapes import SUPPRESSIBLE_SHAPES, KnownShape
from kube_typegen.property_overrides import (
    OverrideRuleError,
    PropertyOverrides,
    load_property_overrides,
)
from kube_typegen.type_graph.graph_models import (
    MapRepresentation,
    PropertyOrder,
    SchemaCapabilityMode,
)

from .runtime_settings import DEFAULT_MAX_DEPTH, GeneratorConfig

_ChoiceT = TypeVar("_ChoiceT", bound=Enum)

_KNOWN_KEYS = frozenset(
    {
        "version_pin",
        "combine_versions",
        "enable_docs",
        "enable_builders",
        "schema_capability_mode",
        "extra_capabilities",
        "elide",
        "relaxed",
        "suppress_known_shapes",
        "map_representation",
        "auto",
        "property_order",
        "max_depth",
        "overrides",
    }
)


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> GeneratorConfig:
    """Load and validate the generator configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")
    return parse_configuration(parsed, base_path=path.parent)


def parse_configuration(parsed: Mapping[str, Any], *, base_path: Path) -> GeneratorConfig:
    """Validate an already parsed configuration mapping."""
    unknown = sorted(str(key) for key in parsed if key not in _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    return GeneratorConfig(
        version_pin=_optional_string(parsed.get("version_pin"), "version_pin"),
        combine_versions=_require_bool(parsed.get("combine_versions", False), "combine_versions"),
        enable_docs=_require_bool(parsed.get("enable_docs", False), "enable_docs"),
        enable_builders=_require_bool(parsed.get("enable_builders", False), "enable_builders"),
        schema_capability_mode=_require_choice(
            parsed.get("schema_capability_mode", SchemaCapabilityMode.DISABLED.value),
            SchemaCapabilityMode,
            "schema_capability_mode",
        ),
        extra_capabilities=_parse_capability_rules(parsed.get("extra_capabilities")),
        elide=frozenset(_normalize_string_sequence(parsed.get("elide"), "elide")),
        relaxed=_require_bool(parsed.get("relaxed", False), "relaxed"),
        suppress_known_shapes=_parse_suppressed_shapes(parsed.get("suppress_known_shapes")),
        map_representation=_require_choice(
            parsed.get("map_representation", MapRepresentation.ORDERED.value),
            MapRepresentation,
            "map_representation",
        ),
        auto=_require_bool(parsed.get("auto", False), "auto"),
        property_order=_require_choice(
            parsed.get("property_order", PropertyOrder.DECLARED.value),
            PropertyOrder,
            "property_order",
        ),
        max_depth=_require_positive_int(parsed.get("max_depth", DEFAULT_MAX_DEPTH), "max_depth"),
        overrides=_load_overrides(parsed.get("overrides"), base_path),
    )


def _parse_capability_rules(value: Any) -> tuple[CapabilityRule, ...]:
    rules = []
    for text in _normalize_string_sequence(value, "extra_capabilities"):
        try:
            rules.append(parse_capability_rule(text))
        except CapabilityRuleError as exc:
            raise ConfigurationError(f"extra_capabilities: {exc}") from exc
    return tuple(rules)


def _parse_suppressed_shapes(value: Any) -> frozenset[KnownShape]:
    shapes = set()
    for text in _normalize_string_sequence(value, "suppress_known_shapes"):
        shape = _require_choice(text, KnownShape, "suppress_known_shapes")
        if shape not in SUPPRESSIBLE_SHAPES:
            raise ConfigurationError(f"suppress_known_shapes: '{text}' cannot be suppressed.")
        shapes.add(shape)
    return frozenset(shapes)


def _load_overrides(value: Any, base_path: Path) -> PropertyOverrides:
    paths = [
        _resolve_path(base_path, raw_path)
        for raw_path in _normalize_string_sequence(value, "overrides")
    ]
    try:
        return load_property_overrides(paths)
    except OverrideRuleError as exc:
        raise ConfigurationError(str(exc)) from exc


def _normalize_string_sequence(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        stripped = value.strip()
        return (stripped,) if stripped else ()
    if isinstance(value, Sequence):
        normalized = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            stripped = item.strip()
            if stripped:
                normalized.append(stripped)
        return tuple(normalized)
    raise ConfigurationError(f"{field_name} must be a string or list of strings.")


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _require_choice(value: Any, choices: type[_ChoiceT], field_name: str) -> _ChoiceT:
    try:
        return choices(value)
    except ValueError as exc:
        allowed = ", ".join(str(choice.value) for choice in choices)
        raise ConfigurationError(f"{field_name} must be one of: {allowed}.") from exc


def _require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be a boolean.")
    return value


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value
