"""Resource definition loader service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .schema_nodes import ResourceDefinition, SchemaVersion
from .schema_parser import SchemaParseError, parse_schema_document

_LOGGER = logging.getLogger(__name__)

_DEFINITION_KIND = "CustomResourceDefinition"


class ResourceLoadError(Exception):
    """Raised when a resource definition file cannot be loaded."""


def load_resource_definition(definition_path: Path | str) -> ResourceDefinition:
    """Load the custom resource definition stored in a YAML or JSON file.

    Multi-document YAML is accepted as long as exactly one document is a
    `CustomResourceDefinition`.
    """
    path = Path(definition_path)
    if not path.exists():
        raise ResourceLoadError(f"Resource definition file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        documents = [document for document in yaml.safe_load_all(text) if document is not None]
    except yaml.YAMLError as exc:
        raise ResourceLoadError(f"Failed to parse resource definition file: {exc}") from exc

    candidates = [
        document
        for document in documents
        if isinstance(document, Mapping) and document.get("kind") == _DEFINITION_KIND
    ]
    if not candidates:
        raise ResourceLoadError(f"No {_DEFINITION_KIND} found in {path}")
    if len(candidates) > 1:
        raise ResourceLoadError(
            f"Found {len(candidates)} {_DEFINITION_KIND} documents in {path}; expected one."
        )
    return parse_resource_definition(candidates[0])


def parse_resource_definition(document: Mapping[str, Any]) -> ResourceDefinition:
    """Convert one parsed `CustomResourceDefinition` mapping into a resource definition."""
    spec = _require_mapping(document.get("spec"), "spec")
    names = _require_mapping(spec.get("names"), "spec.names")
    kind = _require_non_empty_string(names.get("kind"), "spec.names.kind")
    plural = names.get("plural")
    group = spec.get("group")
    scope = spec.get("scope", "Namespaced")

    versions_raw = spec.get("versions")
    if versions_raw is None and "version" in spec:
        # apiextensions v1beta1 shape: one schema shared by every version
        versions_raw = [{"name": spec["version"], "served": True, "storage": True}]
    if not isinstance(versions_raw, list) or not versions_raw:
        raise ResourceLoadError(f"Resource definition '{kind}' declares no versions.")

    shared_schema = _nested(spec, "validation", "openAPIV3Schema")
    versions = tuple(_parse_version(entry, shared_schema, kind) for entry in versions_raw)
    _LOGGER.debug("loaded %s with versions %s", kind, [version.label for version in versions])
    return ResourceDefinition(
        kind=kind,
        group=group if isinstance(group, str) else "",
        plural=plural if isinstance(plural, str) and plural else kind.lower(),
        scope=scope if isinstance(scope, str) else "Namespaced",
        versions=versions,
    )


def _parse_version(entry: Any, shared_schema: Any, kind: str) -> SchemaVersion:
    version = _require_mapping(entry, "spec.versions[]")
    label = _require_non_empty_string(version.get("name"), "spec.versions[].name")
    raw_schema = _nested(version, "schema", "openAPIV3Schema")
    if raw_schema is None:
        raw_schema = shared_schema
    if raw_schema is None:
        raise ResourceLoadError(f"Version '{label}' of '{kind}' has no openAPIV3Schema.")
    try:
        document = parse_schema_document(raw_schema)
    except SchemaParseError as exc:
        raise ResourceLoadError(f"Version '{label}' of '{kind}': {exc}") from exc
    return SchemaVersion(
        label=label,
        document=document,
        served=bool(version.get("served", True)),
        storage=bool(version.get("storage", False)),
    )


def _nested(mapping: Mapping[str, Any], *keys: str) -> Any:
    current: Any = mapping
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ResourceLoadError(f"Resource definition section '{section_name}' is required.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ResourceLoadError(f"{field_name} must be a non-empty string.")
    return value.strip()
