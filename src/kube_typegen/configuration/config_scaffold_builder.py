"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "kube-typegen.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Generator configuration for kube-typegen.
# Every key is optional; command line flags given to `analyze` win over this file.

# Analyze this version instead of the storage / highest-priority served one.
# version_pin: v1

# Merge all versions into one schema; fields missing from some versions become optional.
combine_versions: false

# Keep schema descriptions as documentation on types and fields.
enable_docs: false

# Request the builder capability on every record.
enable_builders: false

# Schema reflection: disabled, manual or derived.
schema_capability_mode: disabled

# Extra capabilities: "capability", "TypeName=capability", "@record=capability",
# "@enum=capability" or "@enum:simple=capability".
extra_capabilities: []
#  - equality
#  - "@enum:simple=default"

# Generated type names to flag as elided; they stay in the graph.
elide: []

# Downgrade unsupported constructs and ambiguous unions to opaque values.
relaxed: false

# Known shapes to synthesize instead of substituting: condition, object-reference.
suppress_known_shapes: []

# Map key ordering hint for emitters: ordered or unordered.
map_representation: ordered

# Shorthand for enable_docs: true and schema_capability_mode: derived.
auto: false

# Field order of generated records: declared or lexical.
property_order: declared

# Maximum schema path depth before analysis stops.
max_depth: 64

# Property override files, relative to this file.
overrides: []
#  - overrides.yaml
"""


def build_placeholder_configuration() -> str:
    """Build a YAML generator configuration with defaults and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder generator configuration to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
