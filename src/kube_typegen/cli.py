"""Command line interface entry point."""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from typing import Any

import click
import yaml

from kube_typegen.capability_resolution import CapabilityRuleError, parse_capability_rule
from kube_typegen.configuration import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    GeneratorConfig,
    load_configuration,
    write_placeholder_configuration,
)
from kube_typegen.known_shapes import KnownShape
from kube_typegen.logging_setup import configure_logging
from kube_typegen.property_overrides import OverrideRuleError, load_property_overrides
from kube_typegen.schema_model import (
    ResourceDefinition,
    ResourceLoadError,
    load_resource_definition,
)
from kube_typegen.type_graph import (
    MapRepresentation,
    SchemaCapabilityMode,
    TypeSynthesisError,
    project_type_graph,
)
from kube_typegen.type_synthesis import (
    SynthesisRequest,
    synthesize_each_version,
    synthesize_type_graph,
)
from kube_typegen.version_reconciliation import sort_version_labels


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="kube-typegen")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log analysis steps.")
def cli(verbose: bool) -> None:
    """Type graph synthesis for Kubernetes custom resource definitions."""
    configure_logging(verbose=verbose)


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML generator configuration to write",
)
def generate_config(output_path: str) -> None:
    """Generate a YAML generator configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="versions")
@click.argument("crd_path", type=click.Path(path_type=str))
def list_versions(crd_path: str) -> None:
    """List the versions of a resource definition, highest priority first."""
    definition = _load_definition(crd_path)
    flags_by_label = {version.label: version for version in definition.versions}
    for label in sort_version_labels(flags_by_label):
        version = flags_by_label[label]
        markers = []
        if version.storage:
            markers.append("storage")
        if not version.served:
            markers.append("not served")
        suffix = f" ({', '.join(markers)})" if markers else ""
        click.echo(f"{label}{suffix}")


@cli.command(name="analyze")
@click.argument("crd_path", type=click.Path(path_type=str))
@click.option(
    "--config",
    "config_path",
    required=False,
    type=click.Path(path_type=str),
    help="Path to a YAML generator configuration; flags below take precedence",
)
@click.option("--api-version", "version_pin", help="Analyze this version only")
@click.option(
    "--combine-versions",
    is_flag=True,
    default=False,
    help="Merge every version; fields missing from some versions become optional.",
)
@click.option("--docs", is_flag=True, default=False, help="Keep schema descriptions.")
@click.option("--builders", is_flag=True, default=False, help="Request builders on records.")
@click.option(
    "--schema",
    "schema_mode",
    type=click.Choice([mode.value for mode in SchemaCapabilityMode]),
    help="Schema reflection mode",
)
@click.option(
    "--derive",
    "derive_rules",
    multiple=True,
    help="Capability rule: CAPABILITY, TYPE=CAPABILITY or @record|@enum|@enum:simple=CAPABILITY",
)
@click.option("--elide", "elided", multiple=True, help="Flag a generated type as elided")
@click.option(
    "--relaxed",
    is_flag=True,
    default=False,
    help="Treat unsupported constructs and ambiguous unions as opaque values.",
)
@click.option("--no-condition", is_flag=True, default=False, help="Do not substitute Condition.")
@click.option(
    "--no-object-reference",
    is_flag=True,
    default=False,
    help="Do not substitute ObjectReference.",
)
@click.option(
    "--map-type",
    "map_type",
    type=click.Choice([representation.value for representation in MapRepresentation]),
    help="Map key ordering hint for emitters",
)
@click.option(
    "--auto",
    is_flag=True,
    default=False,
    help="Keep documentation and derive schema reflection.",
)
@click.option(
    "--overrides",
    "override_paths",
    multiple=True,
    type=click.Path(path_type=str),
    help="Property override file; may be repeated",
)
@click.option(
    "--all-versions",
    is_flag=True,
    default=False,
    help="Build one independent graph per version.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["yaml", "json"]),
    default="yaml",
    show_default=True,
    help="Output format of the projected type graph",
)
def analyze(  # pylint: disable=too-many-arguments,too-many-locals
    crd_path: str,
    config_path: str | None,
    version_pin: str | None,
    combine_versions: bool,
    docs: bool,
    builders: bool,
    schema_mode: str | None,
    derive_rules: tuple[str, ...],
    elided: tuple[str, ...],
    relaxed: bool,
    no_condition: bool,
    no_object_reference: bool,
    map_type: str | None,
    auto: bool,
    override_paths: tuple[str, ...],
    all_versions: bool,
    output_format: str,
) -> None:
    """Analyze a resource definition and print its projected type graph."""
    changes: dict[str, Any] = {}
    if version_pin:
        changes["version_pin"] = version_pin
    if schema_mode:
        changes["schema_capability_mode"] = SchemaCapabilityMode(schema_mode)
    if map_type:
        changes["map_representation"] = MapRepresentation(map_type)
    for option_name, enabled in (
        ("combine_versions", combine_versions),
        ("enable_docs", docs),
        ("enable_builders", builders),
        ("relaxed", relaxed),
        ("auto", auto),
    ):
        if enabled:
            changes[option_name] = True

    try:
        config = _build_configuration(
            config_path,
            changes,
            derive_rules=derive_rules,
            elided=elided,
            suppressed={
                shape
                for shape, suppress in (
                    (KnownShape.CONDITION, no_condition),
                    (KnownShape.OBJECT_REFERENCE, no_object_reference),
                )
                if suppress
            },
            override_paths=override_paths,
        )
        definition = _load_definition(crd_path)
        if all_versions:
            document: dict[str, Any] = {
                label: project_type_graph(outcome.graph)
                for label, outcome in synthesize_each_version(definition, config).items()
            }
        else:
            outcome = synthesize_type_graph(SynthesisRequest(definition=definition, config=config))
            document = project_type_graph(outcome.graph)
    except TypeSynthesisError as exc:
        raise CliError(str(exc)) from exc
    click.echo(_render(document, output_format))


def _build_configuration(
    config_path: str | None,
    changes: dict[str, Any],
    *,
    derive_rules: tuple[str, ...],
    elided: tuple[str, ...],
    suppressed: set[KnownShape],
    override_paths: tuple[str, ...],
) -> GeneratorConfig:
    try:
        base = load_configuration(config_path) if config_path else GeneratorConfig()
        rules = tuple(parse_capability_rule(rule) for rule in derive_rules)
        overrides = base.overrides.extend(load_property_overrides(override_paths))
    except (ConfigurationError, CapabilityRuleError, OverrideRuleError, OSError) as exc:
        raise CliError(str(exc)) from exc
    return replace(
        base,
        extra_capabilities=base.extra_capabilities + rules,
        elide=base.elide | frozenset(elided),
        suppress_known_shapes=base.suppress_known_shapes | frozenset(suppressed),
        overrides=overrides,
        **changes,
    )


def _load_definition(crd_path: str) -> ResourceDefinition:
    try:
        return load_resource_definition(crd_path)
    except (ResourceLoadError, OSError) as exc:
        raise CliError(str(exc)) from exc


def _render(document: dict[str, Any], output_format: str) -> str:
    if output_format == "json":
        return json.dumps(document, indent=2)
    return yaml.safe_dump(document, sort_keys=False).rstrip("\n")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
