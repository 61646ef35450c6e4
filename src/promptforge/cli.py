"""Command-line interface for PromptForge.

Provides commands for compiling render requests into prompts, listing
the reference images a request points at, validating request files, and
inspecting the attribute schemas.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from promptforge.compiler import compile_prompt
from promptforge.config import check_render_request, load_render_request
from promptforge.errors import PromptForgeError
from promptforge.logging import setup_logging
from promptforge.models import CollectedAssetRef, DefinitionKind, RenderRequest
from promptforge.registry import SchemaRegistry, get_registry, load_registry
from promptforge.resolver import (
    collect_asset_refs,
    resolve_image_refs,
    usage_overrides_from_metadata,
)

console = Console()

_CLI_ERRORS = (PromptForgeError, ValidationError, FileNotFoundError)


def _setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    if verbose:
        setup_logging(level=logging.DEBUG, verbose=True)
    else:
        setup_logging(level=logging.WARNING)


def _registry(schema_dir: Path | None) -> SchemaRegistry:
    if schema_dir is None:
        return get_registry()
    return load_registry(schema_dir)


def _fail(message: str, exc: Exception, verbose: bool = False) -> NoReturn:
    console.print(f"[bold red]✗[/] {message}: {escape(str(exc))}")
    if verbose:
        console.print_exception()
    sys.exit(1)


def _collect_refs(request: RenderRequest) -> list[CollectedAssetRef]:
    return collect_asset_refs(
        request.characters,
        request.style,
        request.scene,
        request.reference_constraint,
    )


request_argument = click.argument(
    "request_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
schema_dir_option = click.option(
    "--schema-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    envvar="PROMPTFORGE_SCHEMA_DIR",
    help="Directory with alternative schema YAML files",
)
verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable detailed logging",
)


@click.group()
@click.version_option(package_name="promptforge")
def main() -> None:
    """PromptForge — compile character, style and scene definitions into prompts."""
    load_dotenv(override=False)


@main.command(name="compile")
@request_argument
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the prompt to this file instead of stdout",
)
@click.option(
    "--with-image-refs",
    is_flag=True,
    help="List the request's resolved reference images under IMAGE REFERENCES",
)
@schema_dir_option
@verbose_option
def compile_command(
    request_path: Path,
    output: Path | None,
    with_image_refs: bool,
    schema_dir: Path | None,
    verbose: bool,
) -> None:
    """Compile a render request into a prompt.

    REQUEST_PATH: Path to the YAML render request

    Example:

        \b
        promptforge compile configs/examples/mira.yaml
        promptforge compile configs/examples/mira.yaml -o prompt.txt --with-image-refs
    """
    _setup_logging(verbose)

    try:
        registry = _registry(schema_dir)
        request = load_render_request(request_path)

        image_refs = None
        if with_image_refs:
            overrides: dict[str, str] = {}
            if request.reference_constraint is not None:
                overrides = usage_overrides_from_metadata(
                    request.reference_constraint.metadata
                )
            image_refs = resolve_image_refs(
                _collect_refs(request), request.assets, overrides
            )

        constraint = request.reference_constraint
        prompt = compile_prompt(
            request.task,
            request.characters,
            request.style.metadata if request.style else None,
            request.scene.metadata if request.scene else None,
            reference_constraint=constraint.metadata if constraint else None,
            reference_constraint_name=constraint.name if constraint else None,
            image_references=image_refs,
            registry=registry,
        )
    except _CLI_ERRORS as e:
        _fail("Compilation failed", e, verbose)

    if output is None:
        click.echo(prompt)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(prompt + "\n", encoding="utf-8")
    console.print(f"[bold green]✓[/] Prompt written to {escape(str(output))}")


@main.command()
@request_argument
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the collected references as JSON",
)
@verbose_option
def refs(request_path: Path, as_json: bool, verbose: bool) -> None:
    """List the asset references a render request points at.

    REQUEST_PATH: Path to the YAML render request

    Example:

        \b
        promptforge refs configs/examples/mira.yaml
        promptforge refs configs/examples/mira.yaml --json
    """
    _setup_logging(verbose)

    try:
        request = load_render_request(request_path)
    except _CLI_ERRORS as e:
        _fail("Could not load request", e, verbose)

    collected = _collect_refs(request)

    if as_json:
        click.echo(
            json.dumps([ref.model_dump(mode="json") for ref in collected], indent=2)
        )
        return

    if not collected:
        console.print("[bold yellow]⚠[/] No asset references found")
        return

    table = Table(title="Asset references")
    table.add_column("Scope")
    table.add_column("Definition")
    table.add_column("Asset type")
    table.add_column("Source")
    table.add_column("Asset IDs")
    for ref in collected:
        binding = ref.binding
        table.add_row(
            ref.scope.value,
            escape(ref.definition_name),
            ref.asset_type.value,
            f"{binding.metadata_category_key}.{binding.metadata_property_key}",
            escape(", ".join(ref.asset_ids)),
        )
    console.print(table)


@main.command()
@request_argument
@schema_dir_option
@verbose_option
def validate(request_path: Path, schema_dir: Path | None, verbose: bool) -> None:
    """Validate a render request without compiling it.

    REQUEST_PATH: Path to the YAML render request

    Performs:
    - YAML syntax and structure
    - Pydantic validation
    - Metadata keys and option values against the schema
    - Asset records for every referenced asset ID

    Example:

        \b
        promptforge validate configs/examples/mira.yaml
    """
    _setup_logging(verbose)

    try:
        registry = _registry(schema_dir)
        with console.status(f"[bold blue]Validating {escape(str(request_path))}..."):
            request = load_render_request(request_path)
            warnings = check_render_request(request, registry=registry)
    except _CLI_ERRORS as e:
        _fail("Validation failed", e, verbose)

    console.print("[bold green]✓[/] Request is valid")
    console.print(f"  Characters: {len(request.characters)}")
    console.print(f"  Style: {'yes' if request.style else 'no'}")
    console.print(f"  Scene: {'yes' if request.scene else 'no'}")

    if warnings:
        console.print()
        console.print(f"[bold yellow]⚠[/] {len(warnings)} warning(s):")
        for warning in warnings:
            console.print(f"  • {escape(warning)}")


@main.command()
@click.argument(
    "kind",
    type=click.Choice([kind.value for kind in DefinitionKind]),
)
@schema_dir_option
def schema(kind: str, schema_dir: Path | None) -> None:
    """Show the categories and properties of a definition kind.

    KIND: character, scene, style or reference_constraint

    Example:

        \b
        promptforge schema character
    """
    try:
        registry = _registry(schema_dir)
    except _CLI_ERRORS as e:
        _fail("Could not load schemas", e)

    definition_schema = registry.get_schema(kind)
    if definition_schema is None:
        console.print(f"[bold red]✗[/] No schema loaded for {kind}")
        sys.exit(1)

    table = Table(title=f"{kind} schema")
    table.add_column("Order", justify="right")
    table.add_column("Category")
    table.add_column("Property")
    table.add_column("Label")
    table.add_column("Type")
    table.add_column("Options", justify="right")
    for category in definition_schema.categories:
        for prop in category.properties:
            table.add_row(
                str(category.order),
                category.key,
                prop.key,
                escape(prop.label),
                prop.type.value,
                str(len(prop.options)),
            )
    console.print(table)
