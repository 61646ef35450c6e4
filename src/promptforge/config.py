"""YAML loading and validation for render-request files."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from promptforge.bindings import asset_metadata_keys
from promptforge.errors import ConfigError
from promptforge.logging import get_logger
from promptforge.metadata import character_display_name
from promptforge.models import Definition, DefinitionKind, PropertyType, RenderRequest
from promptforge.registry import SchemaRegistry, get_registry
from promptforge.resolver import USAGE_CATEGORY_KEY, collect_asset_refs

logger = get_logger("config")

_DEFINITION_KEYS = ("style", "scene", "reference_constraint")
_OPTION_TYPES = (PropertyType.ENUM, PropertyType.TAGS)


def validate_request_path(path: str | Path) -> Path:
    """Resolve and validate that a render-request file exists.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    resolved = Path(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"Request file not found: {resolved}")
    return resolved


def _parse_yaml(path: Path) -> dict:
    """Read and parse a YAML (or JSON) request file.

    Raises:
        ConfigError: If the YAML is malformed or not a mapping.
    """
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}"
        )
    return data


def load_render_request(path: str | Path) -> RenderRequest:
    """Load a render request from a YAML file.

    Expected YAML shape::

        task: "close-up portrait"
        characters:
          - id: 1
            name: Mira
            metadata:
              core_identity: {age_range: mid_20s}
        style: {id: 3, name: Ink, metadata: {...}}
        scene: null
        reference_constraint: null
        assets:
          - {id: 12, type: character_face, name: mira-face.png}

    ``metadata`` may also be a JSON-encoded string, as persisted rows
    often hold.

    Returns:
        A validated :class:`RenderRequest`.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigError: If the YAML is malformed or a section has the wrong shape.
        ValidationError: If the content fails pydantic validation.
    """
    resolved = validate_request_path(path)
    data = _parse_yaml(resolved)

    # --- Type-check top-level sections ---
    for key in ("characters", "assets"):
        value = data.get(key)
        if value is not None and not isinstance(value, list):
            raise ConfigError(
                f"'{key}' section must be a YAML sequence, "
                f"got {type(value).__name__}"
            )
    for key in _DEFINITION_KEYS:
        value = data.get(key)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"'{key}' section must be a YAML mapping, "
                f"got {type(value).__name__}"
            )

    request = RenderRequest(**data)

    logger.info(
        "Loaded request: %s (%d characters, style=%s, scene=%s, %d assets)",
        resolved.name,
        len(request.characters),
        "yes" if request.style else "no",
        "yes" if request.scene else "no",
        len(request.assets),
        extra={"path": str(resolved)},
    )
    return request


# ---------------------------------------------------------------------------
# Semantic checks
# ---------------------------------------------------------------------------


def _definition_label(kind: DefinitionKind, definition: Definition) -> str:
    if kind is DefinitionKind.CHARACTER:
        name = character_display_name(definition.name, definition.metadata)
    else:
        name = definition.name.strip() or "unnamed"
    return f"{kind.value} '{name}'"


def _option_warnings(
    label: str, category_key: str, prop_key: str, value: Any, options: frozenset[str]
) -> list[str]:
    values = value if isinstance(value, list) else [value]
    return [
        f"{label}: value '{item}' for {category_key}.{prop_key} "
        f"is not one of the allowed options"
        for item in values
        if isinstance(item, str) and item.strip() and item not in options
    ]


def _metadata_warnings(
    kind: DefinitionKind, definition: Definition, registry: SchemaRegistry
) -> list[str]:
    warnings: list[str] = []
    metadata = definition.metadata
    if not metadata:
        return warnings

    label = _definition_label(kind, definition)
    for category_key, category_value in metadata.items():
        if kind is DefinitionKind.REFERENCE_CONSTRAINT and (
            category_key == USAGE_CATEGORY_KEY
        ):
            continue
        category = registry.get_category(kind, category_key)
        if category is None:
            warnings.append(f"{label}: unknown category '{category_key}'")
            continue
        if not isinstance(category_value, Mapping):
            warnings.append(
                f"{label}: category '{category_key}' is not a mapping "
                f"and will be ignored"
            )
            continue

        storage_keys = asset_metadata_keys(kind, category_key)
        for prop_key, value in category_value.items():
            prop_key = str(prop_key)
            if prop_key in storage_keys:
                continue
            prop = registry.get_property(kind, category_key, prop_key)
            if prop is None:
                warnings.append(
                    f"{label}: unknown property '{category_key}.{prop_key}'"
                )
                continue
            if prop.type in _OPTION_TYPES and prop.options and not prop.allow_custom:
                warnings.extend(
                    _option_warnings(
                        label, category_key, prop_key, value, prop.option_values
                    )
                )
    return warnings


def validate_render_request(
    path: str | Path, registry: SchemaRegistry | None = None
) -> list[str]:
    """Load a render-request file and return its warnings.

    Raises:
        FileNotFoundError: If the request file doesn't exist.
        ConfigError: If the file is malformed.
        ValidationError: If pydantic validation fails.
    """
    return check_render_request(load_render_request(path), registry)


def check_render_request(
    request: RenderRequest, registry: SchemaRegistry | None = None
) -> list[str]:
    """Run the non-fatal semantic checks on a loaded request:

    - The task instruction is non-empty
    - At least one character, style or scene is present
    - Metadata categories and properties are known to the schema
    - Enum/tags values are among the options when custom values are
      not allowed
    - Every referenced asset ID has an asset record (only checked when
      the request lists assets)

    Returns:
        List of warning strings (empty if no warnings).
    """
    if registry is None:
        registry = get_registry()

    warnings: list[str] = []

    # --- Check 1: Task instruction ---
    if not request.task.strip():
        warnings.append("Task instruction is empty; a placeholder will be used")

    # --- Check 2: Content definitions ---
    if not request.has_content:
        warnings.append("Request has no characters, style or scene")

    # --- Check 3: Metadata against the schema ---
    definitions: list[tuple[DefinitionKind, Definition]] = [
        (DefinitionKind.CHARACTER, character) for character in request.characters
    ]
    for kind, definition in (
        (DefinitionKind.STYLE, request.style),
        (DefinitionKind.SCENE, request.scene),
        (DefinitionKind.REFERENCE_CONSTRAINT, request.reference_constraint),
    ):
        if definition is not None:
            definitions.append((kind, definition))
    for kind, definition in definitions:
        warnings.extend(_metadata_warnings(kind, definition, registry))

    # --- Check 4: Asset records for referenced IDs ---
    if request.assets:
        known = {asset.key for asset in request.assets}
        refs = collect_asset_refs(
            request.characters,
            request.style,
            request.scene,
            request.reference_constraint,
        )
        for ref in refs:
            for asset_id in ref.asset_ids:
                if asset_id not in known:
                    warnings.append(
                        f"{ref.definition_name}: asset id '{asset_id}' "
                        f"has no matching asset record"
                    )

    for warning in warnings:
        logger.debug("Validation warning: %s", warning)
    return warnings
