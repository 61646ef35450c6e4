"""Schema registry: immutable category/property tables per definition kind.

The tables live in YAML files (one per kind) shipped inside the package
under ``promptforge/schemas``.  They are loaded once and indexed by
``(kind, category)`` and ``(kind, category, property)`` so lookups never
scan lists.  Nothing mutates a registry after construction, so one
instance can be shared by any number of concurrent compilations.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from promptforge.errors import SchemaError
from promptforge.logging import get_logger
from promptforge.models import (
    DefinitionKind,
    DefinitionSchema,
    SchemaCategory,
    SchemaProperty,
)

logger = get_logger("registry")

PACKAGED_SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"


def schema_filename(kind: DefinitionKind) -> str:
    """Return the data file name for *kind* (e.g. ``"character.yaml"``)."""
    return f"{kind.value}.yaml"


def coerce_kind(kind: DefinitionKind | str) -> DefinitionKind | None:
    """Convert *kind* to a :class:`DefinitionKind`, or ``None`` if unknown."""
    if isinstance(kind, DefinitionKind):
        return kind
    try:
        return DefinitionKind(kind)
    except ValueError:
        return None


class SchemaRegistry:
    """Indexed, read-only view over one schema per definition kind."""

    def __init__(self, schemas: Iterable[DefinitionSchema]) -> None:
        self._schemas: dict[DefinitionKind, DefinitionSchema] = {}
        self._categories: dict[tuple[DefinitionKind, str], SchemaCategory] = {}
        self._properties: dict[tuple[DefinitionKind, str, str], SchemaProperty] = {}

        for schema in schemas:
            if schema.kind in self._schemas:
                raise SchemaError(f"Duplicate schema for kind {schema.kind.value!r}")
            self._schemas[schema.kind] = schema
            for category in schema.categories:
                self._categories[(schema.kind, category.key)] = category
                for prop in category.properties:
                    self._properties[(schema.kind, category.key, prop.key)] = prop

    @property
    def kinds(self) -> tuple[DefinitionKind, ...]:
        """Definition kinds with a loaded schema."""
        return tuple(self._schemas)

    def get_schema(self, kind: DefinitionKind | str) -> DefinitionSchema | None:
        """Return the schema for *kind*, or ``None`` if none is loaded."""
        resolved = coerce_kind(kind)
        if resolved is None:
            return None
        return self._schemas.get(resolved)

    def get_category(
        self, kind: DefinitionKind | str, category_key: str
    ) -> SchemaCategory | None:
        """Return a category by key, or ``None`` when absent."""
        resolved = coerce_kind(kind)
        if resolved is None or not isinstance(category_key, str):
            return None
        return self._categories.get((resolved, category_key))

    def get_property(
        self, kind: DefinitionKind | str, category_key: str, property_key: str
    ) -> SchemaProperty | None:
        """Return a property by category and property key, or ``None``."""
        resolved = coerce_kind(kind)
        if (
            resolved is None
            or not isinstance(category_key, str)
            or not isinstance(property_key, str)
        ):
            return None
        return self._properties.get((resolved, category_key, property_key))


def _parse_yaml(path: Path) -> dict[str, Any]:
    """Read and parse a schema YAML file.

    Raises:
        SchemaError: If the file is missing, malformed, or not a mapping.
    """
    if not path.is_file():
        raise SchemaError(f"Schema file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise SchemaError(f"Malformed YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise SchemaError(
            f"Expected a YAML mapping at top level of {path}, "
            f"got {type(data).__name__}"
        )
    return data


def load_schema_file(
    path: str | Path, expected_kind: DefinitionKind | None = None
) -> DefinitionSchema:
    """Load and validate one schema data file.

    Args:
        path: Path to a schema YAML file.
        expected_kind: When given, the file's ``kind`` must match it.

    Returns:
        A validated, category-sorted :class:`DefinitionSchema`.

    Raises:
        SchemaError: If the file is unreadable, fails validation
            (duplicate category keys or orders, duplicate property keys,
            unknown property types), or declares the wrong kind.
    """
    resolved = Path(path)
    data = _parse_yaml(resolved)

    try:
        schema = DefinitionSchema(**data)
    except ValidationError as exc:
        raise SchemaError(f"Invalid schema in {resolved}: {exc}") from exc

    if expected_kind is not None and schema.kind is not expected_kind:
        raise SchemaError(
            f"{resolved} declares kind {schema.kind.value!r}, "
            f"expected {expected_kind.value!r}"
        )

    logger.info(
        "Loaded schema: %s (%d categories, %d properties)",
        schema.kind.value,
        len(schema.categories),
        sum(len(category.properties) for category in schema.categories),
        extra={"kind": schema.kind.value, "path": str(resolved)},
    )
    return schema


def load_registry(schema_dir: str | Path | None = None) -> SchemaRegistry:
    """Load every definition kind's schema from *schema_dir*.

    Args:
        schema_dir: Directory holding ``character.yaml``, ``scene.yaml``,
            ``style.yaml`` and ``reference_constraint.yaml``.  Defaults to
            the tables shipped with the package.

    Returns:
        A new :class:`SchemaRegistry`.

    Raises:
        SchemaError: If any schema file is missing or invalid.
    """
    directory = Path(schema_dir) if schema_dir is not None else PACKAGED_SCHEMA_DIR
    schemas = [
        load_schema_file(directory / schema_filename(kind), expected_kind=kind)
        for kind in DefinitionKind
    ]
    return SchemaRegistry(schemas)


@lru_cache(maxsize=1)
def get_registry() -> SchemaRegistry:
    """Return the process-wide registry built from the packaged tables."""
    return load_registry()
