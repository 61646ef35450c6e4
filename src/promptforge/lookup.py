"""Schema lookup: labels, options and canonical order for metadata keys.

Every function returns ``None`` (or an empty tuple) on a miss and never
consults metadata, so they are safe to call with keys taken straight
from untrusted persisted JSON.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from promptforge.models import (
    DefinitionKind,
    SchemaCategory,
    SchemaOption,
    SchemaProperty,
)
from promptforge.registry import SchemaRegistry, coerce_kind, get_registry

# Kinds whose prompt bodies follow the schema's category order.  Scene
# metadata is an untyped bag and is walked by key instead.
CANONICAL_ORDER_KINDS: frozenset[DefinitionKind] = frozenset(
    {DefinitionKind.CHARACTER, DefinitionKind.STYLE}
)


def find_category(
    kind: DefinitionKind | str,
    category_key: str,
    registry: SchemaRegistry | None = None,
) -> SchemaCategory | None:
    """Return the schema category *category_key* of *kind*, or ``None``."""
    if registry is None:
        registry = get_registry()
    return registry.get_category(kind, category_key)


def find_property(
    kind: DefinitionKind | str,
    category_key: str,
    property_key: str,
    registry: SchemaRegistry | None = None,
) -> SchemaProperty | None:
    """Return the schema property of *kind* at *category_key*/*property_key*."""
    if registry is None:
        registry = get_registry()
    return registry.get_property(kind, category_key, property_key)


def resolve_option_label(
    options: Iterable[SchemaOption] | None, value: Any
) -> str | None:
    """Return the label of the option whose value equals *value*.

    Returns:
        The option label, or ``None`` when there are no options or the
        value is custom/unrecognised.
    """
    if not options or not isinstance(value, str):
        return None
    for option in options:
        if option.value == value:
            return option.label
    return None


def canonical_category_order(
    kind: DefinitionKind | str,
    registry: SchemaRegistry | None = None,
) -> tuple[str, ...]:
    """Return the category keys *kind* is compiled in, or ``()``.

    Character and style bodies follow the schema's ``order``; other kinds
    have no canonical order.
    """
    resolved = coerce_kind(kind)
    if resolved not in CANONICAL_ORDER_KINDS:
        return ()
    if registry is None:
        registry = get_registry()
    schema = registry.get_schema(resolved)
    if schema is None:
        return ()
    return schema.category_keys
