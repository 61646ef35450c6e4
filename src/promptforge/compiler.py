"""Prompt compiler: definition metadata + schema -> ordered prompt text.

The compiled prompt is a fixed sequence of titled sections:

1. ``IMAGE REFERENCES`` (always; placeholder when no images are listed)
2. ``REFERENCE CONSTRAINTS`` (only when a constraint has content)
3. ``STYLE`` (only when the style renders to something)
4. ``CHARACTERS`` (only when at least one character is given)
5. ``SCENE`` (only when the scene renders to something)
6. ``TASK`` (always; placeholder when the task is blank)
7. ``TEXT ELEMENTS`` (always; placeholder)

Sections are joined with one blank line, and ``CHARACTERS`` also leaves
one blank line below its title.  Every function here is total:
unknown keys fall back to humanized labels, malformed values are
omitted, and nothing raises for degenerate metadata.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from promptforge.bindings import asset_metadata_keys
from promptforge.lookup import canonical_category_order, resolve_option_label
from promptforge.metadata import (
    IDENTITY_CATEGORY_KEY,
    NAME_PROPERTY_KEY,
    category_mapping,
    character_display_name,
    parse_metadata,
    stringify_scalar,
)
from promptforge.models import (
    Definition,
    DefinitionKind,
    PromptSection,
    ResolvedImageRef,
    SchemaOption,
)
from promptforge.prompts.sections import (
    ASSET_TYPE_LABELS,
    CATEGORY_HEADER,
    CHARACTER_HEADER,
    CONSTRAINT_NAME_LINE,
    NO_IMAGE_REFERENCES,
    NO_TASK_PROMPT,
    NO_TEXT_ELEMENTS,
    PROPERTY_LINE,
    REFERENCE_CONSTRAINT_HEADING,
    SCOPE_LABELS,
    SCOPE_ORDER,
    SECTION_CHARACTERS,
    SECTION_IMAGE_REFERENCES,
    SECTION_REFERENCE_CONSTRAINTS,
    SECTION_SCENE,
    SECTION_STYLE,
    SECTION_TASK,
    SECTION_TEXT_ELEMENTS,
    UNNAMED_DEFINITION,
)
from promptforge.registry import SchemaRegistry, get_registry

_CONSTRAINT_IMAGES_CATEGORY = "reference_images"


# ---------------------------------------------------------------------------
# Value formatting
# ---------------------------------------------------------------------------


def humanize_key(key: str) -> str:
    """Fallback label for a key unknown to the schema.

    Underscores become spaces and the first character is upper-cased;
    the rest of the key is left as-is (``"eye_color"`` -> ``"Eye color"``).
    """
    text = str(key).replace("_", " ")
    if not text:
        return ""
    return text[0].upper() + text[1:]


def _format_scalar(value: Any, options: Sequence[SchemaOption]) -> str | None:
    if isinstance(value, str):
        if not value.strip():
            return None
        label = resolve_option_label(options, value)
        if label:
            return label
        return value
    return stringify_scalar(value)


def format_value(value: Any, options: Sequence[SchemaOption] = ()) -> str | None:
    """Format one metadata value for a prompt line.

    String values matching an option are replaced by the option label;
    anything else (custom values, numbers, booleans) is emitted as-is.
    Lists format each element and join the non-empty results with
    ``", "``.

    Returns:
        The formatted text, or ``None`` when nothing printable remains.
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        parts = [_format_scalar(item, options) for item in value]
        joined = ", ".join(part for part in parts if part)
        return joined or None
    return _format_scalar(value, options)


# ---------------------------------------------------------------------------
# Category bodies
# ---------------------------------------------------------------------------


def _ordered_property_keys(
    category_value: Mapping[Any, Any], schema_keys: Sequence[str]
) -> list[str]:
    present = {str(key): key for key in category_value}
    ordered = [key for key in schema_keys if key in present]
    known = set(schema_keys)
    ordered.extend(sorted(key for key in present if key not in known))
    return ordered


def render_category_lines(
    kind: DefinitionKind,
    category_key: str,
    category_value: Any,
    *,
    skip_keys: Iterable[str] = (),
    registry: SchemaRegistry | None = None,
) -> list[str]:
    """Render one metadata category as a header line plus property lines.

    Schema properties come first in schema order, then properties the
    schema does not know, sorted by key.  Null values and the keys in
    *skip_keys* are left out.

    Returns:
        ``["<Label>:", "- <Label>: <value>", ...]``, or an empty list when
        no property line survives.
    """
    if not isinstance(category_value, Mapping):
        return []
    if registry is None:
        registry = get_registry()

    category = registry.get_category(kind, category_key)
    schema_keys = [prop.key for prop in category.properties] if category else []
    skipped = set(skip_keys)
    values = {str(key): value for key, value in category_value.items()}

    lines: list[str] = []
    for property_key in _ordered_property_keys(category_value, schema_keys):
        if property_key in skipped:
            continue
        raw = values.get(property_key)
        if raw is None:
            continue
        prop = registry.get_property(kind, category_key, property_key)
        formatted = format_value(raw, prop.options if prop else ())
        if not formatted:
            continue
        label = prop.label if prop else humanize_key(property_key)
        lines.append(PROPERTY_LINE.format(label=label, value=formatted))

    if not lines:
        return []
    header = category.label if category else humanize_key(category_key)
    return [CATEGORY_HEADER.format(label=header), *lines]


def _ordered_category_keys(
    kind: DefinitionKind, metadata: Mapping[str, Any], registry: SchemaRegistry
) -> list[str]:
    canonical = canonical_category_order(kind, registry)
    ordered = [key for key in canonical if key in metadata]
    listed = set(canonical)
    ordered.extend(sorted(key for key in metadata if key not in listed))
    return ordered


def _render_groups(
    kind: DefinitionKind, metadata: Any, registry: SchemaRegistry
) -> list[str]:
    if not isinstance(metadata, Mapping):
        return []

    groups: list[str] = []
    for category_key in _ordered_category_keys(kind, metadata, registry):
        skip_keys = set(asset_metadata_keys(kind, category_key))
        if kind is DefinitionKind.CHARACTER and category_key == IDENTITY_CATEGORY_KEY:
            skip_keys.add(NAME_PROPERTY_KEY)
        lines = render_category_lines(
            kind,
            category_key,
            metadata[category_key],
            skip_keys=skip_keys,
            registry=registry,
        )
        if lines:
            groups.append("\n".join(lines))
    return groups


def render_character_block(
    character: Definition | Mapping[str, Any], registry: SchemaRegistry | None = None
) -> str:
    """Render one character as ``CHARACTER — <name>`` plus its groups.

    *character* may be a :class:`Definition` or a ``{name, metadata}``
    mapping.  The header is always present; ``core_identity.name`` is
    surfaced there and never repeated as a property line.
    """
    if registry is None:
        registry = get_registry()
    character = Definition.model_validate(character)
    name = character_display_name(character.name, character.metadata)
    header = CHARACTER_HEADER.format(name=name)
    groups = _render_groups(DefinitionKind.CHARACTER, character.metadata, registry)
    if not groups:
        return header
    return header + "\n" + "\n\n".join(groups)


def render_style_section(
    style_metadata: Any, registry: SchemaRegistry | None = None
) -> str:
    """Render style metadata in canonical category order; ``""`` if empty."""
    if registry is None:
        registry = get_registry()
    groups = _render_groups(
        DefinitionKind.STYLE, parse_metadata(style_metadata), registry
    )
    return "\n\n".join(groups)


def render_scene_section(scene: Any, registry: SchemaRegistry | None = None) -> str:
    """Render scene metadata; categories are sorted by key.  ``""`` if empty."""
    if registry is None:
        registry = get_registry()
    groups = _render_groups(DefinitionKind.SCENE, parse_metadata(scene), registry)
    return "\n\n".join(groups)


def render_reference_constraints_section(
    metadata: Any,
    name: str | None = None,
    registry: SchemaRegistry | None = None,
) -> str:
    """Render reference-constraint settings as a flat list of lines.

    Walks the constraint schema in category order, then property order,
    skipping the ``reference_images`` category (those assets are listed
    under ``IMAGE REFERENCES``).  Returns ``""`` when the metadata is
    missing, or when neither a name nor any value is present.
    """
    meta = parse_metadata(metadata)
    if meta is None:
        return ""
    if registry is None:
        registry = get_registry()

    lines: list[str] = []
    trimmed_name = name.strip() if isinstance(name, str) else ""
    if trimmed_name:
        lines.append(CONSTRAINT_NAME_LINE.format(name=trimmed_name))

    has_value = False
    schema = registry.get_schema(DefinitionKind.REFERENCE_CONSTRAINT)
    categories = schema.categories if schema is not None else ()
    for category in categories:
        if category.key == _CONSTRAINT_IMAGES_CATEGORY:
            continue
        category_value = category_mapping(meta, category.key)
        if category_value is None:
            continue
        for prop in category.properties:
            formatted = format_value(category_value.get(prop.key), prop.options)
            if not formatted:
                continue
            has_value = True
            label = prop.label or humanize_key(prop.key)
            lines.append(PROPERTY_LINE.format(label=label, value=formatted))

    if not has_value and not trimmed_name:
        return ""
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Image references
# ---------------------------------------------------------------------------


def _group_first_seen(
    refs: Iterable[ResolvedImageRef], key: Callable[[ResolvedImageRef], Any]
) -> dict[Any, list[ResolvedImageRef]]:
    groups: dict[Any, list[ResolvedImageRef]] = {}
    for ref in refs:
        groups.setdefault(key(ref), []).append(ref)
    return groups


def _type_label(ref: ResolvedImageRef) -> str:
    return ASSET_TYPE_LABELS.get(ref.asset_type, ref.asset_type.value)


def _render_scope_block(refs: list[ResolvedImageRef]) -> str:
    scope = refs[0].scope
    from_constraint = all(
        ref.definition_kind is DefinitionKind.REFERENCE_CONSTRAINT for ref in refs
    )

    if from_constraint:
        lines = [REFERENCE_CONSTRAINT_HEADING]
        by_type = _group_first_seen(refs, lambda ref: ref.asset_type)
        for refs_of_type in by_type.values():
            for ref in refs_of_type:
                lines.append(f"- {ref.display_name} — {_type_label(ref)}")
        return "\n".join(lines)

    lines = [f"{SCOPE_LABELS[scope]}:"]
    by_definition = _group_first_seen(
        refs, lambda ref: ref.definition_name.strip() or UNNAMED_DEFINITION
    )
    for definition_name, refs_for_definition in by_definition.items():
        by_type = _group_first_seen(refs_for_definition, lambda ref: ref.asset_type)
        for refs_of_type in by_type.values():
            lines.append(f"- {definition_name} — {_type_label(refs_of_type[0])}:")
            for ref in refs_of_type:
                lines.append(f"  - {ref.display_name}")
    return "\n".join(lines)


def render_image_references_section(
    image_refs: Iterable[ResolvedImageRef] | None = None,
) -> str:
    """List resolved reference images by scope (character, scene, style).

    A scope whose images all come from the reference constraint is shown
    under ``Reference constraint:``; otherwise images are grouped by
    definition, then by asset type, in first-seen order.  Without any
    images the placeholder line is returned.
    """
    refs = list(image_refs or ())
    if not refs:
        return NO_IMAGE_REFERENCES

    blocks: list[str] = []
    for scope in SCOPE_ORDER:
        refs_for_scope = [ref for ref in refs if ref.scope is scope]
        if refs_for_scope:
            blocks.append(_render_scope_block(refs_for_scope))
    return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def build_prompt_sections(
    task_prompt: str = "",
    characters: Iterable[Definition | Mapping[str, Any]] = (),
    style: Any = None,
    scene: Any = None,
    *,
    reference_constraint: Any = None,
    reference_constraint_name: str | None = None,
    image_references: Iterable[ResolvedImageRef] | None = None,
    registry: SchemaRegistry | None = None,
) -> list[PromptSection]:
    """Build the ordered sections of a prompt.

    Args:
        task_prompt: Free-text task instruction.
        characters: Character definitions (or ``{name, metadata}`` mappings),
            one block each, in order.
        style: Style metadata (mapping, JSON string, or ``None``).
        scene: Scene metadata (mapping, JSON string, or ``None``).
        reference_constraint: Reference-constraint metadata.
        reference_constraint_name: Name shown in ``REFERENCE CONSTRAINTS``.
        image_references: Resolved images to list under
            ``IMAGE REFERENCES``; the placeholder is used when empty.
        registry: Schema registry; defaults to the packaged one.

    Returns:
        The sections in prompt order.
    """
    if registry is None:
        registry = get_registry()

    sections = [
        PromptSection(
            title=SECTION_IMAGE_REFERENCES,
            blocks=(render_image_references_section(image_references),),
        )
    ]

    constraints = render_reference_constraints_section(
        reference_constraint, reference_constraint_name, registry
    )
    if constraints:
        sections.append(
            PromptSection(title=SECTION_REFERENCE_CONSTRAINTS, blocks=(constraints,))
        )

    if style is not None:
        style_body = render_style_section(style, registry)
        if style_body:
            sections.append(PromptSection(title=SECTION_STYLE, blocks=(style_body,)))

    character_blocks = tuple(
        render_character_block(character, registry) for character in characters
    )
    if character_blocks:
        sections.append(
            PromptSection(
                title=SECTION_CHARACTERS,
                blocks=character_blocks,
                title_separator="\n\n",
            )
        )

    if scene is not None:
        scene_body = render_scene_section(scene, registry)
        if scene_body:
            sections.append(PromptSection(title=SECTION_SCENE, blocks=(scene_body,)))

    task = task_prompt.strip() if isinstance(task_prompt, str) else ""
    sections.append(PromptSection(title=SECTION_TASK, blocks=(task or NO_TASK_PROMPT,)))
    sections.append(
        PromptSection(title=SECTION_TEXT_ELEMENTS, blocks=(NO_TEXT_ELEMENTS,))
    )
    return sections


def compile_prompt(
    task_prompt: str = "",
    characters: Iterable[Definition | Mapping[str, Any]] = (),
    style: Any = None,
    scene: Any = None,
    *,
    reference_constraint: Any = None,
    reference_constraint_name: str | None = None,
    image_references: Iterable[ResolvedImageRef] | None = None,
    registry: SchemaRegistry | None = None,
) -> str:
    """Compile definitions and a task into the final prompt string.

    Deterministic: the same inputs always produce byte-identical output.
    See :func:`build_prompt_sections` for the arguments.
    """
    sections = build_prompt_sections(
        task_prompt,
        characters,
        style,
        scene,
        reference_constraint=reference_constraint,
        reference_constraint_name=reference_constraint_name,
        image_references=image_references,
        registry=registry,
    )
    return "\n\n".join(section.render() for section in sections)
