"""Binding table linking schema attributes to asset IDs stored in metadata.

Each :class:`AssetBinding` names the schema attribute it governs, the
metadata location that actually holds the uploaded-asset IDs (often a
plural ``..._ids`` key next to a singular schema property), an optional
legacy single-value location, and the asset type the IDs refer to.
"""

from __future__ import annotations

from promptforge.models import AssetBinding, AssetType, DefinitionKind, RenderScope
from promptforge.prompts.sections import ASSET_USAGE_INSTRUCTIONS

_CHARACTER = DefinitionKind.CHARACTER
_SCENE = DefinitionKind.SCENE
_STYLE = DefinitionKind.STYLE
_CONSTRAINT = DefinitionKind.REFERENCE_CONSTRAINT


def _character_image(part: str, asset_type: AssetType) -> AssetBinding:
    return AssetBinding(
        definition_kind=_CHARACTER,
        category_key="base_reference_images",
        property_key=f"{part}_reference_image_id",
        metadata_category_key="base_reference_images",
        metadata_property_key=f"{part}_reference_image_ids",
        legacy_metadata_property_key=f"{part}_reference_image_id",
        asset_type=asset_type,
    )


def _reference_images(
    kind: DefinitionKind, property_key: str, asset_type: AssetType
) -> AssetBinding:
    return AssetBinding(
        definition_kind=kind,
        category_key="reference_images",
        property_key=property_key,
        metadata_category_key="reference_images",
        metadata_property_key=property_key,
        asset_type=asset_type,
    )


ASSET_REFERENCE_BINDINGS: tuple[AssetBinding, ...] = (
    # Character base reference images (multi-asset with legacy single IDs)
    _character_image("face", AssetType.CHARACTER_FACE),
    _character_image("body", AssetType.CHARACTER_BODY),
    _character_image("hair", AssetType.CHARACTER_HAIR),
    _character_image("full_character", AssetType.CHARACTER_FULL),
    # Scene and style reference images
    _reference_images(_SCENE, "scene_reference_image_ids", AssetType.SCENE_REFERENCE),
    _reference_images(_STYLE, "style_reference_image_ids", AssetType.STYLE_REFERENCE),
    # Reference-constraint images, re-scoped by asset type
    _reference_images(
        _CONSTRAINT, "character_reference_image_ids", AssetType.CHARACTER_FACE
    ),
    _reference_images(
        _CONSTRAINT, "scene_reference_image_ids", AssetType.SCENE_REFERENCE
    ),
    _reference_images(
        _CONSTRAINT, "style_reference_image_ids", AssetType.STYLE_REFERENCE
    ),
)

_BINDINGS_BY_KIND: dict[DefinitionKind, tuple[AssetBinding, ...]] = {
    kind: tuple(b for b in ASSET_REFERENCE_BINDINGS if b.definition_kind is kind)
    for kind in DefinitionKind
}


def _index_storage_keys(
    bindings: tuple[AssetBinding, ...],
) -> dict[tuple[DefinitionKind, str], frozenset[str]]:
    index: dict[tuple[DefinitionKind, str], set[str]] = {}
    for binding in bindings:
        slot = (binding.definition_kind, binding.metadata_category_key)
        index.setdefault(slot, set()).update(binding.storage_keys)
    return {slot: frozenset(keys) for slot, keys in index.items()}


_STORAGE_KEYS = _index_storage_keys(ASSET_REFERENCE_BINDINGS)


def bindings_for_kind(kind: DefinitionKind) -> tuple[AssetBinding, ...]:
    """Return the bindings that apply to definitions of *kind*."""
    return _BINDINGS_BY_KIND.get(kind, ())


def find_asset_binding(
    kind: DefinitionKind, category_key: str, property_key: str
) -> AssetBinding | None:
    """Return the binding governing a schema attribute, or ``None``."""
    for binding in bindings_for_kind(kind):
        if (
            binding.category_key == category_key
            and binding.property_key == property_key
        ):
            return binding
    return None


def asset_metadata_keys(kind: DefinitionKind, category_key: str) -> frozenset[str]:
    """Metadata property keys in *category_key* that store asset IDs for *kind*.

    Includes both primary and legacy locations; the compiler leaves these
    out of prompt text.
    """
    return _STORAGE_KEYS.get((kind, category_key), frozenset())


def scope_for_asset_type(asset_type: AssetType) -> RenderScope:
    """Map an asset type to the rendering scope it implies."""
    if asset_type is AssetType.SCENE_REFERENCE:
        return RenderScope.SCENE
    if asset_type is AssetType.STYLE_REFERENCE:
        return RenderScope.STYLE
    return RenderScope.CHARACTER


def scope_for_binding(binding: AssetBinding) -> RenderScope:
    """Return the rendering scope for references produced by *binding*.

    Character, scene and style definitions report under their own scope.
    Reference constraints own no scope, so their bindings are re-scoped
    by asset type.
    """
    if binding.definition_kind is DefinitionKind.CHARACTER:
        return RenderScope.CHARACTER
    if binding.definition_kind is DefinitionKind.SCENE:
        return RenderScope.SCENE
    if binding.definition_kind is DefinitionKind.STYLE:
        return RenderScope.STYLE
    return scope_for_asset_type(binding.asset_type)


def default_usage_for_asset_type(asset_type: AssetType | str) -> str:
    """Default instruction telling the image model how to use an asset."""
    try:
        return ASSET_USAGE_INSTRUCTIONS[AssetType(asset_type)]
    except (KeyError, ValueError):
        return ""
