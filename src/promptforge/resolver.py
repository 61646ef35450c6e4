"""Asset-reference resolver: turn definition metadata into asset IDs.

The resolver walks the binding table for each supplied definition and
reports every asset ID it finds, grouped by the rendering scope the
images should play.  It never raises: metadata that predates the current
bindings, or is malformed, simply contributes no references.

:func:`resolve_image_refs` is the optional second step that joins those
IDs with uploaded-asset records so the compiler can list them under
``IMAGE REFERENCES``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from promptforge.bindings import (
    ASSET_REFERENCE_BINDINGS,
    default_usage_for_asset_type,
    scope_for_binding,
)
from promptforge.logging import get_logger
from promptforge.metadata import (
    category_mapping,
    character_display_name,
    normalize_asset_ids,
    parse_metadata,
    select_value_source,
)
from promptforge.models import (
    AssetBinding,
    AssetRecord,
    CollectedAssetRef,
    Definition,
    DefinitionKind,
    ResolvedImageRef,
)

logger = get_logger("resolver")

REFERENCE_CONSTRAINT_NAME = "Reference constraint"
USAGE_CATEGORY_KEY = "reference_images_usage"
_USAGE_KEYS = ("usage_instruction", "usageInstruction")


def collect_ids_for_binding(metadata: Any, binding: AssetBinding) -> list[str]:
    """Return the asset IDs *binding* finds in one definition's metadata.

    The primary storage key is the sole source once it holds any
    non-null value, even an empty list; the legacy key is read only when
    the primary key is unset.
    """
    category = category_mapping(metadata, binding.metadata_category_key)
    if category is None:
        return []

    primary = category.get(binding.metadata_property_key)
    legacy = None
    if binding.legacy_metadata_property_key:
        legacy = category.get(binding.legacy_metadata_property_key)
    return normalize_asset_ids(select_value_source(primary, legacy))


def _collect_for_definition(
    definition: Definition,
    kind: DefinitionKind,
    definition_name: str,
    bindings: Iterable[AssetBinding],
) -> list[CollectedAssetRef]:
    refs: list[CollectedAssetRef] = []
    if definition.metadata is None:
        return refs

    for binding in bindings:
        if binding.definition_kind is not kind:
            continue
        asset_ids = collect_ids_for_binding(definition.metadata, binding)
        if not asset_ids:
            continue
        refs.append(
            CollectedAssetRef(
                scope=scope_for_binding(binding),
                definition_id=definition.id,
                definition_name=definition_name,
                binding=binding,
                asset_ids=tuple(asset_ids),
            )
        )
        logger.debug(
            "%s %r: %d asset(s) from %s.%s",
            kind.value,
            definition_name,
            len(asset_ids),
            binding.metadata_category_key,
            binding.metadata_property_key,
            extra={"kind": kind.value, "definition": definition_name},
        )
    return refs


def collect_asset_refs(
    characters: Iterable[Definition | Mapping[str, Any]] = (),
    style: Definition | Mapping[str, Any] | None = None,
    scene: Definition | Mapping[str, Any] | None = None,
    reference_constraint: Definition | Mapping[str, Any] | None = None,
    *,
    bindings: Iterable[AssetBinding] = ASSET_REFERENCE_BINDINGS,
) -> list[CollectedAssetRef]:
    """Collect every asset reference implied by the binding table.

    Definitions are visited in the order characters, style, scene,
    reference constraint.  Reference-constraint refs are reported under
    the scope implied by their asset type and carry the definition name
    ``"Reference constraint"``.
    Each definition may be a :class:`Definition` or a ``{id, name,
    metadata}`` mapping.

    Args:
        characters: Character definitions, in prompt order.
        style: Optional style definition.
        scene: Optional scene definition.
        reference_constraint: Optional reference-constraint definition.
        bindings: Binding table to apply.

    Returns:
        A fresh list of :class:`CollectedAssetRef`, possibly empty.
    """
    bindings = tuple(bindings)
    refs: list[CollectedAssetRef] = []

    for character in characters:
        character = Definition.model_validate(character)
        name = character_display_name(character.name, character.metadata)
        refs.extend(
            _collect_for_definition(character, DefinitionKind.CHARACTER, name, bindings)
        )

    if style is not None:
        style = Definition.model_validate(style)
        refs.extend(
            _collect_for_definition(
                style, DefinitionKind.STYLE, style.name.strip() or "Style", bindings
            )
        )

    if scene is not None:
        scene = Definition.model_validate(scene)
        refs.extend(
            _collect_for_definition(
                scene, DefinitionKind.SCENE, scene.name.strip() or "Scene", bindings
            )
        )

    if reference_constraint is not None:
        reference_constraint = Definition.model_validate(reference_constraint)
        refs.extend(
            _collect_for_definition(
                reference_constraint,
                DefinitionKind.REFERENCE_CONSTRAINT,
                REFERENCE_CONSTRAINT_NAME,
                bindings,
            )
        )

    return refs


def usage_overrides_from_metadata(metadata: Any) -> dict[str, str]:
    """Read per-asset usage instructions from reference-constraint metadata.

    The ``reference_images_usage`` category maps an asset ID to an object
    carrying ``usage_instruction``.  Blank and malformed entries are
    ignored.
    """
    usage = category_mapping(parse_metadata(metadata), USAGE_CATEGORY_KEY)
    if usage is None:
        return {}

    overrides: dict[str, str] = {}
    for asset_id, entry in usage.items():
        if not isinstance(entry, Mapping):
            continue
        for key in _USAGE_KEYS:
            text = entry.get(key)
            if isinstance(text, str) and text.strip():
                overrides[str(asset_id).strip()] = text.strip()
                break
    return overrides


def resolve_image_refs(
    refs: Iterable[CollectedAssetRef],
    assets: Iterable[AssetRecord],
    usage_overrides: Mapping[str, str] | None = None,
) -> list[ResolvedImageRef]:
    """Join collected asset IDs with their uploaded-asset records.

    IDs without a matching record are dropped.  The usage instruction is
    taken from *usage_overrides*, then the asset's own ``usage_hint``,
    then the default sentence for the binding's asset type.

    Args:
        refs: Output of :func:`collect_asset_refs`.
        assets: Uploaded-asset records available to the request.
        usage_overrides: Asset ID to instruction, typically from
            :func:`usage_overrides_from_metadata`.

    Returns:
        One :class:`ResolvedImageRef` per matched asset ID, in ref order.
    """
    assets_by_id = {asset.key: asset for asset in assets}
    overrides = usage_overrides or {}

    resolved: list[ResolvedImageRef] = []
    for ref in refs:
        for asset_id in ref.asset_ids:
            asset = assets_by_id.get(asset_id)
            if asset is None:
                logger.debug("No asset record for id %s; skipping", asset_id)
                continue
            usage = (
                overrides.get(asset_id, "").strip()
                or asset.usage_hint.strip()
                or default_usage_for_asset_type(ref.asset_type)
            )
            resolved.append(
                ResolvedImageRef(
                    scope=ref.scope,
                    definition_kind=ref.binding.definition_kind,
                    definition_name=ref.definition_name,
                    asset_type=ref.asset_type,
                    asset_id=asset_id,
                    asset_name=asset.name.strip(),
                    usage_instruction=usage,
                )
            )
    return resolved
