"""PromptForge — compile character, style and scene definitions into prompts."""

from promptforge.bindings import (
    ASSET_REFERENCE_BINDINGS,
    asset_metadata_keys,
    bindings_for_kind,
    default_usage_for_asset_type,
    find_asset_binding,
    scope_for_binding,
)
from promptforge.compiler import (
    build_prompt_sections,
    compile_prompt,
    format_value,
    humanize_key,
    render_character_block,
    render_image_references_section,
    render_reference_constraints_section,
    render_scene_section,
    render_style_section,
)
from promptforge.config import (
    check_render_request,
    load_render_request,
    validate_render_request,
)
from promptforge.errors import ConfigError, PromptForgeError, SchemaError
from promptforge.logging import get_logger, setup_logging
from promptforge.lookup import (
    canonical_category_order,
    find_category,
    find_property,
    resolve_option_label,
)
from promptforge.metadata import (
    character_display_name,
    normalize_asset_ids,
    parse_metadata,
    select_value_source,
)
from promptforge.models import (
    AssetBinding,
    AssetRecord,
    AssetType,
    CollectedAssetRef,
    Definition,
    DefinitionKind,
    DefinitionSchema,
    PromptSection,
    PropertyType,
    RenderRequest,
    RenderScope,
    ResolvedImageRef,
    SchemaCategory,
    SchemaOption,
    SchemaProperty,
)
from promptforge.registry import (
    SchemaRegistry,
    get_registry,
    load_registry,
    load_schema_file,
)
from promptforge.resolver import (
    collect_asset_refs,
    resolve_image_refs,
    usage_overrides_from_metadata,
)

__all__ = [
    "ASSET_REFERENCE_BINDINGS",
    "AssetBinding",
    "AssetRecord",
    "AssetType",
    "CollectedAssetRef",
    "ConfigError",
    "Definition",
    "DefinitionKind",
    "DefinitionSchema",
    "PromptForgeError",
    "PromptSection",
    "PropertyType",
    "RenderRequest",
    "RenderScope",
    "ResolvedImageRef",
    "SchemaCategory",
    "SchemaError",
    "SchemaOption",
    "SchemaProperty",
    "SchemaRegistry",
    "asset_metadata_keys",
    "bindings_for_kind",
    "build_prompt_sections",
    "canonical_category_order",
    "character_display_name",
    "check_render_request",
    "collect_asset_refs",
    "compile_prompt",
    "default_usage_for_asset_type",
    "find_asset_binding",
    "find_category",
    "find_property",
    "format_value",
    "get_logger",
    "get_registry",
    "humanize_key",
    "load_registry",
    "load_render_request",
    "load_schema_file",
    "normalize_asset_ids",
    "parse_metadata",
    "render_character_block",
    "render_image_references_section",
    "render_reference_constraints_section",
    "render_scene_section",
    "render_style_section",
    "resolve_image_refs",
    "resolve_option_label",
    "scope_for_binding",
    "select_value_source",
    "setup_logging",
    "usage_overrides_from_metadata",
    "validate_render_request",
]
