"""Section titles, placeholder lines and labels used in compiled prompts.

The compiled prompt is a fixed skeleton of titled sections.  Sections
that always appear carry a placeholder bullet when they have no
content, so consumers can rely on every title being present.
"""

from __future__ import annotations

from promptforge.models import AssetType, RenderScope

# ---------------------------------------------------------------------------
# Section titles
# ---------------------------------------------------------------------------

SECTION_IMAGE_REFERENCES: str = "IMAGE REFERENCES"
SECTION_REFERENCE_CONSTRAINTS: str = "REFERENCE CONSTRAINTS"
SECTION_STYLE: str = "STYLE"
SECTION_CHARACTERS: str = "CHARACTERS"
SECTION_SCENE: str = "SCENE"
SECTION_TASK: str = "TASK"
SECTION_TEXT_ELEMENTS: str = "TEXT ELEMENTS"

SECTION_ORDER: tuple[str, ...] = (
    SECTION_IMAGE_REFERENCES,
    SECTION_REFERENCE_CONSTRAINTS,
    SECTION_STYLE,
    SECTION_CHARACTERS,
    SECTION_SCENE,
    SECTION_TASK,
    SECTION_TEXT_ELEMENTS,
)

# ---------------------------------------------------------------------------
# Placeholders and fixed lines
# ---------------------------------------------------------------------------

NO_IMAGE_REFERENCES: str = "- No image reference constraints provided."
NO_TASK_PROMPT: str = "- No explicit task prompt provided."
NO_TEXT_ELEMENTS: str = "- No speech or thought bubbles."

CHARACTER_HEADER: str = "CHARACTER — {name}"
CONSTRAINT_NAME_LINE: str = "- Name: {name}"
PROPERTY_LINE: str = "- {label}: {value}"
CATEGORY_HEADER: str = "{label}:"

REFERENCE_CONSTRAINT_HEADING: str = "Reference constraint:"
UNNAMED_DEFINITION: str = "Unnamed"

# ---------------------------------------------------------------------------
# Image reference labels
# ---------------------------------------------------------------------------

ASSET_TYPE_LABELS: dict[AssetType, str] = {
    AssetType.CHARACTER_FACE: "Character reference images",
    AssetType.CHARACTER_BODY: "Body reference images",
    AssetType.CHARACTER_HAIR: "Hair reference images",
    AssetType.CHARACTER_FULL: "Full-character reference images",
    AssetType.CHARACTER_PROP: "Prop reference images",
    AssetType.CHARACTER_CLOTHING: "Clothing reference images",
    AssetType.SCENE_REFERENCE: "Scene reference images",
    AssetType.STYLE_REFERENCE: "Style reference images",
}

SCOPE_LABELS: dict[RenderScope, str] = {
    RenderScope.CHARACTER: "Character references",
    RenderScope.SCENE: "Scene references",
    RenderScope.STYLE: "Style references",
}

SCOPE_ORDER: tuple[RenderScope, ...] = (
    RenderScope.CHARACTER,
    RenderScope.SCENE,
    RenderScope.STYLE,
)

# ---------------------------------------------------------------------------
# Default per-asset usage instructions
# ---------------------------------------------------------------------------

ASSET_USAGE_INSTRUCTIONS: dict[AssetType, str] = {
    AssetType.CHARACTER_FACE: (
        "Use this image only for the character’s facial identity and "
        "expression; do not copy clothing, background, or other details "
        "literally."
    ),
    AssetType.CHARACTER_BODY: (
        "Use this image for overall body proportions and posture; keep "
        "facial identity from the primary face reference."
    ),
    AssetType.CHARACTER_HAIR: "Use this image for hairstyle and hair texture only.",
    AssetType.CHARACTER_FULL: (
        "Use this image as a full-character identity and pose reference."
    ),
    AssetType.CHARACTER_PROP: (
        "Use this image for prop details only; do not change the "
        "character’s identity based on it."
    ),
    AssetType.CHARACTER_CLOTHING: (
        "Use this image for clothing and outfit details only; keep the "
        "character’s face and body from the other references."
    ),
    AssetType.SCENE_REFERENCE: (
        "Use this image for scene layout, environment, and lighting; keep "
        "character identity from character references."
    ),
    AssetType.STYLE_REFERENCE: (
        "Use this image for rendering style, line work, and color "
        "treatment only."
    ),
}
