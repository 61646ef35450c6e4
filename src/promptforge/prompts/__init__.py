"""Prompt constants for PromptForge compilation.

This package holds every fixed string that ends up in a compiled
prompt: section titles, placeholder bullets, line templates, and the
labels and usage instructions attached to reference images.

All prompts are plain string constants or ``str.format`` templates; no
template engines are used.
"""

from __future__ import annotations

from promptforge.prompts.sections import (
    ASSET_TYPE_LABELS,
    ASSET_USAGE_INSTRUCTIONS,
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
    SECTION_ORDER,
    SECTION_REFERENCE_CONSTRAINTS,
    SECTION_SCENE,
    SECTION_STYLE,
    SECTION_TASK,
    SECTION_TEXT_ELEMENTS,
    UNNAMED_DEFINITION,
)

__all__ = [
    "ASSET_TYPE_LABELS",
    "ASSET_USAGE_INSTRUCTIONS",
    "CATEGORY_HEADER",
    "CHARACTER_HEADER",
    "CONSTRAINT_NAME_LINE",
    "NO_IMAGE_REFERENCES",
    "NO_TASK_PROMPT",
    "NO_TEXT_ELEMENTS",
    "PROPERTY_LINE",
    "REFERENCE_CONSTRAINT_HEADING",
    "SCOPE_LABELS",
    "SCOPE_ORDER",
    "SECTION_CHARACTERS",
    "SECTION_IMAGE_REFERENCES",
    "SECTION_ORDER",
    "SECTION_REFERENCE_CONSTRAINTS",
    "SECTION_SCENE",
    "SECTION_STYLE",
    "SECTION_TASK",
    "SECTION_TEXT_ELEMENTS",
    "UNNAMED_DEFINITION",
]
