"""Total helpers over untyped definition metadata.

Definition metadata is persisted JSON with the shape
``category -> property -> value`` where a value is a scalar
(``str``/``int``/``float``/``bool``) or a list of scalars.  Nothing here
assumes the data matches a schema: every helper accepts arbitrary input
and maps anything unexpected to ``None`` or an empty result.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from promptforge.logging import get_logger

logger = get_logger("metadata")

IDENTITY_CATEGORY_KEY = "core_identity"
NAME_PROPERTY_KEY = "name"
DEFAULT_CHARACTER_NAME = "Character"


def parse_metadata(raw: Any) -> dict[str, Any] | None:
    """Coerce a persisted metadata column into a mapping.

    Args:
        raw: A mapping, a JSON-encoded string (or bytes), or ``None``.

    Returns:
        A new ``dict`` with string keys, or ``None`` when *raw* is not
        (and does not decode to) a mapping.
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.debug("Ignoring metadata that is not valid JSON: %s", exc)
            return None
    if isinstance(raw, Mapping):
        return {str(key): value for key, value in raw.items()}
    return None


def category_mapping(metadata: Any, category_key: str) -> Mapping[str, Any] | None:
    """Return ``metadata[category_key]`` when it is a mapping, else ``None``."""
    if not isinstance(metadata, Mapping):
        return None
    value = metadata.get(category_key)
    if isinstance(value, Mapping):
        return value
    return None


def stringify_scalar(value: Any) -> str | None:
    """Render a scalar metadata value as text.

    Booleans render as ``true``/``false`` and integral floats drop their
    fractional part, so ``12.0`` and ``12`` both become ``"12"``.

    Returns:
        The text, or ``None`` for non-scalar input.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)
    return None


def select_value_source(primary: Any, legacy: Any) -> Any:
    """Pick between a primary storage location and its legacy fallback.

    The primary value wins unconditionally once it is non-null, even when
    it is an empty list; the legacy value is only used when the primary
    location is unset.
    """
    if primary is not None:
        return primary
    return legacy


def normalize_asset_ids(value: Any) -> list[str]:
    """Flatten a stored asset-ID value into trimmed, unique strings.

    Lists contribute each non-null scalar element; a scalar contributes
    itself.  Empty strings and non-scalar elements are dropped and the
    first occurrence of each ID keeps its position.

    Args:
        value: Raw metadata value (scalar, list, or anything else).

    Returns:
        Ordered list of asset IDs, possibly empty.
    """
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]

    result: list[str] = []
    seen: set[str] = set()
    for item in items:
        text = stringify_scalar(item)
        if text is None:
            continue
        text = text.strip()
        if not text or text in seen:
            continue
        seen.add(text)
        result.append(text)
    return result


def character_display_name(name: Any, metadata: Any) -> str:
    """Resolve the name shown for a character.

    Prefers the definition's own name, then ``core_identity.name`` from
    its metadata, then the literal ``"Character"``.
    """
    if isinstance(name, str) and name.strip():
        return name.strip()
    identity = category_mapping(metadata, IDENTITY_CATEGORY_KEY)
    if identity is not None:
        core_name = identity.get(NAME_PROPERTY_KEY)
        if isinstance(core_name, str) and core_name.strip():
            return core_name.strip()
    return DEFAULT_CHARACTER_NAME
