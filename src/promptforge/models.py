"""Pydantic data models for schemas, asset bindings, definitions, and prompts."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from promptforge.metadata import parse_metadata

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class DefinitionKind(str, Enum):
    """The kinds of user-authored definitions that carry metadata."""

    CHARACTER = "character"
    SCENE = "scene"
    STYLE = "style"
    REFERENCE_CONSTRAINT = "reference_constraint"


class PropertyType(str, Enum):
    """Value shape of a schema property.

    * **TEXT**: short free text.
    * **ENUM**: one value, usually from ``options``.
    * **TAGS**: several values, usually from ``options``.
    * **NUMBER**: numeric value bounded by ``min``/``max``.
    * **BOOLEAN**: true/false flag.
    * **LIST**: list of free-form entries (props, landmarks, ...).
    """

    TEXT = "string"
    ENUM = "enum"
    TAGS = "tags"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LIST = "list"


class AssetType(str, Enum):
    """Category of uploaded asset a binding may reference."""

    CHARACTER_FACE = "character_face"
    CHARACTER_BODY = "character_body"
    CHARACTER_HAIR = "character_hair"
    CHARACTER_FULL = "character_full"
    CHARACTER_PROP = "character_prop"
    CHARACTER_CLOTHING = "character_clothing"
    SCENE_REFERENCE = "scene_reference"
    STYLE_REFERENCE = "style_reference"


class RenderScope(str, Enum):
    """Rendering role a referenced asset plays in the final prompt."""

    CHARACTER = "character"
    SCENE = "scene"
    STYLE = "style"


# ---------------------------------------------------------------------------
# Schema registry models
# ---------------------------------------------------------------------------


class SchemaOption(BaseModel):
    """One enumerated choice of an enum/tags property.

    Attributes:
        value: Stored metadata value (e.g. ``"mid_20s"``).
        label: Display label used in prompts (e.g. ``"Mid 20s"``).
    """

    value: str
    label: str

    model_config = {"frozen": True}


class SchemaProperty(BaseModel):
    """A single configurable attribute inside a schema category.

    Attributes:
        key: Stable identifier, unique within its category.
        label: Display name used as the prompt line label.
        type: Value shape of the property.
        description: Authoring guidance shown next to the field.
        options: Ordered choices for enum/tags properties.
        allow_custom: Whether values outside ``options`` are valid.
        min: Lower bound for number properties.
        max: Upper bound for number properties.
        step: Increment for number properties.
        item_label: UI label for adding an entry to a list property.
    """

    key: str = Field(min_length=1)
    label: str
    type: PropertyType = PropertyType.TEXT
    description: str = ""
    options: tuple[SchemaOption, ...] = ()
    allow_custom: bool = False
    min: float | None = None
    max: float | None = None
    step: float | None = None
    item_label: str = ""

    model_config = {"frozen": True}

    @property
    def option_values(self) -> frozenset[str]:
        """Return the set of enumerated option values."""
        return frozenset(option.value for option in self.options)


class SchemaCategory(BaseModel):
    """A named, ordered group of properties for one definition kind.

    Attributes:
        key: Identifier, unique within its kind; also the metadata key.
        label: Display name used as the prompt group header.
        order: Compile order; unique within its kind.
        description: Authoring guidance for the whole group.
        properties: Ordered properties of the category.
    """

    key: str = Field(min_length=1)
    label: str
    order: int
    description: str = ""
    properties: tuple[SchemaProperty, ...] = ()

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _no_duplicate_property_keys(self) -> "SchemaCategory":
        seen: set[str] = set()
        for prop in self.properties:
            if prop.key in seen:
                raise ValueError(
                    f"Duplicate property key {prop.key!r} in category {self.key!r}"
                )
            seen.add(prop.key)
        return self


class DefinitionSchema(BaseModel):
    """The complete ordered category list for one definition kind.

    Categories are stored sorted by ``order`` regardless of the order in
    which they were declared.

    Attributes:
        kind: Definition kind this schema describes.
        categories: Categories sorted by ascending ``order``.
    """

    kind: DefinitionKind
    categories: tuple[SchemaCategory, ...] = ()

    model_config = {"frozen": True}

    @field_validator("categories")
    @classmethod
    def _sort_by_order(
        cls, v: tuple[SchemaCategory, ...]
    ) -> tuple[SchemaCategory, ...]:
        return tuple(sorted(v, key=lambda category: category.order))

    @model_validator(mode="after")
    def _unique_keys_and_orders(self) -> "DefinitionSchema":
        keys: set[str] = set()
        orders: set[int] = set()
        for category in self.categories:
            if category.key in keys:
                raise ValueError(f"Duplicate category key: {category.key!r}")
            if category.order in orders:
                raise ValueError(
                    f"Duplicate category order {category.order} "
                    f"(category {category.key!r})"
                )
            keys.add(category.key)
            orders.add(category.order)
        return self

    @property
    def category_keys(self) -> tuple[str, ...]:
        """Category keys in compile order."""
        return tuple(category.key for category in self.categories)


# ---------------------------------------------------------------------------
# Asset bindings and resolver output
# ---------------------------------------------------------------------------


class AssetBinding(BaseModel):
    """Links a schema attribute to where its asset IDs live in metadata.

    Attributes:
        definition_kind: Kind of definition whose metadata holds the IDs.
        category_key: Schema category the binding governs.
        property_key: Schema property the binding governs.
        metadata_category_key: Metadata category holding the IDs.
        metadata_property_key: Metadata property holding the IDs (usually
            the plural ``..._ids`` form).
        legacy_metadata_property_key: Older single-value location, read
            only when the primary location is unset.
        asset_type: Category of uploaded asset the IDs refer to.
    """

    definition_kind: DefinitionKind
    category_key: str
    property_key: str
    metadata_category_key: str
    metadata_property_key: str
    legacy_metadata_property_key: str | None = None
    asset_type: AssetType

    model_config = {"frozen": True}

    @property
    def storage_keys(self) -> tuple[str, ...]:
        """Metadata property keys this binding reads (primary first)."""
        if self.legacy_metadata_property_key:
            return (self.metadata_property_key, self.legacy_metadata_property_key)
        return (self.metadata_property_key,)


class CollectedAssetRef(BaseModel):
    """Asset IDs one binding contributes for one definition.

    Attributes:
        scope: Rendering role the assets play.
        definition_id: ID of the definition that stores the IDs.
        definition_name: Display name of that definition.
        binding: The binding that produced this reference.
        asset_ids: Trimmed, deduplicated, non-empty asset IDs.
    """

    scope: RenderScope
    definition_id: int | str | None = None
    definition_name: str
    binding: AssetBinding
    asset_ids: tuple[str, ...] = Field(min_length=1)

    model_config = {"frozen": True}

    @property
    def asset_type(self) -> AssetType:
        """Asset type declared by the originating binding."""
        return self.binding.asset_type


# ---------------------------------------------------------------------------
# Collaborator inputs
# ---------------------------------------------------------------------------


class Definition(BaseModel):
    """A persisted definition row as handed over by the storage layer.

    ``metadata`` accepts a mapping, a JSON-encoded string, or ``None``;
    anything that does not decode to a mapping is stored as ``None``.

    Attributes:
        id: Row identifier.
        name: User-facing definition name.
        metadata: Nested ``category -> property -> value`` data.
    """

    id: int | str | None = None
    name: str = ""
    metadata: dict[str, Any] | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _none_name_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("metadata", mode="before")
    @classmethod
    def _decode_metadata(cls, v: Any) -> dict[str, Any] | None:
        return parse_metadata(v)


class AssetRecord(BaseModel):
    """An uploaded asset as known to the asset store.

    Attributes:
        id: Asset identifier (matched against resolved asset IDs as text).
        type: Asset type the asset was uploaded as.
        name: Display name of the asset.
        usage_hint: Optional author-provided usage instruction.
    """

    id: int | str
    type: str = ""
    name: str = ""
    usage_hint: str = ""

    @field_validator("name", "usage_hint", "type", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def key(self) -> str:
        """Asset ID normalised for matching against resolved IDs."""
        return str(self.id).strip()


class ResolvedImageRef(BaseModel):
    """A resolved asset ID joined with its uploaded-asset record.

    Attributes:
        scope: Rendering role of the image.
        definition_kind: Kind of the definition the reference came from.
        definition_name: Display name of that definition.
        asset_type: Asset type declared by the binding.
        asset_id: Asset identifier.
        asset_name: Display name of the asset.
        usage_instruction: How the image generator should use the image.
    """

    scope: RenderScope
    definition_kind: DefinitionKind
    definition_name: str
    asset_type: AssetType
    asset_id: str
    asset_name: str = ""
    usage_instruction: str = ""

    model_config = {"frozen": True}

    @property
    def display_name(self) -> str:
        """Asset name, falling back to the asset ID."""
        return self.asset_name.strip() or self.asset_id


# ---------------------------------------------------------------------------
# Prompt output
# ---------------------------------------------------------------------------


class PromptSection(BaseModel):
    """One titled section of a compiled prompt.

    Attributes:
        title: Section header line (e.g. ``"TASK"``).
        blocks: Body blocks, separated by a blank line when rendered.
        title_separator: Text between the title line and the first block.
    """

    title: str
    blocks: tuple[str, ...] = ()
    title_separator: str = "\n"

    model_config = {"frozen": True}

    @property
    def body(self) -> str:
        """Body text below the title line."""
        return "\n\n".join(self.blocks)

    def render(self) -> str:
        """Return the section as text: title line followed by the body."""
        if not self.blocks:
            return self.title
        return f"{self.title}{self.title_separator}{self.body}"


# ---------------------------------------------------------------------------
# Render request
# ---------------------------------------------------------------------------


class RenderRequest(BaseModel):
    """Everything needed to compile one prompt and resolve its references.

    Attributes:
        task: Free-text task instruction.
        characters: Character definitions, in prompt order.
        style: Optional style definition.
        scene: Optional scene definition.
        reference_constraint: Optional reference-constraint definition.
        assets: Uploaded-asset records available to the request.
    """

    task: str = ""
    characters: list[Definition] = []
    style: Definition | None = None
    scene: Definition | None = None
    reference_constraint: Definition | None = None
    assets: list[AssetRecord] = []

    @field_validator("task", mode="before")
    @classmethod
    def _none_task_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("characters", "assets", mode="before")
    @classmethod
    def _none_list_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def has_content(self) -> bool:
        """True when at least one character, style or scene is present."""
        return (
            bool(self.characters)
            or self.style is not None
            or self.scene is not None
        )
