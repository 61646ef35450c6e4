"""Shared fixtures for promptforge tests."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Auto-load .env from project root (gitignored), e.g. PROMPTFORGE_SCHEMA_DIR.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env", override=False)

from promptforge.models import AssetRecord, Definition
from promptforge.registry import PACKAGED_SCHEMA_DIR, SchemaRegistry, get_registry

EXAMPLE_REQUEST = _PROJECT_ROOT / "configs" / "examples" / "mira.yaml"


@pytest.fixture(autouse=True)
def _reset_promptforge_logger():
    """Drop handlers installed by CLI invocations between tests."""
    yield
    logger = logging.getLogger("promptforge")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def registry() -> SchemaRegistry:
    """The registry built from the packaged schema tables."""
    return get_registry()


@pytest.fixture()
def schema_dir(tmp_path: Path) -> Path:
    """A writable copy of the packaged schema directory."""
    target = tmp_path / "schemas"
    target.mkdir()
    for source in PACKAGED_SCHEMA_DIR.glob("*.yaml"):
        shutil.copy(source, target / source.name)
    return target


# ---------------------------------------------------------------------------
# Definition fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mira() -> Definition:
    """The end-to-end example character."""
    return Definition(
        id=1,
        name="Mira",
        metadata={
            "core_identity": {"age_range": "mid_20s"},
            "hair": {"hair_color": "blue"},
        },
    )


@pytest.fixture()
def mira_with_images() -> Definition:
    """Mira with face (primary) and body (legacy) reference images."""
    return Definition(
        id=1,
        name="Mira",
        metadata={
            "core_identity": {"age_range": "mid_20s"},
            "base_reference_images": {
                "face_reference_image_ids": ["101", "102"],
                "body_reference_image_id": "103",
            },
        },
    )


@pytest.fixture()
def assets() -> list[AssetRecord]:
    """Uploaded-asset records matching ``mira_with_images`` and friends."""
    return [
        AssetRecord(id=101, type="character_face", name="mira-front.png"),
        AssetRecord(id=102, type="character_face", name="mira-profile.png"),
        AssetRecord(
            id=103,
            type="character_body",
            name="mira-full-body.png",
            usage_hint="Posture only.",
        ),
        AssetRecord(id=201, type="style_reference", name="ink-panel.jpg"),
        AssetRecord(id=301, type="scene_reference", name="alley-night.jpg"),
    ]


@pytest.fixture()
def example_request() -> Path:
    """Path to the example render request shipped with the repo."""
    return EXAMPLE_REQUEST
