"""Tests for promptforge.config — render-request loading and validation."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from promptforge.config import (
    check_render_request,
    load_render_request,
    validate_render_request,
)
from promptforge.errors import ConfigError
from promptforge.models import RenderRequest


def _write(tmp_path: Path, text: str, name: str = "request.yaml") -> Path:
    path = tmp_path / name
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


class TestLoadRenderRequest:
    """Tests for the load_render_request function."""

    def test_valid_request(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """\
            task: close-up portrait
            characters:
              - id: 1
                name: Mira
                metadata:
                  core_identity: {age_range: mid_20s}
            style:
              name: Ink
              metadata: '{"core_style": {"render_domain": "cartoon"}}'
            assets:
              - {id: 12, type: character_face, name: face.png}
            """,
        )
        request = load_render_request(path)
        assert request.task == "close-up portrait"
        assert request.characters[0].name == "Mira"
        assert request.characters[0].metadata == {
            "core_identity": {"age_range": "mid_20s"}
        }
        assert request.style is not None
        assert request.style.metadata == {"core_style": {"render_domain": "cartoon"}}
        assert request.scene is None
        assert request.assets[0].key == "12"

    def test_example_request(self, example_request: Path) -> None:
        request = load_render_request(example_request)
        assert [c.name for c in request.characters] == ["Mira"]
        assert request.reference_constraint is not None
        assert len(request.assets) == 5

    def test_empty_file_is_empty_request(self, tmp_path: Path) -> None:
        request = load_render_request(_write(tmp_path, ""))
        assert request.task == ""
        assert not request.has_content

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Request file not found"):
            load_render_request(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Malformed YAML"):
            load_render_request(_write(tmp_path, "task: [unclosed\n"))

    def test_top_level_list(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_render_request(_write(tmp_path, "- a\n- b\n"))

    def test_characters_must_be_sequence(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="'characters' section"):
            load_render_request(_write(tmp_path, "characters: {name: Mira}\n"))

    def test_scene_must_be_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="'scene' section"):
            load_render_request(_write(tmp_path, "scene: [a, b]\n"))

    def test_asset_without_id_fails_validation(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            load_render_request(_write(tmp_path, "assets:\n  - {name: face.png}\n"))


class TestValidateRenderRequest:
    """Tests for validate_render_request warnings."""

    def test_example_request_is_clean(self, example_request: Path) -> None:
        assert validate_render_request(example_request) == []

    def test_empty_request(self, tmp_path: Path) -> None:
        warnings = validate_render_request(_write(tmp_path, "task: '  '\n"))
        assert any("Task instruction is empty" in w for w in warnings)
        assert any("no characters, style or scene" in w for w in warnings)

    def test_unknown_keys(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """\
            task: portrait
            characters:
              - name: Mira
                metadata:
                  hair: {hair_color: blue, hair_sheen: glossy}
                  wings: {span: wide}
                  skin: pale
            """,
        )
        warnings = validate_render_request(path)
        assert warnings == [
            "character 'Mira': unknown property 'hair.hair_sheen'",
            "character 'Mira': unknown category 'wings'",
            "character 'Mira': category 'skin' is not a mapping and will be ignored",
        ]

    def test_asset_storage_keys_are_known(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """\
            task: portrait
            characters:
              - name: Mira
                metadata:
                  base_reference_images:
                    face_reference_image_id: "7"
            """,
        )
        assert validate_render_request(path) == []

    def test_closed_options(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """\
            task: portrait
            scene: {name: Alley}
            reference_constraint:
              name: Keep likeness
              metadata:
                reference_constraints:
                  identity_lock: bogus
                  fidelity_mode: high
                reference_images_usage:
                  "7": {usage_instruction: Eyes only.}
            """,
        )
        warnings = validate_render_request(path)
        assert warnings == [
            "reference_constraint 'Keep likeness': value 'bogus' for "
            "reference_constraints.identity_lock is not one of the allowed options"
        ]

    def test_custom_values_allowed(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """\
            task: portrait
            characters:
              - name: Mira
                metadata:
                  hair: {hair_color: seafoam}
            """,
        )
        assert validate_render_request(path) == []

    def test_missing_asset_records(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """\
            task: portrait
            characters:
              - name: Mira
                metadata:
                  base_reference_images:
                    face_reference_image_ids: ["1", "2"]
            assets:
              - {id: 1, type: character_face, name: face.png}
            """,
        )
        assert validate_render_request(path) == [
            "Mira: asset id '2' has no matching asset record"
        ]

    def test_asset_check_skipped_without_assets(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """\
            task: portrait
            characters:
              - name: Mira
                metadata:
                  base_reference_images: {face_reference_image_ids: ["1"]}
            """,
        )
        assert validate_render_request(path) == []


class TestCheckRenderRequest:
    """Tests for check_render_request on already-loaded requests."""

    def test_matches_file_validation(self, example_request: Path) -> None:
        request = load_render_request(example_request)
        assert check_render_request(request) == validate_render_request(
            example_request
        )

    def test_in_memory_request(self) -> None:
        request = RenderRequest(
            task="portrait",
            characters=[{"name": "Mira", "metadata": {"wings": {"span": "wide"}}}],
        )
        assert check_render_request(request) == [
            "character 'Mira': unknown category 'wings'"
        ]
