"""Unit tests for configuration models and loading."""

import pytest

from blockmark.config.loader import load_config
from blockmark.models.config import EditingConfig, EditorConfig, RendererConfig, SerializerConfig


class TestConfigModels:
    """Test configuration model defaults and validation."""

    def test_defaults(self):
        """Test that every section has working defaults."""
        config = EditorConfig()

        assert config.renderer.breaks is True
        assert config.renderer.task_lists is True
        assert config.serializer.heading_style == "ATX"
        assert config.serializer.bullets == "-"
        assert config.editing.id_length == 10
        assert config.editing.keep_last_block is True

    def test_config_immutable(self):
        """Test that config is frozen (immutable)."""
        config = RendererConfig()

        with pytest.raises(Exception):  # Pydantic ValidationError
            config.breaks = False

    def test_invalid_bullets(self):
        """Test that only list bullet characters are accepted."""
        with pytest.raises(ValueError, match="Invalid bullet characters"):
            SerializerConfig(bullets="-#")

    def test_invalid_heading_style(self):
        """Test that unknown heading styles are rejected."""
        with pytest.raises(ValueError):
            SerializerConfig(heading_style="FANCY")

    @pytest.mark.parametrize("length", [3, 33])
    def test_id_length_bounds(self, length):
        """Test id length limits."""
        with pytest.raises(ValueError):
            EditingConfig(id_length=length)


class TestLoadConfig:
    """Test loading configuration from YAML and the environment."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """Test that a missing config file is not an error."""
        config = load_config(tmp_path / "missing.yaml")

        assert config == EditorConfig()

    def test_load_yaml(self, tmp_path):
        """Test reading values from YAML."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            """
renderer:
  breaks: false
serializer:
  bullets: "*+"
editing:
  id_length: 8
  keep_last_block: false
"""
        )

        config = load_config(config_file)

        assert config.renderer.breaks is False
        assert config.serializer.bullets == "*+"
        assert config.editing.id_length == 8
        assert config.editing.keep_last_block is False

    def test_empty_file(self, tmp_path):
        """Test that an empty file gives defaults."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert load_config(config_file) == EditorConfig()

    def test_non_mapping_rejected(self, tmp_path):
        """Test that a YAML list is rejected."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(config_file)

    def test_invalid_values_rejected(self, tmp_path):
        """Test that validation errors propagate."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("editing:\n  id_length: 2\n")

        with pytest.raises(ValueError):
            load_config(config_file)

    def test_env_overrides(self, tmp_path, monkeypatch):
        """Test BLOCKMARK_* environment overrides."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("renderer:\n  breaks: true\n")

        monkeypatch.setenv("BLOCKMARK_RENDERER_BREAKS", "off")
        monkeypatch.setenv("BLOCKMARK_RENDERER_HTML", "no")
        monkeypatch.setenv("BLOCKMARK_SERIALIZER_HEADING_STYLE", "setext")
        monkeypatch.setenv("BLOCKMARK_SERIALIZER_BULLETS", "+")
        monkeypatch.setenv("BLOCKMARK_EDITING_ID_LENGTH", "12")

        config = load_config(config_file)

        assert config.renderer.breaks is False
        assert config.renderer.html is False
        assert config.serializer.heading_style == "SETEXT"
        assert config.serializer.bullets == "+"
        assert config.editing.id_length == 12

    def test_invalid_env_values_ignored(self, tmp_path, monkeypatch):
        """Test that unparseable overrides are ignored."""
        monkeypatch.setenv("BLOCKMARK_RENDERER_BREAKS", "maybe")
        monkeypatch.setenv("BLOCKMARK_EDITING_ID_LENGTH", "long")

        config = load_config(tmp_path / "missing.yaml")

        assert config.renderer.breaks is True
        assert config.editing.id_length == 10
