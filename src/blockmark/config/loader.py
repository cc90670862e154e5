"""Configuration loader with YAML and environment variable support.

This module reads ~/.config/blockmark/config.yaml (when it exists) and lets
environment variables with the BLOCKMARK_ prefix override single values.

Environment variables:
- BLOCKMARK_RENDERER_BREAKS: Override renderer.breaks (true/false)
- BLOCKMARK_RENDERER_HTML: Override renderer.html (true/false)
- BLOCKMARK_SERIALIZER_HEADING_STYLE: Override serializer.heading_style
- BLOCKMARK_SERIALIZER_BULLETS: Override serializer.bullets
- BLOCKMARK_EDITING_ID_LENGTH: Override editing.id_length
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from blockmark.models.config import EditorConfig

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "blockmark" / "config.yaml"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def load_config(config_path: Optional[Path] = None) -> EditorConfig:
    """Load configuration from YAML file with environment variable overrides.

    A missing file is not an error: every setting has a default.

    Args:
        config_path: Path to config file. If None, uses ~/.config/blockmark/config.yaml

    Returns:
        Validated EditorConfig object

    Raises:
        ValueError: If the file is not a YAML mapping or validation fails
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        with config_path.open() as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")
    else:
        data = {}

    data = _apply_env_overrides(data)

    # Pydantic will validate the structure
    return EditorConfig(**data)


def _parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data.

    Environment variables use the format: BLOCKMARK_SECTION_KEY
    For example: BLOCKMARK_RENDERER_BREAKS sets data['renderer']['breaks']

    Args:
        data: Base configuration dictionary from YAML

    Returns:
        Configuration dictionary with environment overrides applied
    """
    for section in ("renderer", "serializer", "editing"):
        if not isinstance(data.get(section), dict):
            data[section] = {}

    for key in ("breaks", "html"):
        if env_value := os.getenv(f"BLOCKMARK_RENDERER_{key.upper()}"):
            parsed = _parse_bool(env_value)
            if parsed is not None:
                data["renderer"][key] = parsed

    if env_heading := os.getenv("BLOCKMARK_SERIALIZER_HEADING_STYLE"):
        data["serializer"]["heading_style"] = env_heading.upper()

    if env_bullets := os.getenv("BLOCKMARK_SERIALIZER_BULLETS"):
        data["serializer"]["bullets"] = env_bullets

    if env_id_length := os.getenv("BLOCKMARK_EDITING_ID_LENGTH"):
        try:
            data["editing"]["id_length"] = int(env_id_length)
        except ValueError:
            pass  # Invalid value, ignore

    return data
