"""Configuration models for blockmark."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class RendererConfig(BaseModel):
    """Options for the Markdown → HTML renderer."""

    breaks: bool = Field(
        default=True,
        description="Render single newlines inside a paragraph as <br>"
    )

    html: bool = Field(
        default=True,
        description="Pass raw HTML in block sources through to the output"
    )

    tables: bool = Field(
        default=True,
        description="Enable GFM pipe tables"
    )

    strikethrough: bool = Field(
        default=True,
        description="Enable ~~strikethrough~~"
    )

    task_lists: bool = Field(
        default=True,
        description="Render '- [ ]' / '- [x]' items as checkboxes"
    )

    highlight_reminders: bool = Field(
        default=True,
        description="Highlight '🎗 ...;' reminders on unchecked task items"
    )

    model_config = {"frozen": True}


class SerializerConfig(BaseModel):
    """Options for the rendered HTML → Markdown serializer."""

    heading_style: Literal["ATX", "ATX_CLOSED", "SETEXT", "UNDERLINED"] = Field(
        default="ATX",
        description="markdownify heading style"
    )

    bullets: str = Field(
        default="-",
        min_length=1,
        description="Bullet characters cycled through by nesting depth"
    )

    escape_markdown: bool = Field(
        default=False,
        description="Escape Markdown-significant characters in text"
    )

    @field_validator("bullets")
    @classmethod
    def validate_bullets(cls, v: str) -> str:
        """Only '-', '*' and '+' are list bullets."""
        invalid = set(v) - {"-", "*", "+"}
        if invalid:
            raise ValueError(
                f"Invalid bullet characters: {''.join(sorted(invalid))}\n"
                f"Use any combination of '-', '*' and '+'"
            )
        return v

    model_config = {"frozen": True}


class EditingConfig(BaseModel):
    """Options for the editing state machine."""

    id_length: int = Field(
        default=10,
        ge=4,
        le=32,
        description="Length of generated block ids"
    )

    keep_last_block: bool = Field(
        default=True,
        description="Refuse to delete the only remaining block of a document"
    )

    model_config = {"frozen": True}


class EditorConfig(BaseModel):
    """Root configuration for blockmark."""

    renderer: RendererConfig = Field(default_factory=RendererConfig, description="Renderer settings")
    serializer: SerializerConfig = Field(default_factory=SerializerConfig, description="Serializer settings")
    editing: EditingConfig = Field(default_factory=EditingConfig, description="Editing settings")

    model_config = {"frozen": True}
