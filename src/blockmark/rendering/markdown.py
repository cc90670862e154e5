"""Markdown renderer and serializer collaborators.

The renderer turns one block's Markdown source into HTML (markdown-it-py);
the serializer turns a live block element back into Markdown. Blocks shown
in source view are already Markdown, so they serialize to their visible
text; rendered blocks go through markdownify.

`safe_render` and `safe_serialize` wrap any renderer/serializer so a
failing collaborator degrades to the raw text instead of raising: a
single block must never become unrenderable mid-edit.
"""

import copy
import html
import re
from typing import Any, Callable, Optional

from bs4 import Tag
from markdown_it import MarkdownIt
from markdownify import MarkdownConverter
from mdit_py_plugins.tasklists import tasklists_plugin

from blockmark.models.config import RendererConfig, SerializerConfig
from blockmark.surface.cursor import NBSP, PLACEHOLDER, block_text, is_text
from blockmark.utils.logging import get_logger

logger = get_logger(__name__)

Renderer = Callable[[str], str]
Serializer = Callable[[Tag], str]

EDIT_MODE_CLASS = "m2-edit-mode"
EMPTY_MARKUP = f"<p>{PLACEHOLDER}</p>"

UNCHECKED_TASK_LINE = re.compile(r"(?:[-*+]|\d+\.)\s+\[\s\]\s.*🎗.*;")
REMINDER = re.compile(r"🎗.*?;")
EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


class MarkdownRenderer:
    """Render block Markdown to HTML with markdown-it-py.

    CommonMark plus tables, strikethrough and task lists, with single
    newlines rendered as line breaks. Empty input renders as a paragraph
    holding a zero-width placeholder so the block stays addressable.

    Example:
        >>> render = MarkdownRenderer()
        >>> render("**hi**")
        '<p><strong>hi</strong></p>\\n'
    """

    def __init__(self, config: Optional[RendererConfig] = None):
        self.config = config or RendererConfig()
        md = MarkdownIt("commonmark", {"breaks": self.config.breaks, "html": self.config.html})
        if self.config.tables:
            md.enable("table")
        if self.config.strikethrough:
            md.enable("strikethrough")
        if self.config.task_lists:
            md.use(tasklists_plugin)
        self._md = md

    def __call__(self, text: str) -> str:
        if not text.strip():
            return EMPTY_MARKUP
        if self.config.highlight_reminders and self.config.html:
            text = highlight_reminders(text)
        return self._md.render(text)


def highlight_reminders(text: str) -> str:
    """Wrap '🎗 ...;' reminders on unchecked task lines in a marker span."""
    lines = []
    for line in text.split("\n"):
        if UNCHECKED_TASK_LINE.search(line):
            line = REMINDER.sub(
                lambda m: f'<span class="m2-reminder-text">{html.escape(m.group(0))}</span>',
                line,
                count=1,
            )
        lines.append(line)
    return "\n".join(lines)


class _BlockConverter(MarkdownConverter):
    """markdownify converter tuned for round-tripping rendered blocks."""

    def convert_input(self, el: Any, text: str, *args: Any, **kwargs: Any) -> str:
        if el.get("type") == "checkbox":
            return "[x]" if el.has_attr("checked") else "[ ]"
        return ""

    def convert_br(self, el: Any, text: str, *args: Any, **kwargs: Any) -> str:
        return "\n"


def is_source_view(node: Tag) -> bool:
    """Check whether a block element is currently shown as editable source."""
    return EDIT_MODE_CLASS in (node.get("class") or [])


class MarkdownSerializer:
    """Serialize a live block element back to Markdown.

    Example:
        >>> serialize = MarkdownSerializer()
        >>> serialize(block_element)
        '- [ ] buy **milk**'
    """

    def __init__(self, config: Optional[SerializerConfig] = None):
        self.config = config or SerializerConfig()
        escape = self.config.escape_markdown
        self._converter = _BlockConverter(
            heading_style=self.config.heading_style,
            bullets=self.config.bullets,
            escape_asterisks=escape,
            escape_underscores=escape,
            escape_misc=escape,
        )

    def __call__(self, node: Tag) -> str:
        if is_source_view(node):
            return block_text(node)

        prepared = copy.copy(node)
        for br in prepared.find_all("br"):
            following = br.next_sibling
            if is_text(following) and following.startswith("\n"):
                following.replace_with(following.lstrip("\n"))

        markdown = self._converter.convert_soup(prepared)
        markdown = markdown.replace(PLACEHOLDER, "").replace(NBSP, " ")
        return EXCESS_BLANK_LINES.sub("\n\n", markdown).strip()


def safe_render(renderer: Renderer, text: str) -> str:
    """Render a block, falling back to its escaped source on failure."""
    try:
        markup = renderer(text)
    except Exception as e:
        logger.warning("renderer_failed", error=str(e), length=len(text))
        return _fallback_markup(text)

    if not isinstance(markup, str):
        logger.warning("renderer_returned_non_string", result_type=type(markup).__name__)
        return _fallback_markup(text)
    return markup or EMPTY_MARKUP


def _fallback_markup(text: str) -> str:
    if not text.strip():
        return EMPTY_MARKUP
    return f"<p>{html.escape(text)}</p>"


def safe_serialize(serializer: Serializer, node: Tag) -> str:
    """Serialize a block, falling back to its plain visible text on failure."""
    try:
        markdown = serializer(node)
    except Exception as e:
        logger.warning("serializer_failed", error=str(e), block_id=node.get("id"))
        return block_text(node)

    if not isinstance(markdown, str):
        logger.warning("serializer_returned_non_string", result_type=type(markdown).__name__)
        return block_text(node)
    return markdown
