"""Render projection: Document + edit focus set → surface markup.

Blocks in the edit focus set are shown as source, one row per line, so the
user edits Markdown directly. All other blocks are handed to the renderer.
"""

import html
import re
from typing import AbstractSet

from bs4 import BeautifulSoup, Tag

from blockmark.blocks.lists import LIST_ITEM_PATTERN, is_marker_only
from blockmark.models.document import Document
from blockmark.rendering.markdown import EDIT_MODE_CLASS, Renderer, safe_render
from blockmark.surface.cursor import BLOCK_CLASS, LINE_ATTRIBUTE, NBSP, PLACEHOLDER

DOCUMENT_ID = "m2-doc"
BOOKMARK_PREFIX = "// "
LEADING_SPACES = re.compile(r"^ +")

VOID_ELEMENTS = {
    "area", "base", "br", "col", "command", "embed", "hr", "img", "input",
    "keygen", "link", "meta", "param", "source", "track", "wbr",
}


def render_source_line(line: str) -> str:
    """Render one source line as the inner HTML of a source-view row.

    Leading spaces become non-breaking spaces so indentation survives; an
    empty list item keeps its marker's trailing space the same way and gets
    a placeholder; an empty line is just a placeholder. Every transformation
    keeps the visible length equal to the source line's length.
    """
    if not line:
        return PLACEHOLDER

    if is_marker_only(line):
        item = LIST_ITEM_PATTERN.match(line)
        indent, marker = item.group(1), item.group(2)
        return html.escape(indent.replace(" ", NBSP) + marker[:-1]) + NBSP + PLACEHOLDER

    rendered = LEADING_SPACES.sub(lambda m: NBSP * len(m.group(0)), line)
    return html.escape(rendered, quote=False)


def render_source_view(text: str) -> str:
    """Render block source as rows of `<span data-line>` separated by `<br>`."""
    rows = []
    for line in text.split("\n"):
        rows.append(
            f'<span {LINE_ATTRIBUTE}="{html.escape(line, quote=True)}">{render_source_line(line)}</span>'
        )
    return "<br>".join(rows)


def render_bookmark(text: str) -> str:
    """Render a '// title' block as a bookmark marker."""
    title = text[len(BOOKMARK_PREFIX):]
    return f'<div class="m2-bookmark">{html.escape(title, quote=False)}<hr></div>'


def render_rendered_view(text: str, renderer: Renderer) -> str:
    """Render block source through the renderer with local post-processing.

    - Blocks starting with '// ' become bookmarks instead of Markdown
    - Output whose first element is a void element (e.g. a lone <hr>) is
      wrapped in a <div> so the block stays a single addressable node
    """
    if text.startswith(BOOKMARK_PREFIX):
        return render_bookmark(text)

    markup = safe_render(renderer, text)
    first = BeautifulSoup(markup, "html.parser").find(True)
    if isinstance(first, Tag) and first.name.lower() in VOID_ELEMENTS:
        markup = f"<div>{markup}</div>"
    return markup


def project_block(block_id: str, text: str, editing: bool, renderer: Renderer) -> str:
    """Render one block container in source or rendered view."""
    block_id = html.escape(block_id, quote=True)
    if editing:
        return (
            f'<div id="{block_id}" class="{BLOCK_CLASS} {EDIT_MODE_CLASS}" contenteditable="true">'
            f"{render_source_view(text)}</div>"
        )
    return f'<div id="{block_id}" class="{BLOCK_CLASS}" tabindex="0">{render_rendered_view(text, renderer)}</div>'


def project_document(document: Document, focus: AbstractSet[str], renderer: Renderer) -> str:
    """Render every block of a document in order.

    Args:
        document: Document snapshot to render
        focus: Ids of blocks to show in source view
        renderer: Markdown renderer for the other blocks

    Returns:
        Markup for the whole editable surface
    """
    blocks = "".join(
        project_block(block_id, text, block_id in focus, renderer)
        for block_id, text in document.items()
    )
    return f'<div id="{DOCUMENT_ID}" class="m2-doc" contenteditable="true">{blocks}</div>'
