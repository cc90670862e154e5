"""Shared test fixtures for all test modules."""

import pytest

from blockmark.editing.editor import BlockEditor
from blockmark.rendering.markdown import MarkdownRenderer, MarkdownSerializer
from blockmark.surface.memory import MemorySurface


class SequentialIds:
    """Deterministic id generator: b1, b2, b3, ..."""

    def __init__(self, prefix: str = "b"):
        self.prefix = prefix
        self.count = 0

    def next_id(self) -> str:
        self.count += 1
        return f"{self.prefix}{self.count}"


@pytest.fixture
def ids():
    """Fresh sequential id generator."""
    return SequentialIds()


@pytest.fixture
def renderer():
    return MarkdownRenderer()


@pytest.fixture
def serializer():
    return MarkdownSerializer()


@pytest.fixture
def surface():
    """In-memory host surface answering both point queries."""
    return MemorySurface()


@pytest.fixture
def make_editor(surface, renderer, serializer, ids):
    """
    Factory building a painted editor over the shared surface.

    Blocks get ids b1, b2, ... in document order.
    """

    def _make(text: str, **kwargs) -> BlockEditor:
        editor = BlockEditor(
            text,
            surface,
            renderer=renderer,
            serializer=serializer,
            ids=ids,
            **kwargs,
        )
        editor.paint()
        return editor

    return _make


@pytest.fixture
def edit_at():
    """
    Put a block in edit mode with the caret at a source offset.

    Stands in for the user clicking into a block: the caret lands in the
    rendered block, focus follows it, the block is re-rendered as source and
    the caret is then placed at `offset` in that source view.
    """

    def _edit_at(editor: BlockEditor, block_id: str, offset: int) -> None:
        editor.surface.place_caret(block_id, 0)
        editor.focus_in()
        editor.paint()
        editor.surface.place_caret(block_id, offset)

    return _edit_at
