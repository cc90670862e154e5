"""Unit tests for the in-memory host surface."""

import pytest

from blockmark.surface.cursor import block_text, containing_block, position_to_offset
from blockmark.surface.memory import MemorySurface

MARKUP = (
    '<div id="m2-doc" class="m2-doc">'
    '<div id="b1" class="m2-block"><p>Alpha</p>\n</div>'
    '<div id="b2" class="m2-block m2-edit-mode"><span data-line="one">one</span><br><span data-line="two">two</span></div>'
    '<div id="b3" class="m2-block"><p>Gamma</p>\n</div>'
    "</div>"
)


@pytest.fixture
def mounted():
    surface = MemorySurface()
    surface.mount(MARKUP)
    return surface


class TestMount:
    """Test mounting markup."""

    def test_mount_replaces_tree_and_drops_selection(self, mounted):
        """Test that a mount invalidates old nodes and the selection."""
        old_block = mounted.block("b1")
        mounted.place_caret("b1", 1)

        mounted.mount(MARKUP)

        assert mounted.get_selection() is None
        assert mounted.block("b1") is not old_block
        assert mounted.mount_count == 2

    def test_root_before_mount(self):
        """Test that nothing is mounted initially."""
        assert MemorySurface().root is None


class TestSelection:
    """Test selection helpers and geometry."""

    def test_place_caret(self, mounted):
        """Test placing a collapsed caret by block offset."""
        mounted.place_caret("b2", 5)
        selection = mounted.get_selection()

        assert selection.is_collapsed
        assert str(selection.anchor.node) == "two"
        assert selection.anchor.offset == 1

    def test_place_caret_unknown_block(self, mounted):
        """Test that unknown blocks are ignored."""
        assert mounted.place_caret("zz", 0) is None
        assert mounted.get_selection() is None

    def test_intersects_range_across_blocks(self, mounted):
        """Test that a range touches exactly the blocks it spans."""
        selection = mounted.select_range(("b1", 2), ("b2", 1))

        assert mounted.intersects(selection, mounted.block("b1"))
        assert mounted.intersects(selection, mounted.block("b2"))
        assert not mounted.intersects(selection, mounted.block("b3"))

    def test_intersects_backwards_range(self, mounted):
        """Test that anchor after focus is handled."""
        selection = mounted.select_range(("b3", 2), ("b2", 4))

        assert not mounted.intersects(selection, mounted.block("b1"))
        assert mounted.intersects(selection, mounted.block("b2"))
        assert mounted.intersects(selection, mounted.block("b3"))

    def test_insert_text(self, mounted):
        """Test typing at the caret."""
        mounted.place_caret("b2", 3)
        mounted.insert_text("!")

        block = mounted.block("b2")
        selection = mounted.get_selection()
        assert block_text(block) == "one!\ntwo"
        assert position_to_offset(block, *selection.anchor) == 4

    def test_insert_text_needs_collapsed_caret(self, mounted):
        """Test that typing over a range is rejected."""
        mounted.select_range(("b2", 0), ("b2", 2))

        with pytest.raises(ValueError, match="collapsed caret"):
            mounted.insert_text("x")


class TestPointQueries:
    """Test the row/column layout."""

    def test_rows(self, mounted):
        """Test that blocks and <br> start rows."""
        texts = ["".join(segment.text for segment in row) for row in mounted.rows()]
        assert texts == ["Alpha", "one", "two", "Gamma"]

    def test_caret_position_from_point(self, mounted):
        """Test resolving a coordinate."""
        position = mounted.caret_position_from_point(2, 2)

        assert str(position.node) == "two"
        assert position.offset == 2
        assert containing_block(position.node)["id"] == "b2"

    def test_column_past_row_end_clamps(self, mounted):
        """Test that x beyond the row lands at its end."""
        position = mounted.caret_position_from_point(40, 0)

        assert str(position.node) == "Alpha"
        assert position.offset == 5

    def test_row_out_of_range(self, mounted):
        """Test that y beyond the layout finds nothing."""
        assert mounted.caret_position_from_point(0, 9) is None

    def test_range_only_host(self):
        """Test a host without the primary point query."""
        surface = MemorySurface(point_query="range")
        surface.mount(MARKUP)

        assert surface.caret_position_from_point(1, 0) is None
        assert surface.caret_range_from_point(1, 0).offset == 1
