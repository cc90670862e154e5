"""In-memory host surface backed by a BeautifulSoup tree.

Implements the full `HostSurface` capability without a real rendering
engine. `blockmark.editing.replay` (the `blockmark replay` command) drives
the editor over it, and the tests use it as their host:

- `mount()` parses markup into a fresh tree (old node handles go stale,
  the selection is dropped, as with a real DOM re-render)
- point queries use a simple text layout: each `<br>` or block-level
  element starts a new row, every visible character is one column
- a few editing helpers (`insert_text`, `place_caret`, `select_range`)
  stand in for the user typing and clicking
"""

from typing import Literal, NamedTuple, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from blockmark.surface.cursor import (
    find_block,
    is_line_break,
    is_text,
    offset_to_position,
    visible_length,
    visible_to_raw,
)
from blockmark.surface.host import Node, Position, Selection
from blockmark.utils.logging import get_logger

logger = get_logger(__name__)

ROW_ELEMENTS = {
    "div", "p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "ul", "ol",
    "pre", "blockquote", "table", "tr", "hr",
}

PointQuery = Literal["position", "range"]


class _Segment(NamedTuple):
    node: NavigableString
    start: int
    end: int

    @property
    def text(self) -> str:
        return str(self.node)[self.start:self.end]


class MemorySurface:
    """A `HostSurface` held entirely in memory.

    Args:
        point_query: Which point query the host supports natively. "position"
            answers both queries; "range" only answers the fallback
            `caret_range_from_point`, like hosts without the newer API.
    """

    def __init__(self, point_query: PointQuery = "position"):
        self.point_query = point_query
        self._soup: Optional[BeautifulSoup] = None
        self._selection: Optional[Selection] = None
        self.mount_count = 0

    @property
    def root(self) -> Optional[Tag]:
        return self._soup

    def mount(self, markup: str) -> None:
        """Replace the whole tree with newly rendered markup."""
        self._soup = BeautifulSoup(markup, "html.parser")
        self._selection = None
        self.mount_count += 1

    def get_selection(self) -> Optional[Selection]:
        return self._selection

    def set_selection(self, anchor: Position, focus: Optional[Position] = None) -> None:
        self._selection = Selection(anchor=anchor, focus=focus or anchor)

    def clear_selection(self) -> None:
        self._selection = None

    def block(self, block_id: str) -> Optional[Tag]:
        """Return the mounted element of a block."""
        return find_block(self.root, block_id)

    # Selection geometry

    def _order(self) -> dict[int, int]:
        if self._soup is None:
            return {}
        order = {id(self._soup): -1}
        for index, node in enumerate(self._soup.descendants):
            order[id(node)] = index
        return order

    @staticmethod
    def _last_index(node: Node, order: dict[int, int]) -> int:
        last = order[id(node)]
        if isinstance(node, Tag):
            for descendant in node.descendants:
                last = order.get(id(descendant), last)
        return last

    def _key(self, position: Position, order: dict[int, int]) -> Optional[tuple[int, float]]:
        node, offset = position
        if id(node) not in order:
            return None
        if isinstance(node, Tag):
            if offset < len(node.contents):
                return (order[id(node.contents[offset])], -1.0)
            return (self._last_index(node, order), float("inf"))
        return (order[id(node)], float(offset))

    def intersects(self, selection: Selection, node: Node) -> bool:
        order = self._order()
        if id(node) not in order:
            return False

        keys = [self._key(selection.anchor, order), self._key(selection.focus, order)]
        if None in keys:
            return False
        start, end = sorted(keys)

        node_start = (order[id(node)], -1.0)
        node_end = (self._last_index(node, order), float("inf"))
        return start < node_end and end > node_start

    # Point queries

    def rows(self) -> list[list[_Segment]]:
        """Lay the mounted text out in rows of text segments."""
        rows: list[list[_Segment]] = [[]]
        if self._soup is None:
            return []

        for node in self._soup.descendants:
            if is_line_break(node):
                rows.append([])
            elif isinstance(node, Tag):
                if node.name in ROW_ELEMENTS and rows[-1]:
                    rows.append([])
            elif is_text(node):
                text = str(node)
                if not text.strip("\n"):
                    continue
                start = 0
                for piece_index, piece in enumerate(text.split("\n")):
                    if piece_index:
                        rows.append([])
                    if piece:
                        rows[-1].append(_Segment(node, start, start + len(piece)))
                    start += len(piece) + 1

        if not rows[-1]:
            rows.pop()
        return rows

    def _locate(self, x: int, y: int) -> Optional[Position]:
        rows = self.rows()
        if not 0 <= y < len(rows) or not rows[y]:
            return None

        column = 0
        target = max(0, x)
        for segment in rows[y]:
            width = visible_length(segment.text)
            if target <= column + width:
                return Position(segment.node, segment.start + visible_to_raw(segment.text, target - column))
            column += width

        last = rows[y][-1]
        return Position(last.node, last.end)

    def caret_position_from_point(self, x: int, y: int) -> Optional[Position]:
        if self.point_query != "position":
            return None
        return self._locate(x, y)

    def caret_range_from_point(self, x: int, y: int) -> Optional[Position]:
        return self._locate(x, y)

    # Editing helpers standing in for user input

    def place_caret(self, block_id: str, offset: int) -> Optional[Position]:
        """Put a collapsed caret at a block-relative offset."""
        block = self.block(block_id)
        if block is None:
            return None
        position = offset_to_position(block, offset)
        self.set_selection(position)
        return position

    def select_range(self, start: tuple[str, int], end: tuple[str, int]) -> Optional[Selection]:
        """Select from (block_id, offset) to (block_id, offset)."""
        anchor_block = self.block(start[0])
        focus_block = self.block(end[0])
        if anchor_block is None or focus_block is None:
            return None
        self.set_selection(
            offset_to_position(anchor_block, start[1]),
            offset_to_position(focus_block, end[1]),
        )
        return self._selection

    def insert_text(self, text: str) -> None:
        """Type text at a collapsed caret, the way a user edits the live tree."""
        if self._selection is None or not self._selection.is_collapsed:
            raise ValueError("insert_text needs a collapsed caret")

        node, offset = self._selection.anchor
        if is_text(node):
            old = str(node)
            replacement = NavigableString(old[:offset] + text + old[offset:])
            node.replace_with(replacement)
            self.set_selection(Position(replacement, offset + len(text)))
        elif isinstance(node, Tag):
            inserted = NavigableString(text)
            node.insert(offset, inserted)
            self.set_selection(Position(inserted, len(text)))
        logger.debug("surface_text_inserted", length=len(text))
