"""Cursor mapping between block text offsets and rendered node positions.

A block's rendered tree is read as a run of fragments in document order:

- text nodes, whose length excludes zero-width placeholders
- `<br>` elements, which stand for one newline character

Summing fragment lengths gives linear offsets that line up with the
block's serialized source text when the block is in source view.
"""

from typing import Iterator, NamedTuple, Optional

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

from blockmark.surface.host import HostSurface, Node, Position, Selection

PLACEHOLDER = "\u200b"
NBSP = "\xa0"
BLOCK_CLASS = "m2-block"
LINE_ATTRIBUTE = "data-line"


class RenderedLine(NamedTuple):
    """A source-view row: the span, the source line it came from, its row index."""

    element: Tag
    source: str
    index: int


def is_text(node: object) -> bool:
    """Check for a plain text node (comments, CDATA, doctypes excluded)."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def is_line_break(node: object) -> bool:
    return isinstance(node, Tag) and node.name == "br"


def visible_length(text: str) -> int:
    """Length of a text node's content ignoring placeholders."""
    return len(text) - text.count(PLACEHOLDER)


def visible_to_raw(text: str, visible: int) -> int:
    """Convert a placeholder-free offset into an index into `text`."""
    count = 0
    for index, char in enumerate(text):
        if count >= visible:
            return index
        if char != PLACEHOLDER:
            count += 1
    return len(text)


def raw_to_visible(text: str, raw: int) -> int:
    """Convert an index into `text` into a placeholder-free offset."""
    return visible_length(text[:raw])


def clean_text(text: str) -> str:
    """Drop placeholders and turn non-breaking spaces back into spaces."""
    return text.replace(PLACEHOLDER, "").replace(NBSP, " ")


def _fragment_length(node: object) -> int:
    if is_text(node):
        return visible_length(str(node))
    if is_line_break(node):
        return 1
    return 0


def _subtree_length(node: Node) -> int:
    if isinstance(node, Tag) and not is_line_break(node):
        return sum(_fragment_length(d) for d in node.descendants)
    return _fragment_length(node)


def iter_fragments(node: Node) -> Iterator[tuple[Node, int]]:
    """Yield (fragment, length) pairs under `node` in document order."""
    if not isinstance(node, Tag):
        if is_text(node):
            yield node, _fragment_length(node)
        return
    for descendant in node.descendants:
        length = _fragment_length(descendant)
        if is_text(descendant) or is_line_break(descendant):
            yield descendant, length


def block_text(block: Node) -> str:
    """Visible text of a rendered block, `<br>` read as a newline."""
    parts = []
    for fragment, _length in iter_fragments(block):
        parts.append("\n" if is_line_break(fragment) else clean_text(str(fragment)))
    return "".join(parts)


def is_empty_block(block: Tag) -> bool:
    """Check whether a block shows nothing but (at most) a placeholder."""
    return block.get_text().replace(PLACEHOLDER, "") == ""


def offset_to_position(block: Tag, offset: int) -> Position:
    """Map a block-relative offset to a node position.

    Walks fragments accumulating lengths until the offset falls inside one.
    An offset at a fragment boundary resolves to the end of the earlier text
    node. When the rendered content is shorter than the offset (collapsed
    whitespace, stale render) the block's trailing boundary is returned.

    Args:
        block: Rendered block element
        offset: Linear offset into the block's text

    Returns:
        Position to place the caret at
    """
    remaining = max(0, offset)
    for fragment, length in iter_fragments(block):
        if is_text(fragment):
            if remaining <= length:
                return Position(fragment, visible_to_raw(str(fragment), remaining))
            remaining -= length
        else:
            if remaining == 0:
                parent = fragment.parent
                return Position(parent, parent.index(fragment))
            remaining -= length
    return Position(block, len(block.contents))


def _length_before(block: Tag, node: Node) -> Optional[int]:
    total = 0
    for descendant in block.descendants:
        if descendant is node:
            return total
        total += _fragment_length(descendant)
    return None


def position_to_offset(block: Tag, node: Node, offset: int) -> Optional[int]:
    """Map a node position to a block-relative offset.

    Accepts both text anchors (character offsets) and element anchors
    (child-index offsets).

    Args:
        block: Rendered block element
        node: Anchor node reported by the host
        offset: Anchor offset reported by the host

    Returns:
        Linear offset, or None when the node is not inside the block
    """
    if node is block:
        before = 0
    else:
        before = _length_before(block, node)
        if before is None:
            return None

    if is_text(node):
        text = str(node)
        return before + raw_to_visible(text, min(max(offset, 0), len(text)))

    if isinstance(node, Tag):
        if is_line_break(node):
            return before + (1 if offset > 0 else 0)
        return before + sum(_subtree_length(child) for child in node.contents[:max(offset, 0)])

    return before


def point_to_position(surface: HostSurface, x: int, y: int) -> Optional[Position]:
    """Ask the host which node lies under a surface coordinate.

    Tries `caret_position_from_point` first and falls back to
    `caret_range_from_point` when the host lacks it or finds nothing.
    The returned offset is clamped to the node's length.
    """
    position = None
    for query_name in ("caret_position_from_point", "caret_range_from_point"):
        query = getattr(surface, query_name, None)
        if callable(query):
            position = query(x, y)
            if position is not None:
                break

    if position is None:
        return None

    node, offset = position
    limit = len(str(node)) if is_text(node) else len(getattr(node, "contents", []))
    return Position(node, max(0, min(offset, limit)))


def first_text_node(node: Node) -> Optional[NavigableString]:
    """Find the deepest first text node under `node` (or `node` itself)."""
    if is_text(node):
        return node
    if isinstance(node, Tag):
        for descendant in node.descendants:
            if is_text(descendant):
                return descendant
    return None


def is_at_block_start(block: Tag, node: Node, offset: int) -> bool:
    """Check whether a caret sits at the very start of a block.

    True when the anchor is the block itself at offset 0, the block's first
    text node at (visible) offset 0, or any other anchor whose block offset
    is 0 (e.g. the start of the first row element).
    """
    if node is block:
        return offset == 0
    first = first_text_node(block)
    if first is not None and node is first:
        return raw_to_visible(str(first), offset) == 0
    return position_to_offset(block, node, offset) == 0


def containing_block(node: Optional[Node]) -> Optional[Tag]:
    """Walk up from a node to the block element that holds it."""
    current = node
    while current is not None:
        if isinstance(current, Tag) and BLOCK_CLASS in (current.get("class") or []) and current.get("id"):
            return current
        current = current.parent
    return None


def find_block(root: Optional[Tag], block_id: str) -> Optional[Tag]:
    """Look a block element up by id in a mounted tree."""
    if root is None:
        return None
    if root.get("id") == block_id and BLOCK_CLASS in (root.get("class") or []):
        return root
    return root.find(id=block_id, class_=BLOCK_CLASS)


def iter_blocks(root: Optional[Tag]) -> Iterator[Tag]:
    """Yield every block element of a mounted tree in document order."""
    if root is None:
        return
    for element in root.find_all(class_=BLOCK_CLASS):
        if element.get("id"):
            yield element


def line_at(block: Tag, node: Node) -> Optional[RenderedLine]:
    """Find the source-view row holding a node.

    Returns:
        RenderedLine, or None when the node is not inside a source-view row
    """
    row = None
    current = node
    while current is not None and current is not block:
        if isinstance(current, Tag) and current.has_attr(LINE_ATTRIBUTE):
            row = current
            break
        current = current.parent
    if row is None:
        return None

    rows = block.find_all(attrs={LINE_ATTRIBUTE: True})
    index = next((i for i, candidate in enumerate(rows) if candidate is row), None)
    if index is None:
        return None
    return RenderedLine(element=row, source=row[LINE_ATTRIBUTE], index=index)


def selection_offsets(block: Tag, selection: Selection) -> Optional[tuple[int, int]]:
    """Map both ends of a selection to block offsets, ordered start <= end.

    Returns:
        (start, end), or None when either end lies outside the block
    """
    anchor = position_to_offset(block, *selection.anchor)
    focus = position_to_offset(block, *selection.focus)
    if anchor is None or focus is None:
        return None
    return (anchor, focus) if anchor <= focus else (focus, anchor)


def relocate_text(source: str, rendered: str, start: int, end: int) -> Optional[tuple[int, int]]:
    """Find a stretch of a block's rendered text in its Markdown source.

    Surrounding whitespace of the stretch is ignored. When the text repeats,
    the occurrence with the same rank as in the rendered text is taken,
    falling back to the first one.

    Args:
        source: Markdown source of the block
        rendered: Visible text of the rendered block (see `block_text`)
        start: Start offset in `rendered`
        end: End offset in `rendered`

    Returns:
        (start, end) source offsets, or None when the text is not in the source
    """
    selected = rendered[start:end]
    start += len(selected) - len(selected.lstrip())
    selected = selected.strip()
    if not selected:
        return None

    rank = rendered.count(selected, 0, start)
    index = -1
    for _ in range(rank + 1):
        index = source.find(selected, index + 1)
        if index < 0:
            index = source.find(selected)
            break
    if index < 0:
        return None
    return index, index + len(selected)
