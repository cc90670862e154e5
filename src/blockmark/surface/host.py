"""Host surface capability consumed by the editor.

The editor never touches cursor or selection state directly; it goes
through a `HostSurface`. Nodes are BeautifulSoup objects (`Tag` for
elements, `NavigableString` for text), which is what the projection
renders into and what the serializer reads back.

Node handles are only valid until the next `mount()`: mounting replaces
the whole tree, so deferred work must look blocks up again by id.
"""

from typing import NamedTuple, Optional, Protocol, Union

from bs4 import NavigableString, Tag

Node = Union[Tag, NavigableString]


class Position(NamedTuple):
    """A point in the node tree.

    For a text node `offset` is a character index into its text; for an
    element it is a child index (the boundary before `node.contents[offset]`).
    """

    node: Node
    offset: int


class Selection(NamedTuple):
    """Current host selection: where it started (anchor) and ended (focus)."""

    anchor: Position
    focus: Position

    @property
    def is_collapsed(self) -> bool:
        return self.anchor.node is self.focus.node and self.anchor.offset == self.focus.offset


class HostSurface(Protocol):
    """What the editor needs from the editable surface it drives."""

    @property
    def root(self) -> Optional[Tag]:
        """Root element of the currently mounted tree (None before first mount)."""
        ...

    def mount(self, markup: str) -> None:
        """Replace the surface content with freshly rendered markup."""
        ...

    def get_selection(self) -> Optional[Selection]:
        """Return the current selection, or None when nothing is selected."""
        ...

    def set_selection(self, anchor: Position, focus: Optional[Position] = None) -> None:
        """Place the caret (focus omitted) or select from anchor to focus."""
        ...

    def intersects(self, selection: Selection, node: Node) -> bool:
        """Check whether any part of `node` lies inside the selection range."""
        ...

    def caret_position_from_point(self, x: int, y: int) -> Optional[Position]:
        """Primary point query; returns None when unsupported or nothing is there."""
        ...

    def caret_range_from_point(self, x: int, y: int) -> Optional[Position]:
        """Fallback point query."""
        ...
