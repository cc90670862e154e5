"""List-aware line splitting for Enter inside list blocks.

A list block is restructured line by line instead of being split into new
blocks: pressing Enter continues the list with a new empty item, or splits
the item under the caret into two sibling items. The block keeps its id.
"""

import re
from dataclasses import dataclass
from typing import Optional

# Task markers come first so "- [ ] foo" continues as a task item
LIST_MARKER = r"- \[[ xX]\] |[-*+] |\d+\. "
LIST_LINE_PATTERN = re.compile(rf"^[ \t]*(?:{LIST_MARKER})", re.MULTILINE)
LIST_ITEM_PATTERN = re.compile(rf"^([ \t]*)({LIST_MARKER})(.*)$")
MARKER_ONLY_PATTERN = re.compile(rf"^([ \t]*)({LIST_MARKER})?$")


@dataclass(frozen=True)
class ListItem:
    """A parsed list line.

    Attributes:
        indent: Leading whitespace
        marker: List marker including its trailing space (e.g. "- ", "2. ", "- [x] ")
        content: Everything after the marker
    """

    indent: str
    marker: str
    content: str

    @property
    def prefix(self) -> str:
        """Indent plus marker, i.e. everything before the content."""
        return self.indent + self.marker

    @property
    def content_start(self) -> int:
        """Column where the (left-trimmed) content begins."""
        return len(self.prefix) + len(self.content) - len(self.content.lstrip())

    def with_content(self, content: str) -> str:
        """Render a sibling line carrying the same indent and marker."""
        return f"{self.prefix}{content}"


@dataclass(frozen=True)
class ListSplit:
    """Result of pressing Enter on a list line.

    Attributes:
        text: The full rewritten block text
        line_index: Index of the newly produced second line
        cursor_offset: Block-relative offset of the new line's content start
    """

    text: str
    line_index: int
    cursor_offset: int


def is_list_block(text: str) -> bool:
    """Check whether any line of a block is a list item.

    Examples:
        >>> is_list_block("Intro\\n- item")
        True
        >>> is_list_block("-not a list")
        False
    """
    return bool(LIST_LINE_PATTERN.search(text))


def parse_list_item(line: str) -> Optional[ListItem]:
    """Parse a line into indent, marker and content.

    Returns:
        ListItem, or None when the line is not a list item
    """
    match = LIST_ITEM_PATTERN.match(line)
    if not match:
        return None
    indent, marker, content = match.groups()
    return ListItem(indent=indent, marker=marker, content=content)


def is_marker_only(line: str) -> bool:
    """Check whether a list line has a marker but no content (e.g. "- ")."""
    match = MARKER_ONLY_PATTERN.match(line)
    return bool(match and match.group(2))


def locate_line(lines: list[str], rendered_line: str, hint: Optional[int] = None) -> Optional[int]:
    """Find the index of the line a rendered row was produced from.

    Lines are matched by exact text equality. When the same text occurs
    more than once, the hinted index (the row's position in the rendered
    block) wins if it matches.

    Args:
        lines: Block source lines
        rendered_line: Source line recorded on the rendered row
        hint: Row index in the rendered block, if known

    Returns:
        Line index, or None when no line matches
    """
    if hint is not None and 0 <= hint < len(lines) and lines[hint] == rendered_line:
        return hint
    for index, line in enumerate(lines):
        if line == rendered_line:
            return index
    return None


def split_list_line(text: str, line_index: int, column: int) -> Optional[ListSplit]:
    """Apply Enter to one line of a list block.

    With the caret at or past the end of the item's content the line is kept
    and a new empty item with the same indent and marker follows it.
    Otherwise the content is cut at the caret and both halves become sibling
    items.

    Args:
        text: Block source text
        line_index: Index of the line holding the caret
        column: Caret column within that line

    Returns:
        ListSplit, or None when the line is not a parseable list item

    Examples:
        >>> split_list_line("- a\\n- b", 1, 3).text
        '- a\\n- b\\n- '
        >>> split_list_line("- abcdef", 0, 5).text
        '- abc\\n- def'
    """
    lines = text.split("\n")
    if not 0 <= line_index < len(lines):
        return None

    line = lines[line_index]
    item = parse_list_item(line)
    if item is None:
        return None

    trimmed = item.content.strip()
    offset_in_content = max(0, column - item.content_start)

    if offset_in_content >= len(trimmed):
        produced = [line, item.with_content("")]
    else:
        produced = [
            item.with_content(trimmed[:offset_in_content]),
            item.with_content(trimmed[offset_in_content:]),
        ]

    new_lines = lines[:line_index] + produced + lines[line_index + 1:]
    second_line = line_index + 1
    line_start = sum(len(new_line) + 1 for new_line in new_lines[:second_line])

    return ListSplit(
        text="\n".join(new_lines),
        line_index=second_line,
        cursor_offset=line_start + len(item.prefix),
    )
