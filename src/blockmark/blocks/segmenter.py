"""Block segmentation of raw Markdown text.

Splits text into an ordered list of block sources. The same function is
used when a document is loaded and when a block is split by Enter, so it
must stay pure: segmenting the output of segmentation (re-joined with blank
lines) yields the same blocks again.
"""

import re

HEADING_PATTERN = re.compile(r"^#+\s")
LINE_ENDINGS = re.compile(r"\r\n?")


def is_heading_line(line: str) -> bool:
    """Check whether a line is an ATX heading (one or more '#' then whitespace).

    Examples:
        >>> is_heading_line("## Notes")
        True
        >>> is_heading_line("#hashtag")
        False
    """
    return bool(HEADING_PATTERN.match(line))


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return LINE_ENDINGS.sub("\n", text)


def segment(text: str) -> list[str]:
    """Split Markdown text into block sources.

    Rules, applied line by line:

    - A heading line closes any open buffer and is emitted as its own block
    - A blank line closes the open buffer
    - Any other line is appended to the buffer
    - Whatever is buffered at the end of input is emitted

    Emitted blocks lose trailing whitespace; whitespace-only blocks are
    dropped. Leading indentation of a block's first line is kept since it
    carries meaning in Markdown (indented code, nested list items).

    Args:
        text: Raw Markdown text

    Returns:
        Block sources in document order

    Examples:
        >>> segment("Intro\\n# Title\\nBody")
        ['Intro', '# Title', 'Body']
        >>> segment("a\\nb\\n\\n\\nc")
        ['a\\nb', 'c']
    """
    blocks: list[str] = []
    buffer: list[str] = []

    def flush() -> None:
        if buffer:
            block = "\n".join(buffer).rstrip()
            if block.strip():
                blocks.append(block)
            buffer.clear()

    for line in normalize_line_endings(text).split("\n"):
        if is_heading_line(line):
            flush()
            blocks.append(line.strip())
        elif not line.strip():
            flush()
        else:
            buffer.append(line)

    flush()
    return blocks


def join_blocks(blocks: list[str]) -> str:
    """Join block sources back into a document, one blank line between blocks."""
    return "\n\n".join(blocks)
