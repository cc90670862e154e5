"""Structural edits as pure functions over Document snapshots.

Each function takes the current Document (already holding the live text of
the block being edited) and returns a `Transition`: the new Document, the
edit focus set to use next, and where the caret goes after the re-render.
Functions return None when the edit does not apply, letting the caller
fall back to the host's default behavior.
"""

from typing import AbstractSet, Optional

from blockmark.blocks.lists import is_list_block, split_list_line
from blockmark.blocks.segmenter import segment
from blockmark.models.document import Document, SupportsNextId
from blockmark.models.editing import PendingRestore, Transition


def split_block(document: Document, block_id: str, offset: int, ids: SupportsNextId) -> Transition:
    """Split a block in two (or more) at a caret offset.

    Both halves are re-segmented, so a half containing a heading or a blank
    line expands into several blocks. The original id is kept by the first
    resulting block; the others get fresh ids and take the original
    block's place in the order. A half that segments to nothing becomes an
    empty block, so Enter always produces a new block.

    Args:
        document: Current document
        block_id: Block holding the caret
        offset: Caret offset within the block's text
        ids: Id generator for the new blocks

    Returns:
        Transition focusing the first block after the cut, caret at its start
    """
    text = document.text_of(block_id)
    offset = max(0, min(offset, len(text)))

    before = segment(text[:offset]) or [""]
    after = segment(text[offset:]) or [""]

    new_ids = [block_id] + [ids.next_id() for _ in range(len(before) + len(after) - 1)]
    entries = list(zip(new_ids, before + after))
    target = new_ids[len(before)]

    return Transition(
        document=document.splice(block_id, entries),
        focus=frozenset({target}),
        restore=PendingRestore.caret(target, 0),
        action="block_split",
        details={"block_id": block_id, "offset": offset, "new_blocks": len(entries) - 1},
    )


def split_list_item(document: Document, block_id: str, line_index: int, column: int) -> Optional[Transition]:
    """Continue or split the list item under the caret, inside the same block.

    Returns:
        Transition, or None when the line is not a parseable list item
    """
    result = split_list_line(document.text_of(block_id), line_index, column)
    if result is None:
        return None

    return Transition(
        document=document.with_text(block_id, result.text),
        focus=frozenset({block_id}),
        restore=PendingRestore.caret(block_id, result.cursor_offset),
        action="list_item_split",
        details={"block_id": block_id, "line": line_index},
    )


def insert_newline(document: Document, block_id: str) -> Transition:
    """Append a literal newline to a block, caret at the new end."""
    text = document.text_of(block_id) + "\n"
    return Transition(
        document=document.with_text(block_id, text),
        focus=frozenset({block_id}),
        restore=PendingRestore.caret(block_id, len(text)),
        action="newline_inserted",
        details={"block_id": block_id},
    )


def merge_backward(document: Document, block_id: str) -> Optional[Transition]:
    """Merge a block into the one before it.

    Text is concatenated directly, except when both blocks are lists: then
    a newline keeps the last item of one and the first item of the other
    apart.

    Returns:
        Transition focusing the previous block with the caret at the join
        point, or None for the first block
    """
    previous = document.previous_id(block_id)
    if previous is None:
        return None

    previous_text = document.text_of(previous)
    current_text = document.text_of(block_id)
    separator = "\n" if is_list_block(previous_text) and is_list_block(current_text) else ""

    merged = document.with_text(previous, previous_text + separator + current_text).without(block_id)
    return Transition(
        document=merged,
        focus=frozenset({previous}),
        restore=PendingRestore.caret(previous, len(previous_text)),
        action="block_merged",
        details={"block_id": block_id, "into": previous, "list_join": bool(separator)},
    )


def delete_block(document: Document, block_id: str, keep_last: bool = True) -> Optional[Transition]:
    """Remove a block entirely.

    Focus moves to the block now at the same position (caret at its start)
    or, when the last block was removed, to the new last block (caret at
    its end).

    Args:
        document: Current document
        block_id: Block to remove
        keep_last: Refuse to remove the only block of the document

    Returns:
        Transition, or None when the deletion is refused
    """
    if keep_last and len(document) == 1:
        return None

    index = document.index_of(block_id)
    remaining = document.without(block_id)

    if index < len(remaining):
        target = remaining.order[index]
        restore = PendingRestore.caret(target, 0)
    elif index > 0:
        target = remaining.order[index - 1]
        restore = PendingRestore.block_end(target)
    else:
        return Transition(document=remaining, focus=frozenset(), action="block_deleted",
                          details={"block_id": block_id})

    return Transition(
        document=remaining,
        focus=frozenset({target}),
        restore=restore,
        action="block_deleted",
        details={"block_id": block_id, "focus": target},
    )


def wrap_inline(
    document: Document,
    block_id: str,
    start: int,
    end: int,
    marker: str,
    focus: AbstractSet[str],
) -> Optional[Transition]:
    """Wrap text[start:end] of a block in an inline marker pair.

    The selection is restored around the same text, now inside the markers.

    Returns:
        Transition, or None for an empty range
    """
    text = document.text_of(block_id)
    start, end = max(0, start), min(end, len(text))
    if start >= end or not marker:
        return None

    wrapped = text[:start] + marker + text[start:end] + marker + text[end:]
    return Transition(
        document=document.with_text(block_id, wrapped),
        focus=frozenset(focus) | {block_id},
        restore=PendingRestore.selection(block_id, start + len(marker), end + len(marker)),
        action="inline_marker_applied",
        details={"block_id": block_id, "marker": marker},
    )
