"""Editing state machine driving a host surface.

`BlockEditor` owns the Document, the edit focus set, the last pointer
coordinate and the queue of deferred cursor restorations. The host feeds it
events; structural edits are computed by the pure functions in
`blockmark.editing.transitions` and applied here.

A typical host loop:

    editor = BlockEditor(text, surface)
    editor.paint()
    ...
    editor.pointer_down(x, y)
    editor.focus_in()
    editor.paint()
    ...
    if editor.key_down(KeyEvent(key="Enter")):
        editor.paint()
"""

from typing import AbstractSet, Iterable, NamedTuple, Optional, Union

from bs4 import Tag

from blockmark.blocks.lists import is_list_block, locate_line
from blockmark.editing.transitions import (
    delete_block,
    insert_newline,
    merge_backward,
    split_block,
    split_list_item,
    wrap_inline,
)
from blockmark.models.config import EditorConfig
from blockmark.models.document import Document, SupportsNextId
from blockmark.models.editing import CursorRef, KeyEvent, PendingRestore, RestoreKind, Transition
from blockmark.rendering.markdown import (
    MarkdownRenderer,
    MarkdownSerializer,
    Renderer,
    Serializer,
    is_source_view,
    safe_serialize,
)
from blockmark.rendering.projection import project_document
from blockmark.surface.cursor import (
    block_text,
    containing_block,
    find_block,
    is_at_block_start,
    is_empty_block,
    iter_blocks,
    line_at,
    offset_to_position,
    point_to_position,
    position_to_offset,
    relocate_text,
    selection_offsets,
)
from blockmark.surface.host import HostSurface, Position, Selection
from blockmark.utils.ids import IdGenerator
from blockmark.utils.logging import get_logger

logger = get_logger(__name__)

BOLD_MARKER = "**"
ITALIC_MARKER = "*"


class _Caret(NamedTuple):
    """Where the caret is, resolved against the mounted tree."""

    block: Tag
    block_id: str
    position: Position
    offset: int
    selection: Selection


class BlockEditor:
    """Block-structured hybrid Markdown editor.

    Blocks in the edit focus set are shown as Markdown source, all others
    rendered. Every change of the focus set first commits the live content
    of the focused blocks back into the Document; the next paint
    re-renders every block from it.

    Args:
        document: A Document, or raw Markdown to segment into one
        surface: Host surface to render into and read the cursor from
        renderer: Markdown-to-HTML renderer (default: MarkdownRenderer)
        serializer: Block-element-to-Markdown serializer (default: MarkdownSerializer)
        ids: Block id generator (default: IdGenerator)
        config: Editor configuration (default: EditorConfig())
    """

    def __init__(
        self,
        document: Union[Document, str],
        surface: HostSurface,
        renderer: Optional[Renderer] = None,
        serializer: Optional[Serializer] = None,
        ids: Optional[SupportsNextId] = None,
        config: Optional[EditorConfig] = None,
    ):
        self.config = config or EditorConfig()
        self.ids = ids or IdGenerator(length=self.config.editing.id_length)

        if isinstance(document, str):
            document = Document.from_markdown(document, self.ids)
        elif isinstance(self.ids, IdGenerator):
            self.ids.reserve(document.order)

        self.document = document
        self.surface = surface
        self.renderer = renderer or MarkdownRenderer(self.config.renderer)
        self.serializer = serializer or MarkdownSerializer(self.config.serializer)

        self.focus: frozenset[str] = frozenset()
        self.last_click: Optional[CursorRef] = None
        self.pending: list[PendingRestore] = []

        # True while the surface shows an older state than the editor holds
        self._stale = True

        logger.info("editor_created", blocks=len(self.document))

    @property
    def markdown(self) -> str:
        """The whole document as Markdown."""
        return self.document.to_markdown()

    @property
    def needs_paint(self) -> bool:
        return self._stale

    # Painting

    def render(self) -> str:
        """Project the current Document and focus set into surface markup."""
        return project_document(self.document, self.focus, self.renderer)

    def paint(self) -> None:
        """Mount a fresh render on the surface, then run queued restorations."""
        self.surface.mount(self.render())
        self._stale = False
        self.after_paint()

    def after_paint(self) -> None:
        """Drain the restoration queue against the freshly mounted tree.

        Blocks are looked up again by id: node handles from before the
        mount no longer exist. A restoration whose block is gone is dropped.
        """
        pending, self.pending = self.pending, []
        for restore in pending:
            block = find_block(self.surface.root, restore.block_id)
            if block is None:
                logger.debug("restore_target_missing", block_id=restore.block_id, kind=restore.kind.value)
                continue
            self._restore(block, restore)

    def _restore(self, block: Tag, restore: PendingRestore) -> None:
        if restore.kind == RestoreKind.CARET:
            self.surface.set_selection(offset_to_position(block, restore.start))
        elif restore.kind == RestoreKind.SELECTION:
            end_block = block
            if restore.end_block_id is not None:
                end_block = find_block(self.surface.root, restore.end_block_id)
                if end_block is None:
                    logger.debug("restore_target_missing", block_id=restore.end_block_id, kind=restore.kind.value)
                    return
            end = restore.start if restore.end is None else restore.end
            self.surface.set_selection(
                offset_to_position(block, restore.start),
                offset_to_position(end_block, end),
            )
        elif restore.kind == RestoreKind.END:
            self.surface.set_selection(offset_to_position(block, len(block_text(block))))
        elif restore.kind == RestoreKind.POINT and restore.point is not None:
            position = point_to_position(self.surface, restore.point.x, restore.point.y)
            if position is None or containing_block(position.node) is not block:
                logger.debug("cursor_unresolved", block_id=restore.block_id, x=restore.point.x, y=restore.point.y)
                return
            self.surface.set_selection(position)

    # Focus and commits

    def _commit(self, block_ids: Iterable[str]) -> None:
        """Serialize live block content back into the Document.

        Skipped while a paint is pending: the surface then shows an older
        state and the Document is authoritative.
        """
        if self._stale:
            return

        document = self.document
        for block_id in block_ids:
            if block_id not in document:
                continue
            node = find_block(self.surface.root, block_id)
            if node is None:
                continue
            document = document.with_text(block_id, safe_serialize(self.serializer, node))

        if document is not self.document:
            logger.debug("blocks_committed", changed=[i for i in document.order if document.blocks[i] != self.document.blocks.get(i)])
            self.document = document

    def _set_focus(self, focus: AbstractSet[str], restore: Optional[PendingRestore] = None) -> None:
        # Every block is re-rendered from the Document, staying ones included
        self._commit(self.focus)
        self.focus = self._prune(focus)
        if restore is not None:
            self.pending.append(restore)
        self._stale = True

    def _prune(self, focus: AbstractSet[str]) -> frozenset[str]:
        return frozenset(block_id for block_id in focus if block_id in self.document)

    def _apply(self, transition: Transition) -> None:
        self.document = transition.document
        self.focus = self._prune(transition.focus)
        if transition.restore is not None:
            self.pending.append(transition.restore)
        self._stale = True
        logger.info(transition.action, **transition.details)

    # Host events

    def pointer_down(self, x: int, y: int) -> None:
        """Record a pointer-down coordinate, committing the focused block first."""
        self._commit(self.focus)
        self.last_click = CursorRef(x=x, y=y)

    def focus_in(self) -> None:
        """Move the edit focus to the block holding the selection anchor.

        The caret is put back under the last pointer coordinate once the
        block has been re-rendered in source view.
        """
        selection = self.surface.get_selection()
        block = containing_block(selection.anchor.node) if selection else None
        block_id = block.get("id") if block is not None else None
        if block_id is None or block_id not in self.document:
            logger.debug("cursor_unresolved", trigger="focus_in")
            return
        if block_id in self.focus:
            return

        if self.last_click is not None:
            restore = PendingRestore.from_point(block_id, self.last_click)
        else:
            restore = PendingRestore.block_end(block_id)
        self._set_focus(frozenset({block_id}), restore)
        logger.debug("focus_moved", block_id=block_id)

    def blur(self) -> None:
        """Commit every focused block and leave edit mode."""
        if not self.focus:
            return
        self._set_focus(frozenset())

    def selection_change(self) -> None:
        """Follow the host selection with the edit focus set.

        A collapsed caret focuses exactly its block; a range focuses every
        block it touches.
        """
        selection = self.surface.get_selection()
        if selection is None:
            return

        if selection.is_collapsed:
            block = containing_block(selection.anchor.node)
            if block is None or block.get("id") not in self.document:
                return
            block_id = block["id"]
            focus = frozenset({block_id})
            if focus == self.focus:
                return
            restore = None
            if block_id in self.focus:
                offset = position_to_offset(block, *selection.anchor)
                if offset is not None:
                    restore = PendingRestore.caret(block_id, offset)
            elif self.last_click is not None:
                restore = PendingRestore.from_point(block_id, self.last_click)
            self._set_focus(focus, restore)
            return

        focus = frozenset(
            block["id"]
            for block in iter_blocks(self.surface.root)
            if block["id"] in self.document and self.surface.intersects(selection, block)
        )
        if focus and focus != self.focus:
            self._set_focus(focus, self._range_restore(selection))
            logger.debug("focus_expanded", blocks=len(focus))

    def _range_restore(self, selection: Selection) -> Optional[PendingRestore]:
        """Express a ranged selection in source offsets for the next render.

        Source-view ends map directly. Rendered ends are found again by
        searching the covered rendered text in the block source; an end that
        cannot be found there falls back to the block boundary it covers.
        """
        start, end = selection.anchor, selection.focus
        start_block = containing_block(start.node)
        end_block = containing_block(end.node)
        if start_block is None or end_block is None:
            return None
        if start_block.get("id") not in self.document or end_block.get("id") not in self.document:
            return None

        if start_block is end_block:
            offsets = selection_offsets(start_block, selection)
            if offsets is None:
                return None
            if not is_source_view(start_block):
                offsets = relocate_text(
                    self.document.text_of(start_block["id"]), block_text(start_block), *offsets
                )
                if offsets is None:
                    logger.debug("selection_not_relocated", block_id=start_block["id"])
                    return None
            return PendingRestore.selection(start_block["id"], *offsets)

        order = self.document.order
        if order.index(start_block["id"]) > order.index(end_block["id"]):
            start, end = end, start
            start_block, end_block = end_block, start_block

        start_offset = self._source_offset(start_block, start, covers="after")
        end_offset = self._source_offset(end_block, end, covers="before")
        if start_offset is None or end_offset is None:
            return None
        return PendingRestore.span(start_block["id"], start_offset, end_block["id"], end_offset)

    def _source_offset(self, block: Tag, position: Position, covers: str) -> Optional[int]:
        """Source offset of one end of a cross-block selection.

        `covers` says which part of the block the selection takes in:
        "after" the position (the range starts here) or "before" it.
        """
        offset = position_to_offset(block, *position)
        if offset is None or is_source_view(block):
            return offset

        source = self.document.text_of(block["id"])
        rendered = block_text(block)
        if covers == "after":
            found = relocate_text(source, rendered, offset, len(rendered))
            return found[0] if found else (len(source) if not rendered[offset:].strip() else 0)
        found = relocate_text(source, rendered, 0, offset)
        return found[1] if found else (0 if not rendered[:offset].strip() else len(source))

    def key_down(self, event: KeyEvent) -> bool:
        """Handle a key press.

        Returns:
            True when the editor handled the key (the host must suppress its
            default action), False to let the host default proceed
        """
        if event.key not in ("Enter", "Backspace", "Delete"):
            return False

        caret = self._caret()
        if caret is None:
            logger.debug("cursor_unresolved", trigger="key_down", key=event.key)
            return False

        if event.key == "Enter":
            return self._enter(caret, event.shift)
        return self._delete(caret, event.key)

    def _caret(self) -> Optional[_Caret]:
        """Resolve the caret to a source-view block and a block offset."""
        if self._stale:
            return None
        selection = self.surface.get_selection()
        if selection is None:
            return None

        block = containing_block(selection.focus.node)
        if block is None or block.get("id") not in self.document or not is_source_view(block):
            return None

        offset = position_to_offset(block, *selection.focus)
        if offset is None:
            return None

        # Bring the Document up to date with what has been typed
        self._commit([block["id"]])
        return _Caret(block, block["id"], selection.focus, offset, selection)

    def _enter(self, caret: _Caret, shift: bool) -> bool:
        if shift:
            self._apply(insert_newline(self.document, caret.block_id))
            return True

        text = self.document.text_of(caret.block_id)
        if is_list_block(text):
            transition = self._split_list(caret, text)
            if transition is not None:
                self._apply(transition)
                return True

        self._apply(split_block(self.document, caret.block_id, caret.offset, self.ids))
        return True

    def _split_list(self, caret: _Caret, text: str) -> Optional[Transition]:
        lines = text.split("\n")
        offset = min(caret.offset, len(text))

        line_index = column = None
        rendered = line_at(caret.block, caret.position.node)
        if rendered is not None:
            line_index = locate_line(lines, rendered.source, hint=rendered.index)
            if line_index is not None:
                column = position_to_offset(rendered.element, *caret.position)

        if line_index is None or column is None:
            line_index = text.count("\n", 0, offset)
            column = offset - (text.rfind("\n", 0, offset) + 1)

        return split_list_item(self.document, caret.block_id, line_index, column)

    def _delete(self, caret: _Caret, key: str) -> bool:
        if is_empty_block(caret.block) or not self.document.text_of(caret.block_id):
            transition = delete_block(self.document, caret.block_id, keep_last=self.config.editing.keep_last_block)
            if transition is None:
                logger.debug("delete_refused", block_id=caret.block_id, reason="last_block")
                return True
            self._apply(transition)
            return True

        if key != "Backspace" or not caret.selection.is_collapsed:
            return False
        if not is_at_block_start(caret.block, *caret.position):
            return False

        transition = merge_backward(self.document, caret.block_id)
        if transition is None:
            return False
        self._apply(transition)
        return True

    # Commands

    def apply_inline_marker(self, marker: str) -> bool:
        """Wrap the selected text of one source-view block in `marker`.

        Returns:
            True when the marker was applied
        """
        selection = self.surface.get_selection()
        if self._stale or selection is None or selection.is_collapsed:
            return False

        block = containing_block(selection.anchor.node)
        if block is None or containing_block(selection.focus.node) is not block:
            logger.debug("inline_marker_ignored", reason="selection_spans_blocks")
            return False
        if block.get("id") not in self.document or not is_source_view(block):
            logger.debug("inline_marker_ignored", reason="block_not_in_source_view")
            return False

        offsets = selection_offsets(block, selection)
        if offsets is None:
            logger.debug("cursor_unresolved", trigger="apply_inline_marker")
            return False

        self._commit([block["id"]])
        transition = wrap_inline(self.document, block["id"], *offsets, marker, self.focus)
        if transition is None:
            return False
        self._apply(transition)
        return True

    def bold(self) -> bool:
        return self.apply_inline_marker(BOLD_MARKER)

    def italic(self) -> bool:
        return self.apply_inline_marker(ITALIC_MARKER)
