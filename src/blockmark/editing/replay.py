"""Replay scripted edits through a BlockEditor on an in-memory surface.

A script is a YAML list of steps, applied in order. Block indices refer to
the document order at the time the step runs.

    - edit: [0, 5]                # source view of block 0, caret at offset 5
    - type: " again"              # insert text at the caret
    - key: Enter                  # Enter, Shift+Enter, Backspace, Delete
    - select: [[1, 0], [1, 4]]    # select from (block, offset) to (block, offset)
    - bold                        # or: italic
    - blur                        # commit and leave edit mode

The surface is repainted after every step that changes what it shows.
"""

from pathlib import Path
from typing import Any, Optional

import yaml

from blockmark.editing.editor import BlockEditor
from blockmark.models.config import EditorConfig
from blockmark.models.document import Document
from blockmark.models.editing import KeyEvent
from blockmark.services.exceptions import ReplayError
from blockmark.surface.memory import MemorySurface
from blockmark.utils.logging import get_logger

logger = get_logger(__name__)

KEYS = ("Enter", "Backspace", "Delete")
SHIFT_PREFIX = "Shift+"


def load_script(path: Path) -> list:
    """Read an edit script.

    Raises:
        ReplayError: If the file is not YAML or not a list of steps
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            steps = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ReplayError(f"Invalid YAML in {path}: {e}") from e

    if steps is None:
        return []
    if not isinstance(steps, list):
        raise ReplayError(f"Script must be a list of steps, got {type(steps).__name__}")
    return steps


def open_session(document: Document, config: Optional[EditorConfig] = None) -> BlockEditor:
    """Create a painted editor over a fresh in-memory surface."""
    editor = BlockEditor(document, MemorySurface(), config=config)
    editor.paint()
    return editor


def _parse_step(step: Any) -> tuple[str, Any]:
    if isinstance(step, str):
        return step, None
    if isinstance(step, dict) and len(step) == 1:
        ((name, argument),) = step.items()
        return str(name), argument
    raise ReplayError(f"Invalid step {step!r}")


def _block_id(editor: BlockEditor, index: Any) -> str:
    order = editor.document.order
    if not isinstance(index, int) or not 0 <= index < len(order):
        raise ReplayError(f"block index {index!r} out of range (document has {len(order)} blocks)")
    return order[index]


def _location(editor: BlockEditor, argument: Any) -> tuple[str, int]:
    if not isinstance(argument, list) or len(argument) != 2 or not isinstance(argument[1], int):
        raise ReplayError(f"Expected [block, offset], got {argument!r}")
    return _block_id(editor, argument[0]), argument[1]


def _key_event(argument: Any) -> KeyEvent:
    name = str(argument)
    shift = name.startswith(SHIFT_PREFIX)
    if shift:
        name = name[len(SHIFT_PREFIX):]
    if name not in KEYS:
        raise ReplayError(f"Unsupported key {argument!r} (expected one of {', '.join(KEYS)})")
    return KeyEvent(key=name, shift=shift)


def apply_step(editor: BlockEditor, step: Any) -> None:
    """Apply one script step and repaint when needed.

    Raises:
        ReplayError: If the step is malformed or cannot be carried out
    """
    name, argument = _parse_step(step)
    surface = editor.surface

    if name == "edit":
        block_id, offset = _location(editor, argument)
        surface.place_caret(block_id, 0)
        editor.focus_in()
        if editor.needs_paint:
            editor.paint()
        surface.place_caret(block_id, offset)
    elif name == "select":
        if not isinstance(argument, list) or len(argument) != 2:
            raise ReplayError(f"Expected [[block, offset], [block, offset]], got {argument!r}")
        surface.select_range(_location(editor, argument[0]), _location(editor, argument[1]))
        editor.selection_change()
    elif name == "type":
        try:
            surface.insert_text(str(argument))
        except ValueError as e:
            raise ReplayError(str(e)) from e
    elif name == "key":
        event = _key_event(argument)
        if not editor.key_down(event):
            logger.debug("replay_key_not_handled", key=event.key, shift=event.shift)
    elif name in ("bold", "italic"):
        if not getattr(editor, name)():
            logger.debug("replay_marker_not_applied", marker=name)
    elif name == "blur":
        editor.blur()
    else:
        raise ReplayError(f"Unknown step {name!r}")

    if editor.needs_paint:
        editor.paint()


def run_script(editor: BlockEditor, steps: list) -> BlockEditor:
    """Apply every step of a script, then commit and leave edit mode.

    Raises:
        ReplayError: Naming the 1-based number of the failing step
    """
    for number, step in enumerate(steps, start=1):
        try:
            apply_step(editor, step)
        except ReplayError as e:
            logger.error("replay_step_failed", step=number, error=e.message)
            raise ReplayError(e.message, step=number) from e

    editor.blur()
    if editor.needs_paint:
        editor.paint()
    logger.info("script_replayed", steps=len(steps), blocks=len(editor.document))
    return editor
