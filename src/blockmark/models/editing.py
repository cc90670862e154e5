"""Editing-session models: input events, pointer reference, deferred restores."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from blockmark.models.document import Document


class KeyEvent(BaseModel):
    """A key press delivered by the host."""

    key: str = Field(
        ...,
        description="Key name as reported by the host ('Enter', 'Backspace', 'Delete', 'a', ...)"
    )

    shift: bool = Field(
        default=False,
        description="Whether the line-break modifier (Shift) was held"
    )

    model_config = {"frozen": True}


class CursorRef(BaseModel):
    """Surface coordinate of the most recent pointer-down."""

    x: int = Field(..., description="Horizontal surface coordinate")
    y: int = Field(..., description="Vertical surface coordinate")

    model_config = {"frozen": True}


class RestoreKind(str, Enum):
    """How a deferred restoration places the caret."""

    CARET = "caret"          # collapsed caret at `start`
    SELECTION = "selection"  # select from `start` to `end`
    END = "end"              # collapsed caret at the end of the block
    POINT = "point"          # caret under the last pointer coordinate


@dataclass(frozen=True)
class PendingRestore:
    """Cursor placement to perform once the next render is on screen.

    Holds a block id and offsets only, never node handles: mounting a new
    render replaces every node, so the block is looked up again by id.
    """

    block_id: str
    kind: RestoreKind = RestoreKind.CARET
    start: int = 0
    end: Optional[int] = None
    end_block_id: Optional[str] = None  # selection ending in another block
    point: Optional[CursorRef] = None

    @classmethod
    def caret(cls, block_id: str, offset: int) -> "PendingRestore":
        return cls(block_id=block_id, kind=RestoreKind.CARET, start=offset)

    @classmethod
    def selection(cls, block_id: str, start: int, end: int) -> "PendingRestore":
        return cls(block_id=block_id, kind=RestoreKind.SELECTION, start=start, end=end)

    @classmethod
    def span(cls, block_id: str, start: int, end_block_id: str, end: int) -> "PendingRestore":
        return cls(
            block_id=block_id, kind=RestoreKind.SELECTION, start=start, end=end, end_block_id=end_block_id
        )

    @classmethod
    def block_end(cls, block_id: str) -> "PendingRestore":
        return cls(block_id=block_id, kind=RestoreKind.END)

    @classmethod
    def from_point(cls, block_id: str, point: CursorRef) -> "PendingRestore":
        return cls(block_id=block_id, kind=RestoreKind.POINT, point=point)


@dataclass(frozen=True)
class Transition:
    """Outcome of a structural edit.

    Attributes:
        document: The new Document snapshot
        focus: Edit focus set after the edit
        restore: Cursor placement to perform after the next render
        action: Short name of the edit, for logging
    """

    document: Document
    focus: frozenset[str]
    restore: Optional[PendingRestore] = None
    action: str = "edit"
    details: dict = field(default_factory=dict)
