"""Document model: block sources keyed by id plus their ordering."""

from collections import Counter
from typing import Iterable, Optional, Protocol

from pydantic import BaseModel, Field, model_validator

from blockmark.blocks.segmenter import join_blocks, segment
from blockmark.services.exceptions import DocumentIntegrityError


class SupportsNextId(Protocol):
    """Anything that hands out fresh block ids."""

    def next_id(self) -> str: ...


class Document(BaseModel):
    """Immutable block collection.

    `blocks` maps block id to Markdown source; its own order carries no
    meaning. `order` is the single source of truth for block sequence.
    Every id in `order` has exactly one entry in `blocks` and vice versa.

    All editing methods return a new Document and leave this one untouched,
    so any snapshot handed to a renderer stays valid.
    """

    blocks: dict[str, str] = Field(
        default_factory=dict,
        description="Block id to Markdown source"
    )

    order: tuple[str, ...] = Field(
        default=(),
        description="Block ids in document order"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_integrity(self) -> "Document":
        if len(set(self.order)) != len(self.order):
            duplicates = sorted(i for i, n in Counter(self.order).items() if n > 1)
            raise ValueError(f"Block order contains duplicate ids: {duplicates}")

        missing = [i for i in self.order if i not in self.blocks]
        if missing:
            raise ValueError(f"Block order references unknown ids: {missing}")

        orphaned = sorted(set(self.blocks) - set(self.order))
        if orphaned:
            raise ValueError(f"Blocks missing from order: {orphaned}")

        return self

    @classmethod
    def from_markdown(cls, text: str, ids: SupportsNextId) -> "Document":
        """Segment raw Markdown into a new Document.

        Input that holds no blocks at all produces a single empty block so
        an editor always has somewhere to put the caret.

        Args:
            text: Raw Markdown
            ids: Id generator for the new blocks

        Returns:
            New Document
        """
        sources = segment(text) or [""]
        return cls.from_texts(sources, ids)

    @classmethod
    def from_texts(cls, texts: Iterable[str], ids: SupportsNextId) -> "Document":
        """Build a Document from block sources, assigning fresh ids."""
        entries = [(ids.next_id(), text) for text in texts]
        return cls(blocks=dict(entries), order=tuple(i for i, _ in entries))

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self.blocks

    def text_of(self, block_id: str) -> str:
        """Return the source text of a block.

        Raises:
            DocumentIntegrityError: If the block does not exist
        """
        try:
            return self.blocks[block_id]
        except KeyError:
            raise DocumentIntegrityError(block_id) from None

    def index_of(self, block_id: str) -> int:
        """Return the position of a block in document order.

        Raises:
            DocumentIntegrityError: If the block does not exist
        """
        try:
            return self.order.index(block_id)
        except ValueError:
            raise DocumentIntegrityError(block_id) from None

    def previous_id(self, block_id: str) -> Optional[str]:
        """Return the id preceding `block_id`, or None for the first block."""
        index = self.index_of(block_id)
        return self.order[index - 1] if index > 0 else None

    def following_id(self, block_id: str) -> Optional[str]:
        """Return the id following `block_id`, or None for the last block."""
        index = self.index_of(block_id)
        return self.order[index + 1] if index + 1 < len(self.order) else None

    def texts(self) -> list[str]:
        """Return block sources in document order."""
        return [self.blocks[i] for i in self.order]

    def items(self) -> list[tuple[str, str]]:
        """Return (id, source) pairs in document order."""
        return [(i, self.blocks[i]) for i in self.order]

    def with_text(self, block_id: str, text: str) -> "Document":
        """Return a copy with one block's source replaced."""
        if block_id not in self.blocks:
            raise DocumentIntegrityError(block_id)
        if self.blocks[block_id] == text:
            return self
        return Document(blocks={**self.blocks, block_id: text}, order=self.order)

    def splice(self, block_id: str, entries: list[tuple[str, str]]) -> "Document":
        """Replace one block by a run of blocks at the same position.

        The replaced id may itself appear in `entries` (typically first);
        every other block keeps its position relative to the others.

        Args:
            block_id: Block to replace
            entries: (id, source) pairs to put in its place

        Returns:
            New Document

        Raises:
            DocumentIntegrityError: If `block_id` does not exist
        """
        index = self.index_of(block_id)
        blocks = dict(self.blocks)
        del blocks[block_id]
        blocks.update(entries)
        order = self.order[:index] + tuple(i for i, _ in entries) + self.order[index + 1:]
        return Document(blocks=blocks, order=order)

    def without(self, block_id: str) -> "Document":
        """Return a copy with a block removed from both mapping and order."""
        return self.splice(block_id, [])

    def to_markdown(self) -> str:
        """Render the whole document as Markdown, one blank line between blocks."""
        return join_blocks(self.texts())
