"""Unit tests for the Document model."""

import pytest
from pydantic import ValidationError

from blockmark.models.document import Document
from blockmark.services.exceptions import DocumentIntegrityError


class TestDocumentConstruction:
    """Test building documents."""

    def test_from_markdown(self, ids):
        """Test that raw Markdown is segmented and given fresh ids."""
        document = Document.from_markdown("# Title\nbody\n\nmore", ids)

        assert document.order == ("b1", "b2", "b3")
        assert document.texts() == ["# Title", "body", "more"]

    def test_empty_input_has_one_empty_block(self, ids):
        """Test that a document always has a block to type into."""
        document = Document.from_markdown("\n\n  \n", ids)

        assert len(document) == 1
        assert document.texts() == [""]

    def test_from_texts(self, ids):
        """Test building from explicit block sources."""
        document = Document.from_texts(["a", "", "c"], ids)

        assert document.items() == [("b1", "a"), ("b2", ""), ("b3", "c")]

    def test_duplicate_order_rejected(self):
        """Test that an id may appear only once in the order."""
        with pytest.raises(ValidationError, match="duplicate"):
            Document(blocks={"a": "x"}, order=("a", "a"))

    def test_unknown_order_id_rejected(self):
        """Test that every ordered id needs a block."""
        with pytest.raises(ValidationError, match="unknown ids"):
            Document(blocks={"a": "x"}, order=("a", "b"))

    def test_orphaned_block_rejected(self):
        """Test that every block must be ordered."""
        with pytest.raises(ValidationError, match="missing from order"):
            Document(blocks={"a": "x", "b": "y"}, order=("a",))

    def test_validation_error_is_value_error(self):
        """Test that invariant violations surface as ValueError."""
        with pytest.raises(ValueError):
            Document(blocks={}, order=("a",))

    def test_document_immutable(self, ids):
        """Test that Document is frozen."""
        document = Document.from_markdown("a", ids)

        with pytest.raises(Exception):  # Pydantic ValidationError
            document.order = ()


class TestDocumentQueries:
    """Test read access."""

    @pytest.fixture
    def document(self, ids):
        return Document.from_texts(["one", "two", "three"], ids)

    def test_text_of(self, document):
        """Test looking up block source."""
        assert document.text_of("b2") == "two"

    def test_text_of_unknown_id(self, document):
        """Test that unknown ids raise DocumentIntegrityError."""
        with pytest.raises(DocumentIntegrityError, match="Unknown block id: nope") as exc_info:
            document.text_of("nope")

        assert exc_info.value.block_id == "nope"

    def test_index_of(self, document):
        """Test position lookup."""
        assert document.index_of("b3") == 2

        with pytest.raises(DocumentIntegrityError):
            document.index_of("nope")

    def test_neighbours(self, document):
        """Test previous/following lookups at both ends."""
        assert document.previous_id("b1") is None
        assert document.previous_id("b2") == "b1"
        assert document.following_id("b2") == "b3"
        assert document.following_id("b3") is None

    def test_contains_and_len(self, document):
        """Test membership and size."""
        assert "b1" in document
        assert "b9" not in document
        assert len(document) == 3

    def test_to_markdown(self, document):
        """Test that blocks are joined with blank lines."""
        assert document.to_markdown() == "one\n\ntwo\n\nthree"


class TestDocumentEdits:
    """Test copy-on-write edits."""

    @pytest.fixture
    def document(self, ids):
        return Document.from_texts(["one", "two", "three"], ids)

    def test_with_text(self, document):
        """Test replacing one block's source."""
        updated = document.with_text("b2", "TWO")

        assert updated.texts() == ["one", "TWO", "three"]
        assert document.texts() == ["one", "two", "three"]

    def test_with_text_unchanged_returns_same_document(self, document):
        """Test that a no-op edit returns the same snapshot."""
        assert document.with_text("b2", "two") is document

    def test_with_text_unknown_id(self, document):
        """Test that edits to unknown blocks raise."""
        with pytest.raises(DocumentIntegrityError):
            document.with_text("nope", "x")

    def test_splice_in_place(self, document):
        """Test replacing a block by a run of blocks at its position."""
        updated = document.splice("b2", [("b2", "two-a"), ("x1", "two-b")])

        assert updated.order == ("b1", "b2", "x1", "b3")
        assert updated.texts() == ["one", "two-a", "two-b", "three"]

    def test_without(self, document):
        """Test removing a block from both mapping and order."""
        updated = document.without("b1")

        assert updated.order == ("b2", "b3")
        assert "b1" not in updated.blocks
