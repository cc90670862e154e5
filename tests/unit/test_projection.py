"""Unit tests for the render projection."""

from bs4 import BeautifulSoup

from blockmark.models.document import Document
from blockmark.rendering.projection import (
    project_block,
    project_document,
    render_rendered_view,
    render_source_line,
    render_source_view,
)
from blockmark.surface.cursor import NBSP, PLACEHOLDER


class TestSourceView:
    """Test rendering blocks as editable source."""

    def test_plain_line(self):
        """Test that ordinary text is escaped and otherwise untouched."""
        assert render_source_line("a <b> & c") == "a &lt;b&gt; &amp; c"

    def test_leading_spaces_become_nbsp(self):
        """Test that indentation survives rendering with the same length."""
        assert render_source_line("  - nested") == f"{NBSP}{NBSP}- nested"

    def test_empty_line_gets_placeholder(self):
        """Test that empty rows stay addressable."""
        assert render_source_line("") == PLACEHOLDER

    def test_marker_only_line(self):
        """Test that an empty list item keeps its trailing space and gets a placeholder."""
        assert render_source_line("- ") == f"-{NBSP}{PLACEHOLDER}"
        assert render_source_line("  1. ") == f"{NBSP}{NBSP}1.{NBSP}{PLACEHOLDER}"

    def test_rows_joined_by_line_breaks(self):
        """Test one span per line, separated by <br>."""
        soup = BeautifulSoup(render_source_view("one\n\ntwo"), "html.parser")
        spans = soup.find_all("span")

        assert [span["data-line"] for span in spans] == ["one", "", "two"]
        assert len(soup.find_all("br")) == 2

    def test_data_line_escaped(self):
        """Test that quotes in a line survive the attribute."""
        soup = BeautifulSoup(render_source_view('say "hi"'), "html.parser")
        assert soup.find("span")["data-line"] == 'say "hi"'


class TestRenderedView:
    """Test rendering blocks through the renderer."""

    def test_bookmark(self, renderer):
        """Test that '// ' blocks become bookmarks."""
        assert render_rendered_view("// Chapter 1", renderer) == (
            '<div class="m2-bookmark">Chapter 1<hr></div>'
        )

    def test_void_first_element_wrapped(self, renderer):
        """Test that a lone <hr> is wrapped in a <div>."""
        markup = render_rendered_view("---", renderer)

        assert markup.startswith("<div><hr")
        assert markup.endswith("</div>")

    def test_regular_markup_not_wrapped(self, renderer):
        """Test that normal output is passed through."""
        assert render_rendered_view("text", renderer) == "<p>text</p>\n"

    def test_renderer_failure_falls_back(self):
        """Test that a broken renderer still yields markup."""

        def broken(text):
            raise RuntimeError("boom")

        assert render_rendered_view("x", broken) == "<p>x</p>"


class TestProjectBlock:
    """Test block containers."""

    def test_edit_mode_container(self, renderer):
        """Test the source-view container attributes."""
        soup = BeautifulSoup(project_block("b1", "**x**", True, renderer), "html.parser")
        block = soup.find(id="b1")

        assert block["class"] == ["m2-block", "m2-edit-mode"]
        assert block["contenteditable"] == "true"
        assert block.get_text() == "**x**"

    def test_rendered_container(self, renderer):
        """Test the rendered-view container attributes."""
        soup = BeautifulSoup(project_block("b1", "**x**", False, renderer), "html.parser")
        block = soup.find(id="b1")

        assert block["class"] == ["m2-block"]
        assert block.find("strong").get_text() == "x"


class TestProjectDocument:
    """Test whole-document projection."""

    def test_focus_selects_source_view(self, ids, renderer):
        """Test that only focused blocks are shown as source."""
        document = Document.from_texts(["# Title", "*a*", "b"], ids)
        soup = BeautifulSoup(project_document(document, {"b2"}, renderer), "html.parser")

        root = soup.find(id="m2-doc")
        blocks = root.find_all(class_="m2-block")
        assert [block["id"] for block in blocks] == ["b1", "b2", "b3"]
        assert [("m2-edit-mode" in block["class"]) for block in blocks] == [False, True, False]
        assert blocks[0].find("h1") is not None
        assert blocks[1].get_text() == "*a*"
