"""Tests for Portable Text conversion and its plain-text fallback."""

import pytest
from markupsafe import Markup

from conftest import make_block
from publish_spine.core.errors import RenderError
from publish_spine.core.result import Err, Ok
from publish_spine.render import richtext
from publish_spine.render.richtext import plain_text_runs, render_rich_text, rich_text_html


class ExplodingRenderer:
    def __init__(self, blocks):
        self.blocks = blocks

    def render(self):
        raise KeyError("unknown block type: chart")


class TestRenderRichText:
    @pytest.mark.parametrize("blocks", [None, [], "not blocks", {"_type": "block"}])
    def test_empty_or_invalid_is_empty_html(self, blocks):
        assert render_rich_text(blocks) == Ok("")

    def test_paragraph(self):
        html = render_rich_text([make_block("Hello there")]).value
        assert "<p>" in html
        assert "Hello there" in html

    def test_converter_failure_is_render_error(self, monkeypatch):
        monkeypatch.setattr(richtext, "PortableTextRenderer", ExplodingRenderer)
        result = render_rich_text([make_block("x")])
        assert isinstance(result, Err)
        assert isinstance(result.error, RenderError)
        assert isinstance(result.error.cause, KeyError)


class TestPlainTextRuns:
    def test_concatenates_span_text(self):
        blocks = [make_block("One. "), {"_type": "image"}, make_block("Two.")]
        assert plain_text_runs(blocks) == "One. Two."

    def test_ignores_junk(self):
        assert plain_text_runs([None, "x", {"children": [None, {"text": ""}]}]) == ""
        assert plain_text_runs(None) == ""


class TestRichTextHtml:
    def test_returns_markup(self):
        assert isinstance(rich_text_html([make_block("Hi")]), Markup)

    def test_fallback_escapes_plain_text(self, monkeypatch):
        monkeypatch.setattr(richtext, "PortableTextRenderer", ExplodingRenderer)
        html = rich_text_html([make_block("Profit <& loss>")], field="reasons", document_id="r1")
        assert str(html) == "Profit &lt;&amp; loss&gt;"

    def test_missing_field_is_empty(self):
        assert str(rich_text_html(None)) == ""
