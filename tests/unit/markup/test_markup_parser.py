"""Unit tests for markup.markup_parser module."""

import pytest

from notes_markdown.error_handling.errors import MarkupConversionError
from notes_markdown.markup.markup_parser import MarkupParser
from notes_markdown.markup.models import ElementTag

from tests.fixtures.sample_markup import MALFORMED_NOTE, MIXED_NOTE


@pytest.fixture
def parser():
    return MarkupParser()


class TestParse:
    """Test cases for MarkupParser.parse."""

    def test_empty_input(self, parser):
        assert parser.parse("") is None
        assert parser.parse("   \n ") is None

    def test_multiple_roots_wrapped(self, parser):
        root = parser.parse(MIXED_NOTE)

        assert root.tag is ElementTag.ROOT
        assert [child.tag for child in root.children] == [ElementTag.PARAGRAPH] * 5

    def test_attributes_and_order_preserved(self, parser):
        root = parser.parse('<Paragraph FontSize="23"><Run Text="a"/><Run Text="b"/></Paragraph>')

        paragraph = root.children[0]
        assert paragraph.get("FontSize") == "23"
        assert [run.get("Text") for run in paragraph.children] == ["a", "b"]

    def test_namespaces_and_prefixes_stripped(self, parser):
        markup = (
            '<x:Paragraph xmlns:x="urn:flow" x:FontSize="23">'
            '<x:Run Text="a:b c"/></x:Paragraph>'
        )

        paragraph = parser.parse(markup).children[0]

        assert paragraph.name == "Paragraph"
        assert paragraph.get("FontSize") == "23"
        assert paragraph.children[0].get("Text") == "a:b c"

    def test_html_entities_normalized(self, parser):
        root = parser.parse('<Paragraph><Run Text="caf&eacute; &nbsp;&amp; R&D &bogus;"/></Paragraph>')
        assert root.children[0].children[0].get("Text") == "café \xa0& R&D &bogus;"

    def test_control_characters_removed_before_parsing(self, parser):
        """A control character in one attribute does not break the whole fragment."""
        markup = (
            '<Paragraph FontSize="23"><Run Text="Title"/></Paragraph>'
            '<Paragraph><Run Text="bell\x07here\x0b"/></Paragraph>'
        )

        root = parser.parse(markup)

        assert root.children[0].get("FontSize") == "23"
        assert root.children[1].children[0].get("Text") == "bellhere"

    @pytest.mark.parametrize("reference", ["&#7;", "&#x1F;", "&#xFFFE;", "&#1114112;"])
    def test_illegal_character_references_dropped(self, parser, reference):
        root = parser.parse(f'<Paragraph><Run Text="bell{reference}here"/></Paragraph>')
        assert root.children[0].children[0].get("Text") == "bellhere"

    def test_legal_character_references_kept(self, parser):
        root = parser.parse('<Paragraph><Run Text="a&#9;b&#x41;"/></Paragraph>')
        assert root.children[0].children[0].get("Text") == "a\tbA"

    def test_element_text_content(self, parser):
        root = parser.parse("<Paragraph>Hello <Run>there</Run> friend</Paragraph>")

        paragraph = root.children[0]
        assert [child.tag for child in paragraph.children] == [
            ElementTag.TEXT, ElementTag.RUN, ElementTag.TEXT,
        ]
        assert paragraph.children[1].text == "there"
        assert paragraph.plain_text() == "Hello there friend"

    def test_unknown_elements_kept(self, parser):
        root = parser.parse('<Paragraph><Sticker Name="star"/></Paragraph>')

        sticker = root.children[0].children[0]
        assert sticker.tag is ElementTag.UNKNOWN
        assert sticker.extra_attributes == {"Name": "star"}

    def test_synonyms(self, parser):
        root = parser.parse('<UriLink Uri="https://a"/><UriMedia Uri="https://b"/><BlockUIContainer/>')
        assert [child.tag for child in root.children] == [
            ElementTag.HYPERLINK, ElementTag.MEDIA, ElementTag.BORDER,
        ]

    def test_malformed_raises(self, parser):
        with pytest.raises(MarkupConversionError) as exc_info:
            parser.parse(MALFORMED_NOTE)

        error = exc_info.value
        assert error.message.startswith("Malformed rich markup")
        assert error.snippet == MALFORMED_NOTE[:200]
        assert error.context.component == "MarkupParser"


class TestExtractPlainText:
    """Test cases for the plain-text fallback extractor."""

    def test_collects_text_attributes(self, parser):
        assert parser.extract_plain_text(MALFORMED_NOTE) == "Recovered line\n1. First step"

    def test_breaks_before_list_markers(self, parser):
        markup = '<Run Text="Steps: 1. mix 2. bake"/><Run Text="Buy* eggs"/>'
        assert parser.extract_plain_text(markup) == (
            "Steps: \n1. mix \n2. bake\nBuy\n* eggs"
        )

    def test_heading_lines_separated(self, parser):
        markup = '<Run Text="intro"/><Run Text="### Part two"/><Run Text="body"/>'
        assert parser.extract_plain_text(markup) == "intro\n\n\n### Part two\n\n\nbody"

    def test_decodes_entities(self, parser):
        assert parser.extract_plain_text('<Run Text="a &amp; b"/>') == "a & b"
