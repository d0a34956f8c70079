"""Unit tests for markup.classifier module."""

import pytest

from notes_markdown.config.models import ConverterConfig
from notes_markdown.markup.classifier import SemanticClassifier, parse_font_size
from notes_markdown.markup.models import Element


@pytest.fixture
def classifier():
    return SemanticClassifier(ConverterConfig())


def paragraph(attributes=None, *runs):
    return Element.create("Paragraph", attributes, [Element.create("Run", run) for run in runs])


class TestParseFontSize:
    """Test cases for parse_font_size."""

    @pytest.mark.parametrize("value,expected", [
        ("23", 23.0),
        ("10.5", 10.5),
        ("12pt", 12.0),
        ("", None),
        (None, None),
        ("large", None),
    ])
    def test_values(self, value, expected):
        assert parse_font_size(value) == expected


class TestHeadingLevel:
    """Test cases for heading detection from font sizes."""

    @pytest.mark.parametrize("size,level", [
        (30, 1), (23, 1), (22, 2), (21, 2), (19, 3), (17, 4), (15, 5), (13, 6), (12, 0), (None, 0),
    ])
    def test_breakpoints(self, classifier, size, level):
        assert classifier.heading_level_for_size(size) == level

    @pytest.mark.parametrize("size", range(0, 40))
    def test_every_integer_size_in_exactly_one_band(self, classifier, size):
        bands = {
            1: range(23, 40),
            2: range(21, 23),
            3: range(19, 21),
            4: range(17, 19),
            5: range(15, 17),
            6: range(13, 15),
            0: range(0, 13),
        }
        matching = [level for level, sizes in bands.items() if size in sizes]

        assert len(matching) == 1
        assert classifier.heading_level_for_size(size) == matching[0]

    def test_paragraph_size_wins(self, classifier):
        assert classifier.heading_level(paragraph({"FontSize": "19"}, {"Text": "x"})) == 3

    def test_first_run_dominates(self, classifier):
        """Only the first run is consulted; later large runs are ignored."""
        first_large = paragraph(None, {"FontSize": "23"}, {"FontSize": "11"})
        later_large = paragraph(None, {"FontSize": "11"}, {"FontSize": "23"})

        assert classifier.heading_level(first_large) == 1
        assert classifier.heading_level(later_large) == 0

    def test_custom_table(self):
        classifier = SemanticClassifier(ConverterConfig(heading_font_sizes=[40, 30, 25, 20, 18, 16]))
        assert classifier.heading_level_for_size(23) == 4


class TestCodeDetection:
    """Test cases for monospace and code paragraph detection."""

    def test_monospace_families(self, classifier):
        assert classifier.is_monospace("Consolas")
        assert classifier.is_monospace("Courier New, monospace")
        assert not classifier.is_monospace("Segoe UI")
        assert not classifier.is_monospace(None)

    def test_all_runs_monospace(self, classifier):
        assert classifier.is_code_paragraph(
            paragraph(None, {"FontFamily": "Consolas"}, {"FontFamily": "Menlo"})
        )

    def test_mixed_runs_are_not_code(self, classifier):
        assert not classifier.is_code_paragraph(
            paragraph(None, {"FontFamily": "Consolas"}, {"FontFamily": "Arial"})
        )

    def test_runs_inherit_paragraph_family(self, classifier):
        assert classifier.is_code_paragraph(paragraph({"FontFamily": "Monaco"}, {"Text": "x"}))

    def test_paragraph_without_runs(self, classifier):
        assert not classifier.is_code_paragraph(paragraph({"FontFamily": "Consolas"}))


class TestIndentLevel:
    """Test cases for margin-based indentation."""

    @pytest.mark.parametrize("level", range(0, 7))
    def test_round_trip(self, classifier, level):
        assert classifier.indent_level(SemanticClassifier.format_margin(level)) == level

    @pytest.mark.parametrize("margin,level", [
        ("36,0,0,0", 1),
        ("180,0,0,0", 5),
        ("250,0,0,0", 6),
        ("18,0,0,0", 1),
        ("17,0,0,0", 0),
        ("-36,0,0,0", 0),
        ("36,0,0", 0),
        ("abc,0,0,0", 0),
        ("", 0),
        (None, 0),
    ])
    def test_margins(self, classifier, margin, level):
        assert classifier.indent_level(margin) == level

    def test_leading_tab_level(self):
        assert SemanticClassifier.leading_tab_level("\t\tx") == 2
        assert SemanticClassifier.leading_tab_level("\t" * 9) == 6


class TestResolveStyle:
    """Test cases for inline style resolution."""

    def test_boolean_flags(self, classifier):
        style = classifier.resolve_style(Element.create("Run", {
            "FontBold": "True",
            "FontItalic": "true",
            "HasUnderline": "true",
            "HasStrikethrough": "false",
        }))

        assert style.bold and style.italic and style.underline
        assert not style.strikethrough

    def test_weight_and_style_synonyms(self, classifier):
        style = classifier.resolve_style(
            Element.create("Run", {"FontWeight": "SemiBold", "FontStyle": "Oblique"})
        )
        assert style.bold is True
        assert style.italic is True

    def test_family_and_size_inherit(self, classifier):
        style = classifier.resolve_style(
            Element.create("Run", {}),
            Element.create("Paragraph", {"FontFamily": "Consolas", "FontSize": "8"}),
        )
        assert style.monospace is True
        assert style.font_size == 8.0

    def test_variant_inherits_unless_normal(self, classifier):
        run = Element.create("Run", {})
        superscript = classifier.resolve_style(run, Element.create("Paragraph", {"FontVariant": "Superscript"}))
        normal = classifier.resolve_style(run, Element.create("Paragraph", {"FontVariant": "Normal"}))

        assert superscript.superscript is True
        assert normal.superscript is False and normal.subscript is False

    def test_bold_is_not_inherited(self, classifier):
        style = classifier.resolve_style(
            Element.create("Run", {}), Element.create("Paragraph", {"FontBold": "true"})
        )
        assert style.bold is False

    def test_small_caps_and_highlight(self, classifier):
        style = classifier.resolve_style(
            Element.create("Run", {"FontCapitals": "SmallCaps", "BackgroundColor": "#FFFF00"})
        )
        assert style.small_caps is True
        assert style.highlight is True

    def test_border(self, classifier):
        assert classifier.has_border(Element.create("Section", {"BorderThickness": "0,1,0,0"}))
        assert not classifier.has_border(Element.create("Section", {"BorderThickness": "0,0,0,0"}))
        assert not classifier.has_border(Element.create("Section"))
