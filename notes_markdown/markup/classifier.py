"""Inference of semantic roles from presentational attributes.

The rich markup never says "heading" or "code"; it says FontSize="23" or
FontFamily="Consolas". SemanticClassifier turns those attributes into heading
levels, code detection, indent levels and resolved inline styles, using the
tables carried by ConverterConfig.
"""

import math
import re
from typing import Mapping, Optional

from ..config.models import ConverterConfig
from .attributes import Node, attributes_of, resolve
from .models import Element, ElementTag, InlineStyle

INDENT_UNIT = 36
MAX_INDENT_LEVEL = 6

BOLD_WEIGHTS = frozenset({'bold', 'semibold', 'demibold', 'extrabold', 'ultrabold', 'black', 'heavy'})
ITALIC_STYLES = frozenset({'italic', 'oblique'})
SMALL_CAPS_VALUES = frozenset({'smallcaps', 'true'})

_LEADING_NUMBER_RE = re.compile(r'^\s*[-+]?(\d+\.?\d*|\.\d+)')


def parse_font_size(value: Optional[str]) -> Optional[float]:
    """Read a font size the way the markup writes it ("23", "10.5", "12pt")."""
    if not value:
        return None
    match = _LEADING_NUMBER_RE.match(value)
    if not match:
        return None
    return float(match.group(0))


def _is_true(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() == 'true'


class SemanticClassifier:
    """Maps presentational attributes to semantic roles.

    Args:
        config: Converter configuration supplying the heading size table and the
            monospace font list
    """

    def __init__(self, config: Optional[ConverterConfig] = None):
        self.config = config or ConverterConfig()
        self.heading_sizes = list(self.config.heading_font_sizes)
        self.monospace_fonts = [font.lower() for font in self.config.monospace_fonts]

    def heading_level_for_size(self, font_size: Optional[float]) -> int:
        """Return 1-6 for heading sizes, 0 for body text."""
        if font_size is None:
            return 0
        for level, minimum in enumerate(self.heading_sizes, start=1):
            if font_size >= minimum:
                return level
        return 0

    def heading_level(self, paragraph: Element) -> int:
        """Heading level of a paragraph using first-run dominance.

        The paragraph's own font size wins when it is a heading size. Otherwise
        only the first run is consulted; later runs never change the outcome.
        """
        level = self.heading_level_for_size(
            parse_font_size(attributes_of(paragraph).get('FontSize'))
        )
        if level:
            return level

        runs = paragraph.children_with(ElementTag.RUN)
        if not runs:
            return 0
        return self.heading_level_for_size(
            parse_font_size(attributes_of(runs[0]).get('FontSize'))
        )

    def is_monospace(self, font_family: Optional[str]) -> bool:
        if not font_family:
            return False
        family = font_family.lower()
        return any(font in family for font in self.monospace_fonts)

    def is_code_paragraph(self, paragraph: Element) -> bool:
        """True iff the paragraph has at least one run and every run is monospace."""
        runs = paragraph.children_with(ElementTag.RUN)
        if not runs:
            return False
        paragraph_family = attributes_of(paragraph).get('FontFamily')
        return all(
            self.is_monospace(resolve(attributes_of(run).get('FontFamily'), paragraph_family))
            for run in runs
        )

    def indent_level(self, margin: Optional[str]) -> int:
        """Indent level 0-6 from a "left,top,right,bottom" margin string."""
        if not margin:
            return 0
        parts = margin.split(',')
        if len(parts) != 4:
            return 0
        try:
            left = float(parts[0].strip())
        except ValueError:
            return 0
        if math.isnan(left) or left <= 0:
            return 0
        # Half-way values round up
        level = int(math.floor(left / INDENT_UNIT + 0.5))
        return min(level, MAX_INDENT_LEVEL)

    @staticmethod
    def format_margin(level: int) -> str:
        return f"{level * INDENT_UNIT},0,0,0"

    @staticmethod
    def leading_tab_level(line: str) -> int:
        tabs = len(line) - len(line.lstrip('\t'))
        return min(tabs, MAX_INDENT_LEVEL)

    def has_border(self, element: Element) -> bool:
        """True when BorderThickness declares any non-zero side."""
        thickness = attributes_of(element).get('BorderThickness')
        if not thickness:
            return False
        for part in re.split(r'[,\s]+', thickness.strip()):
            size = parse_font_size(part)
            if size:
                return True
        return False

    def is_small_text(self, font_size: Optional[float]) -> bool:
        return font_size is not None and font_size <= self.config.small_text_max_size

    def resolve_style(self, run: Node, paragraph: Optional[Node] = None) -> InlineStyle:
        """Resolve the inline style of a run within its enclosing paragraph."""
        return self.resolve_style_from(attributes_of(run), attributes_of(paragraph))

    def resolve_style_from(
        self, run_attrs: Mapping[str, str], paragraph_attrs: Mapping[str, str]
    ) -> InlineStyle:
        """Resolve an inline style from already-extracted attribute mappings.

        Font family and size fall back to the paragraph when the run has no
        value. FontVariant falls back only when the run has none and the
        paragraph's is not "normal". Every other flag is read from the run alone.
        """
        family = resolve(run_attrs.get('FontFamily'), paragraph_attrs.get('FontFamily')) or ''
        size = parse_font_size(resolve(run_attrs.get('FontSize'), paragraph_attrs.get('FontSize')))

        paragraph_variant = paragraph_attrs.get('FontVariant') or ''
        if paragraph_variant.lower() == 'normal':
            paragraph_variant = ''
        variant = (resolve(run_attrs.get('FontVariant'), paragraph_variant) or '').lower()

        weight = (run_attrs.get('FontWeight') or '').strip().lower()
        font_style = (run_attrs.get('FontStyle') or '').strip().lower()
        capitals = (run_attrs.get('FontCapitals') or '').strip().lower()

        return InlineStyle(
            bold=_is_true(run_attrs.get('FontBold')) or weight in BOLD_WEIGHTS,
            italic=_is_true(run_attrs.get('FontItalic')) or font_style in ITALIC_STYLES,
            underline=_is_true(run_attrs.get('HasUnderline')),
            strikethrough=_is_true(run_attrs.get('HasStrikethrough')),
            small_caps=capitals in SMALL_CAPS_VALUES,
            subscript=variant == 'subscript',
            superscript=variant == 'superscript',
            highlight=bool((run_attrs.get('BackgroundColor') or '').strip()),
            monospace=self.is_monospace(family),
            font_family=family,
            font_size=size,
        )
