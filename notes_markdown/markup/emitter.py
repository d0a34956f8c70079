"""Markdown emission from classified rich-markup trees.

MarkdownEmitter walks an Element tree in document order and renders
paragraphs, headings, code blocks, lists, tables and quoted blocks. Inline
markers are applied in one fixed nesting order, innermost first:

    sub/superscript -> small caps -> strikethrough -> underline -> italic
    -> bold -> highlight

so a bold italic run always renders as ``**_text_**``.

Images are not resolved here. Each media reference becomes a numbered
placeholder token that the image coordinator later replaces positionally.
"""

import logging
import re
import secrets
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from ..config.models import ConverterConfig
from .attributes import attributes_of
from .classifier import SemanticClassifier
from .models import Element, ElementTag, EmittedDocument, ImagePlaceholder, InlineStyle
from .unicode_cleaner import UnicodeCleaner

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = 'IMAGE_PLACEHOLDER'
NBSP_INDENT = '&nbsp;    '
LIST_INDENT = '   '
ORDERED_MARKER_STYLES = frozenset({
    'decimal', 'lowerlatin', 'upperlatin', 'lowerroman', 'upperroman',
})

INLINE_TAGS = frozenset({
    ElementTag.RUN,
    ElementTag.SPAN,
    ElementTag.HYPERLINK,
    ElementTag.MEDIA,
    ElementTag.TEXT,
    ElementTag.LINE_BREAK,
})

# Attributes that belong to the container itself and are never passed down
_NON_INHERITED = frozenset({'Text', 'Uri', 'NavigateUri', 'Margin', 'Tag', 'Width', 'Height'})

_LINK_PATTERNS = (
    re.compile(r'\[([^\]]*)\]\(([^)]+)\)'),
    re.compile(r'\[([^\]]*)\]\[([^\]]*)\]'),
    re.compile(r'!\[([^\]]*)\]\(([^)]+)\)'),
    re.compile(r'!\[([^\]]*)\]\[([^\]]*)\]'),
)
_LINK_CONTEXT_RE = re.compile(r'\]\(\s*$|\]:\s*$')

_QUOTE_BLEED_RE = re.compile(r'(^>+[ \t].*\n)(^(?!>)(?![ \t]*$).*)', re.MULTILINE)
_BLANK_RUN_RE = re.compile(r'\n{3,}')
_LONG_TRAILING_RE = re.compile(r'[ \t]{3,}$', re.MULTILINE)
_TRAILING_RE = re.compile(r'[ \t]+$', re.MULTILINE)
_LEADING_TABS_RE = re.compile(r'^(\t+)', re.MULTILINE)


def has_markdown_link_syntax(text: str) -> bool:
    """True if text already contains a Markdown link or image."""
    return any(pattern.search(text) for pattern in _LINK_PATTERNS)


@dataclass
class _EmitState:
    """Per-call bookkeeping so one emitter can serve concurrent notes."""
    nonce: str
    placeholders: List[ImagePlaceholder] = field(default_factory=list)
    unknown_tags: List[str] = field(default_factory=list)

    def record_unknown(self, name: str) -> None:
        if name not in self.unknown_tags:
            logger.debug(f"Unknown element <{name}> kept as generic container")
            self.unknown_tags.append(name)


class MarkdownEmitter:
    """Renders Element trees as Markdown.

    Args:
        config: Converter configuration (indent style, sub/superscript style)
        classifier: Semantic classifier; built from config when omitted
        cleaner: Unicode cleaner applied to every piece of literal text
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        classifier: Optional[SemanticClassifier] = None,
        cleaner: Optional[UnicodeCleaner] = None,
    ):
        self.config = config or ConverterConfig()
        self.classifier = classifier or SemanticClassifier(self.config)
        self.cleaner = cleaner or UnicodeCleaner()

    def emit(self, tree: Optional[Element]) -> EmittedDocument:
        """Render a parsed tree to normalized Markdown with image placeholders.

        Args:
            tree: Root element from MarkupParser.parse, or None for empty input

        Returns:
            EmittedDocument with the Markdown, the placeholders in sequence
            order and the names of unknown elements encountered
        """
        if tree is None:
            return EmittedDocument(markdown='')

        state = _EmitState(nonce=secrets.token_hex(4))
        raw = self._render_blocks(_content_nodes(tree), state)
        markdown = self.normalize(raw)
        logger.debug(
            f"Emitted {len(markdown)} chars, {len(state.placeholders)} image placeholder(s)"
        )
        return EmittedDocument(
            markdown=markdown,
            placeholders=list(state.placeholders),
            unknown_tags=list(state.unknown_tags),
        )

    # Block level

    def _render_blocks(self, nodes: List[Element], state: _EmitState) -> str:
        out: List[str] = []
        i = 0
        while i < len(nodes):
            node = nodes[i]
            if self._is_code_paragraph(node):
                lines = []
                while i < len(nodes) and self._is_code_paragraph(nodes[i]):
                    text = self._code_text(nodes[i])
                    if text.strip():
                        lines.append(text.rstrip())
                    i += 1
                if lines:
                    out.append('```\n' + '\n'.join(lines) + '\n```\n\n')
                continue

            if node.tag in INLINE_TAGS:
                # Stray inline content outside a paragraph forms an implicit one
                group = []
                while i < len(nodes) and nodes[i].tag in INLINE_TAGS:
                    group.append(nodes[i])
                    i += 1
                out.append(self._render_paragraph_content(group, None, state))
                continue

            out.append(self._render_block(node, state))
            i += 1
        return ''.join(out)

    def _render_block(self, node: Element, state: _EmitState) -> str:
        tag = node.tag
        if tag is ElementTag.PARAGRAPH:
            rendered = self._render_paragraph(node, state)
        elif tag is ElementTag.SECTION:
            rendered = self._render_section(node, state)
        elif tag is ElementTag.LIST:
            rendered = self._render_list(node, 0, state) + '\n'
        elif tag is ElementTag.TABLE:
            rendered = self._render_table(node, state)
        elif tag in INLINE_TAGS:
            rendered = self._render_paragraph_content([node], None, state)
        else:
            if tag is ElementTag.UNKNOWN:
                state.record_unknown(node.name)
            rendered = self._render_blocks(_content_nodes(node), state)

        if tag is ElementTag.BORDER or self.classifier.has_border(node):
            return self._quote(rendered)
        return rendered

    def _is_code_paragraph(self, node: Element) -> bool:
        return node.tag is ElementTag.PARAGRAPH and self.classifier.is_code_paragraph(node)

    def _code_text(self, paragraph: Element) -> str:
        # Literal text only: code never receives heading, indent or inline markers
        return self.cleaner.clean_text(paragraph.plain_text())

    def _render_paragraph(self, paragraph: Element, state: _EmitState) -> str:
        return self._render_paragraph_content(_content_nodes(paragraph), paragraph, state)

    def _render_paragraph_content(
        self, nodes: List[Element], paragraph: Optional[Element], state: _EmitState
    ) -> str:
        content = ''.join(self._render_inline(node, state, paragraph, {}) for node in nodes)
        if not content.strip():
            return '\n\n'

        level = 0
        prefix = ''
        if paragraph is not None:
            prefix = self.format_indent(
                self.classifier.indent_level(attributes_of(paragraph).get('Margin'))
            )
            level = self.classifier.heading_level(paragraph)

        if level:
            return prefix + '#' * level + ' ' + content.strip() + '\n'
        return _prefix_lines(content.rstrip(), prefix) + '  \n'

    def _render_section(self, section: Element, state: _EmitState) -> str:
        family = attributes_of(section).get('FontFamily')
        if self.classifier.is_monospace(family):
            language = attributes_of(section).get('Tag') or ''
            content = self.cleaner.clean_text(section.plain_text()).strip('\n')
            return '```' + language + '\n' + content + '\n```\n\n'
        return self._render_blocks(_content_nodes(section), state) + '\n'

    def _quote(self, rendered: str) -> str:
        body = rendered.strip('\n')
        if not body.strip():
            return ''
        lines = [f'> {line}' if line.strip() else '>' for line in body.split('\n')]
        return '\n'.join(lines) + '\n\n'

    # Lists

    def _render_list(self, node: Element, depth: int, state: _EmitState) -> str:
        markers = attributes_of(node)
        style = (markers.get('Kind') or markers.get('MarkerStyle') or 'Disc').lower()
        ordered = style in ORDERED_MARKER_STYLES

        result = []
        for counter, item in enumerate(node.children_with(ElementTag.LIST_ITEM), start=1):
            result.append(self._render_list_item(item, depth, ordered, counter, state))
        return ''.join(result)

    def _render_list_item(
        self, item: Element, depth: int, ordered: bool, counter: int, state: _EmitState
    ) -> str:
        nodes = _content_nodes(item)
        direct = [child for child in nodes if child.tag is not ElementTag.LIST]
        nested = [child for child in nodes if child.tag is ElementTag.LIST]

        indentation = LIST_INDENT * depth
        marker = f'{counter}. ' if ordered else '* '
        content = self._render_blocks(direct, state).strip()

        result = ''
        if content:
            continuation = ' ' * (len(indentation) + len(marker))
            lines = content.split('\n')
            body = lines[0] + ''.join(
                '\n' + (continuation + line if line.strip() else '') for line in lines[1:]
            )
            result = f'{indentation}{marker}{body}\n'
        for nested_list in nested:
            result += self._render_list(nested_list, depth + 1, state)
        return result

    # Tables

    def _render_table(self, table: Element, state: _EmitState) -> str:
        rows: List[Element] = []
        for child in table.children:
            if child.tag is ElementTag.TABLE_ROW_GROUP:
                rows.extend(child.children_with(ElementTag.TABLE_ROW))
            elif child.tag is ElementTag.TABLE_ROW:
                rows.append(child)
        if not rows:
            return ''

        grid = [
            [self._render_cell(cell, state) for cell in row.children_with(ElementTag.TABLE_CELL)]
            for row in rows
        ]
        width = max(len(cells) for cells in grid)
        if width == 0:
            return ''
        for cells in grid:
            cells.extend([''] * (width - len(cells)))

        lines = ['| ' + ' | '.join(grid[0]) + ' |']
        lines.append('| ' + ' | '.join(['---'] * width) + ' |')
        for cells in grid[1:]:
            lines.append('| ' + ' | '.join(cells) + ' |')
        return '\n'.join(lines) + '\n\n'

    def _render_cell(self, cell: Element, state: _EmitState) -> str:
        content = self._render_blocks(_content_nodes(cell), state)
        lines = [line.strip() for line in content.split('\n') if line.strip()]
        return '<br>'.join(lines).replace('|', '\\|')

    # Inline level

    def _render_inline(
        self,
        node: Element,
        state: _EmitState,
        paragraph: Optional[Element],
        inherited: Mapping[str, str],
    ) -> str:
        tag = node.tag
        if tag is ElementTag.TEXT:
            return self.convert_leading_tabs(self.cleaner.clean_text(node.text or ''))
        if tag is ElementTag.RUN:
            text = node.get('Text') or node.text or ''
            return self._render_text(text, node, paragraph, inherited)
        if tag is ElementTag.SPAN:
            return self._render_span(node, state, paragraph, inherited)
        if tag is ElementTag.HYPERLINK:
            return self._render_hyperlink(node, state, paragraph, inherited)
        if tag is ElementTag.MEDIA:
            return self._render_media(node, state)
        if tag is ElementTag.LINE_BREAK:
            return '  \n'
        if tag is ElementTag.UNKNOWN:
            state.record_unknown(node.name)
            parts = [self._render_text(node.text, node, paragraph, inherited)] if node.text else []
            parts.extend(
                self._render_inline(child, state, paragraph, inherited)
                for child in node.children
            )
            return ''.join(parts)
        # Block element nested in inline content
        return self._render_block(node, state)

    def _render_text(
        self,
        text: str,
        node: Element,
        paragraph: Optional[Element],
        inherited: Mapping[str, str],
    ) -> str:
        if not text:
            return ''
        text = self.cleaner.clean_text(text)
        style = self._style_for(node, paragraph, inherited)
        if not style.monospace and has_markdown_link_syntax(text):
            return self.convert_leading_tabs(text)
        return self.convert_leading_tabs(self.apply_inline_formatting(text, style))

    def _style_for(
        self, node: Element, paragraph: Optional[Element], inherited: Mapping[str, str]
    ) -> InlineStyle:
        run_attrs: Dict[str, str] = dict(inherited)
        run_attrs.update(attributes_of(node))
        return self.classifier.resolve_style_from(run_attrs, attributes_of(paragraph))

    def _render_span(
        self,
        span: Element,
        state: _EmitState,
        paragraph: Optional[Element],
        inherited: Mapping[str, str],
    ) -> str:
        passed_down = dict(inherited)
        passed_down.update(
            (key, value) for key, value in attributes_of(span).items()
            if key not in _NON_INHERITED
        )
        parts = []
        if span.get('Text'):
            parts.append(self._render_text(span.get('Text'), span, paragraph, inherited))
        if span.text:
            parts.append(self._render_text(span.text, span, paragraph, inherited))
        parts.extend(
            self._render_inline(child, state, paragraph, passed_down)
            for child in span.children
        )
        return ''.join(parts)

    def _render_hyperlink(
        self,
        link: Element,
        state: _EmitState,
        paragraph: Optional[Element],
        inherited: Mapping[str, str],
    ) -> str:
        attrs = attributes_of(link)
        url = attrs.get('Uri') or attrs.get('NavigateUri') or ''

        parts = []
        own_text = attrs.get('Text') or link.text
        if own_text:
            parts.append(self._render_text(own_text, link, paragraph, inherited))
        parts.extend(
            self._render_inline(child, state, paragraph, inherited) for child in link.children
        )
        text = ''.join(parts).strip()

        if not text:
            return url
        family = attrs.get('FontFamily') or inherited.get('FontFamily')
        if self.classifier.is_monospace(family) or not url:
            return text
        if paragraph is not None and self.is_part_of_existing_markdown(url, paragraph):
            return url
        if has_markdown_link_syntax(text):
            return text
        return f'[{text}]({url})'

    def _render_media(self, media: Element, state: _EmitState) -> str:
        attrs = attributes_of(media)
        uri = (attrs.get('Uri') or '').strip()
        if not uri:
            return ''
        index = len(state.placeholders) + 1
        token = f'![{PLACEHOLDER_PREFIX}_{state.nonce}_{index}]()'
        state.placeholders.append(ImagePlaceholder(
            index=index,
            uri=uri,
            token=token,
            width=attrs.get('Width'),
            height=attrs.get('Height'),
        ))
        return token + '\n\n'

    # Formatting helpers

    def apply_inline_formatting(self, text: str, style: InlineStyle) -> str:
        """Wrap text in Markdown markers for the given style.

        Leading and trailing whitespace stays outside the markers. Monospace
        wins outright, then small text, then the regular marker chain.
        """
        core = text.strip()
        if not core:
            return text
        leading = text[:len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()):]

        if style.monospace:
            return f'{leading}`{core}`{trailing}'
        if self.classifier.is_small_text(style.font_size):
            return f'{leading}<small>{core}</small>{trailing}'

        formatted = core
        if style.subscript:
            formatted = (
                f'<sub>{formatted}</sub>' if self.config.html_sub_superscript
                else f'~{formatted}~'
            )
        elif style.superscript:
            formatted = (
                f'<sup>{formatted}</sup>' if self.config.html_sub_superscript
                else f'^{formatted}^'
            )
        if style.small_caps:
            formatted = formatted.upper()
        if style.strikethrough:
            formatted = f'~~{formatted}~~'
        if style.underline:
            formatted = f'<u>{formatted}</u>'
        if style.italic:
            formatted = f'_{formatted}_'
        if style.bold:
            formatted = f'**{formatted}**'
        if style.highlight:
            formatted = f'=={formatted}=='
        return leading + formatted + trailing

    def format_indent(self, level: int) -> str:
        if level <= 0:
            return ''
        if self.config.convert_indents_to_quotes:
            return '>' * level + ' '
        return NBSP_INDENT * level

    def convert_leading_tabs(self, text: str) -> str:
        """Replace leading tabs on each line with one indent level per tab."""
        if not text or '\t' not in text:
            return text

        def replace(match):
            return self.format_indent(self.classifier.leading_tab_level(match.group(1)))

        return _LEADING_TABS_RE.sub(replace, text)

    def is_part_of_existing_markdown(self, url: str, paragraph: Element) -> bool:
        """True when the URL already sits inside a typed ``](`` or ``]:`` construct."""
        paragraph_text = paragraph.plain_text()
        position = paragraph_text.find(url)
        if position == -1:
            return False
        return bool(_LINK_CONTEXT_RE.search(paragraph_text[:position]))

    def normalize(self, markdown: str) -> str:
        """Tidy raw emission into its final layout.

        Separates a quote line from a directly following plain line (when quote
        indentation is active), collapses blank-line runs, trims the document,
        and keeps trailing whitespace only as a two-space hard break.
        """
        result = markdown
        if self.config.convert_indents_to_quotes:
            result = _QUOTE_BLEED_RE.sub(r'\1\n\2', result)
        result = _BLANK_RUN_RE.sub('\n\n', result)
        result = result.strip()
        result = _LONG_TRAILING_RE.sub('  ', result)
        return _TRAILING_RE.sub(lambda m: m.group(0) if m.group(0) == '  ' else '', result)


def _content_nodes(node: Element) -> List[Element]:
    if node.children:
        return node.children
    if node.text and node.tag is not ElementTag.RUN:
        return [Element.text_node(node.text)]
    return []


def _prefix_lines(content: str, prefix: str) -> str:
    if not prefix:
        return content
    return '\n'.join(prefix + line if line.strip() else line for line in content.split('\n'))
