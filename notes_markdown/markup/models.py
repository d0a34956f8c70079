"""Data models for the rich-markup element tree and emitted documents.

The parser, the attribute resolver and the dictionary adapters all build trees
through Element.create, so consumers never branch on where a node came from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional

from ..error_handling.errors import NotesExportError


class ElementTag(Enum):
    """Closed vocabulary of element kinds the converter understands."""

    ROOT = 'root'
    PARAGRAPH = 'paragraph'
    RUN = 'run'
    SPAN = 'span'
    HYPERLINK = 'hyperlink'
    MEDIA = 'media'
    LIST = 'list'
    LIST_ITEM = 'list_item'
    BORDER = 'border'
    SECTION = 'section'
    TABLE = 'table'
    TABLE_ROW_GROUP = 'table_row_group'
    TABLE_ROW = 'table_row'
    TABLE_CELL = 'table_cell'
    LINE_BREAK = 'line_break'
    TEXT = 'text'
    UNKNOWN = 'unknown'


# Lower-cased markup element name -> tag
TAG_NAMES: Dict[str, ElementTag] = {
    'root': ElementTag.ROOT,
    'paragraph': ElementTag.PARAGRAPH,
    'run': ElementTag.RUN,
    'span': ElementTag.SPAN,
    'hyperlink': ElementTag.HYPERLINK,
    'urilink': ElementTag.HYPERLINK,
    'urimedia': ElementTag.MEDIA,
    'list': ElementTag.LIST,
    'listitem': ElementTag.LIST_ITEM,
    'border': ElementTag.BORDER,
    'blockuicontainer': ElementTag.BORDER,
    'section': ElementTag.SECTION,
    'table': ElementTag.TABLE,
    'tablerowgroup': ElementTag.TABLE_ROW_GROUP,
    'tablerow': ElementTag.TABLE_ROW,
    'tablecell': ElementTag.TABLE_CELL,
    'linebreak': ElementTag.LINE_BREAK,
    '#text': ElementTag.TEXT,
}

RECOGNIZED_ATTRIBUTES = frozenset({
    'Text',
    'FontSize',
    'FontFamily',
    'FontWeight',
    'FontStyle',
    'FontBold',
    'FontItalic',
    'HasUnderline',
    'HasStrikethrough',
    'FontCapitals',
    'FontVariant',
    'BackgroundColor',
    'Margin',
    'Uri',
    'NavigateUri',
    'Kind',
    'MarkerStyle',
    'Tag',
    'BorderThickness',
    'BorderBrush',
    'Width',
    'Height',
})


@dataclass
class Element:
    """A node of the parsed rich-markup tree.

    Attributes:
        tag: Element kind from the closed vocabulary
        name: Element name as written in the markup (e.g. "UriLink")
        attributes: Recognized attributes, keyed by their markup name
        extra_attributes: Every other attribute, kept for diagnostics
        children: Child elements in document order
        text: Direct text payload (text nodes and text-only elements)
    """
    tag: ElementTag
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    extra_attributes: Dict[str, str] = field(default_factory=dict)
    children: List['Element'] = field(default_factory=list)
    text: Optional[str] = None

    @classmethod
    def create(
        cls,
        name: str,
        attributes: Optional[Mapping[str, str]] = None,
        children: Optional[List['Element']] = None,
        text: Optional[str] = None,
    ) -> 'Element':
        """Build an element, classifying its name and splitting its attributes."""
        recognized: Dict[str, str] = {}
        extra: Dict[str, str] = {}
        for key, value in (attributes or {}).items():
            bucket = recognized if key in RECOGNIZED_ATTRIBUTES else extra
            bucket[key] = '' if value is None else str(value)
        return cls(
            tag=TAG_NAMES.get(name.lower(), ElementTag.UNKNOWN),
            name=name,
            attributes=recognized,
            extra_attributes=extra,
            children=list(children or []),
            text=text,
        )

    @classmethod
    def text_node(cls, text: str) -> 'Element':
        return cls(tag=ElementTag.TEXT, name='#text', text=text)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Look up an attribute in either bucket."""
        if name in self.attributes:
            return self.attributes[name]
        return self.extra_attributes.get(name, default)

    def children_with(self, tag: ElementTag) -> List['Element']:
        return [child for child in self.children if child.tag is tag]

    def plain_text(self) -> str:
        """Concatenate literal text of this subtree without any formatting."""
        parts = []
        if self.tag is ElementTag.LINE_BREAK:
            return '\n'
        if self.get('Text'):
            parts.append(self.get('Text'))
        if self.text:
            parts.append(self.text)
        for child in self.children:
            parts.append(child.plain_text())
        return ''.join(parts)


@dataclass
class InlineStyle:
    """Resolved presentational flags for one run of text."""
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    small_caps: bool = False
    subscript: bool = False
    superscript: bool = False
    highlight: bool = False
    monospace: bool = False
    font_family: str = ''
    font_size: Optional[float] = None


@dataclass(frozen=True)
class ImagePlaceholder:
    """A numbered stand-in for an image awaiting resolution.

    Attributes:
        index: Sequence number, 1-based, monotonic within one document
        uri: Source URI of the media reference
        token: Exact text inserted into the emitted Markdown
        width: Declared width, advisory only
        height: Declared height, advisory only
    """
    index: int
    uri: str
    token: str
    width: Optional[str] = None
    height: Optional[str] = None


@dataclass
class EmittedDocument:
    """Markdown produced from one rich-markup fragment.

    Attributes:
        markdown: Normalized Markdown, possibly containing placeholder tokens
        placeholders: Image placeholders in sequence order
        unknown_tags: Names of unrecognized elements, first-seen order
        used_fallback: True when the plain-text extractor produced the output
        errors: Recoverable failures raised while converting
    """
    markdown: str
    placeholders: List[ImagePlaceholder] = field(default_factory=list)
    unknown_tags: List[str] = field(default_factory=list)
    used_fallback: bool = False
    errors: List[NotesExportError] = field(default_factory=list)
