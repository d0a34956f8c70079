"""Parsing of rich-markup fragments into Element trees.

Note content is stored as a fragment of flow-document XML: usually several
sibling <Paragraph>/<List>/<Table> roots, sometimes with a prolog, namespace
declarations, prefixed names and HTML entities that XML does not define. The
fragment is normalized into well-formed XML, wrapped in a synthetic <Root> and
handed to lxml's strict parser.
"""

import html.entities
import logging
import re
from typing import List, Optional

from lxml import etree

from ..error_handling.errors import MarkupConversionError
from .models import Element
from .unicode_cleaner import UnicodeCleaner

logger = logging.getLogger(__name__)

ROOT_NAME = 'Root'

_PROLOG_RE = re.compile(r'<\?xml[^>]*\?>', re.IGNORECASE)
_XMLNS_RE = re.compile(r'\s*xmlns[^=\s]*\s*=\s*"[^"]*"', re.IGNORECASE)
_TAG_RE = re.compile(
    r'<(/?)([A-Za-z_][\w.-]*:)?([A-Za-z_][\w.-]*)((?:[^<>"\']|"[^"]*"|\'[^\']*\')*)>'
)
_QUOTED_RE = re.compile(r'("[^"]*"|\'[^\']*\')')
_PREFIXED_ATTR_RE = re.compile(r'(\s)[A-Za-z_][\w.-]*:([A-Za-z_][\w.-]*\s*=)')
_ENTITY_RE = re.compile(r'&(#\d+|#x[0-9A-Fa-f]+|[A-Za-z][A-Za-z0-9]*);|&')
_XML_ENTITIES = frozenset({'lt', 'gt', 'amp', 'quot', 'apos'})

_TEXT_ATTR_RE = re.compile(r'Text="([^"]*?)"')
_HEADING_LINE_RE = re.compile(r'### (.+)')
_LIST_MARKER_RES = (
    re.compile(r'\b\d+\. '),
    re.compile(r'\b\* '),
    re.compile(r'\b- '),
)


class MarkupParser:
    """Turns rich-markup fragments into ordered, attributed Element trees."""

    def __init__(self, cleaner: Optional[UnicodeCleaner] = None):
        self.cleaner = cleaner or UnicodeCleaner()
        self._parser = etree.XMLParser(
            recover=False,
            resolve_entities=False,
            remove_comments=True,
            remove_pis=True,
            no_network=True,
        )

    def parse(self, markup: str) -> Optional[Element]:
        """Parse a markup fragment.

        Args:
            markup: Raw rich-markup string, possibly with several root elements

        Returns:
            Element tree under a synthetic ROOT element, or None when the
            fragment is empty or whitespace only

        Raises:
            MarkupConversionError: If the fragment is not tokenizable XML
        """
        if not markup or not markup.strip():
            return None

        cleaned = self.clean_markup(markup)
        if not cleaned:
            return None

        wrapped = f'<{ROOT_NAME}>{cleaned}</{ROOT_NAME}>'
        try:
            root = etree.fromstring(wrapped.encode('utf-8'), self._parser)
        except etree.XMLSyntaxError as e:
            logger.debug(f"Strict parse failed: {e}")
            raise MarkupConversionError(
                f"Malformed rich markup: {e}",
                snippet=markup,
                cause=e,
                component='MarkupParser',
                operation='parse',
            )

        return _convert(root)

    def clean_markup(self, markup: str) -> str:
        """Normalize a fragment into something a strict XML parser accepts."""
        cleaned = self.cleaner.strip_control_chars(markup)
        cleaned = _PROLOG_RE.sub('', cleaned)
        cleaned = _XMLNS_RE.sub('', cleaned)
        cleaned = _TAG_RE.sub(_strip_prefixes, cleaned)
        cleaned = _ENTITY_RE.sub(_normalize_entity, cleaned)
        return cleaned.strip()

    def extract_plain_text(self, markup: str) -> str:
        """Best-effort text recovery for markup that failed to parse.

        Collects every Text="..." attribute value, decodes and cleans it, and
        re-flows the result so heading-like lines and list markers start on
        their own lines. Formatting is lost by construction.
        """
        if not markup:
            return ''
        texts = self.cleaner.clean_extracted_text(_TEXT_ATTR_RE.findall(markup))
        result = '\n'.join(texts).strip()

        result = _HEADING_LINE_RE.sub(r'\n\n### \1\n\n', result)
        for pattern in _LIST_MARKER_RES:
            result = _break_before(pattern, result)
        return result


def _strip_prefixes(match: re.Match) -> str:
    closing, _prefix, local_name, rest = match.groups()
    parts = _QUOTED_RE.split(rest)
    # Even positions are outside quotes
    for i in range(0, len(parts), 2):
        parts[i] = _PREFIXED_ATTR_RE.sub(r'\1\2', parts[i])
    return f"<{closing}{local_name}{''.join(parts)}>"


def _normalize_entity(match: re.Match) -> str:
    name = match.group(1)
    if name is None:
        return '&amp;'
    if name.startswith('#'):
        return match.group(0) if _is_xml_char(_char_ref_codepoint(name)) else ''
    if name in _XML_ENTITIES:
        return match.group(0)
    codepoint = html.entities.name2codepoint.get(name)
    if codepoint is None:
        return f'&amp;{name};'
    return f'&#{codepoint};'


def _char_ref_codepoint(name: str) -> int:
    if name.startswith('#x'):
        return int(name[2:], 16)
    return int(name[1:])


def _is_xml_char(codepoint: int) -> bool:
    # Char production of XML 1.0; C1 controls are legal there but stripped
    # from literal text, so references to them are dropped too
    if codepoint in (0x9, 0xA, 0xD):
        return True
    if codepoint < 0x20 or 0x7F <= codepoint <= 0x9F:
        return False
    if 0xD800 <= codepoint <= 0xDFFF or codepoint in (0xFFFE, 0xFFFF):
        return False
    return codepoint <= 0x10FFFF


def _keep_text(text: Optional[str]) -> bool:
    # Whitespace with a line break is layout between elements, not content
    if not text:
        return False
    return not (text.isspace() and '\n' in text)


def _local_name(name: str) -> str:
    return etree.QName(name).localname


def _convert(node: etree._Element) -> Element:
    name = _local_name(node.tag)
    attributes = {_local_name(key): value for key, value in node.attrib.items()}
    element_children = [child for child in node if isinstance(child.tag, str)]

    if not element_children:
        text = node.text if _keep_text(node.text) else None
        return Element.create(name, attributes, text=text)

    children: List[Element] = []
    if _keep_text(node.text):
        children.append(Element.text_node(node.text))
    for child in element_children:
        children.append(_convert(child))
        if _keep_text(child.tail):
            children.append(Element.text_node(child.tail))
    return Element.create(name, attributes, children)


def _break_before(pattern: re.Pattern, text: str) -> str:
    def replace(match):
        start = match.start()
        if start == 0 or text[start - 1] == '\n':
            return match.group(0)
        return '\n' + match.group(0)
    return pattern.sub(replace, text)
