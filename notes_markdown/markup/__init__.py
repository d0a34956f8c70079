"""Rich-markup to Markdown conversion engine.

This package parses the notes database's flow-document markup into an
attributed element tree, infers headings, code, indentation and inline styles
from presentational attributes, and emits Markdown with positional image
placeholders for the image coordinator to resolve.
"""

from .models import (
    Element,
    ElementTag,
    EmittedDocument,
    ImagePlaceholder,
    InlineStyle,
)
from .unicode_cleaner import UnicodeCleaner, clean_text
from .attributes import attributes_of, element_from_dict, resolve
from .markup_parser import MarkupParser
from .classifier import SemanticClassifier, parse_font_size
from .emitter import MarkdownEmitter, has_markdown_link_syntax
from .converter import RichTextConverter, FALLBACK_BANNER

__all__ = [
    'Element',
    'ElementTag',
    'EmittedDocument',
    'ImagePlaceholder',
    'InlineStyle',
    'UnicodeCleaner',
    'clean_text',
    'attributes_of',
    'element_from_dict',
    'resolve',
    'MarkupParser',
    'SemanticClassifier',
    'parse_font_size',
    'MarkdownEmitter',
    'has_markdown_link_syntax',
    'RichTextConverter',
    'FALLBACK_BANNER',
]
