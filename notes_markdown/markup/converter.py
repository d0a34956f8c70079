"""Rich-markup to Markdown conversion facade.

RichTextConverter runs parse -> emit -> normalize and owns the degraded path:
when the strict parser rejects a fragment, the plain-text extractor recovers
whatever text it can and the output is flagged with a warning banner.
"""

import logging
from typing import Optional

from ..config.models import ConverterConfig
from ..error_handling.errors import MarkupConversionError
from .classifier import SemanticClassifier
from .emitter import MarkdownEmitter
from .markup_parser import MarkupParser
from .models import EmittedDocument
from .unicode_cleaner import UnicodeCleaner

logger = logging.getLogger(__name__)

FALLBACK_BANNER = '*[Warning: Some formatting lost due to complex content]*'


class RichTextConverter:
    """Converts one rich-markup fragment to Markdown.

    Stateless between calls; a single instance may convert many notes,
    including from several threads.

    Example:
        >>> converter = RichTextConverter(ConverterConfig())
        >>> converter.convert('<Paragraph FontSize="23"><Run Text="Title"/></Paragraph>').markdown
        '# Title'
    """

    def __init__(self, config: Optional[ConverterConfig] = None):
        self.config = config or ConverterConfig()
        self.cleaner = UnicodeCleaner()
        self.classifier = SemanticClassifier(self.config)
        self.parser = MarkupParser(self.cleaner)
        self.emitter = MarkdownEmitter(self.config, self.classifier, self.cleaner)

    def convert(self, markup: str) -> EmittedDocument:
        """Convert a fragment, degrading to plain text when it cannot be parsed.

        Args:
            markup: Raw rich-markup string

        Returns:
            EmittedDocument; used_fallback and errors describe any degradation

        Raises:
            MarkupConversionError: If the markup is malformed and
                ignore_unknown_elements is disabled
        """
        try:
            tree = self.parser.parse(markup)
        except MarkupConversionError as e:
            if not self.config.ignore_unknown_elements:
                raise
            logger.warning(f"Falling back to plain text extraction: {e.message}")
            return EmittedDocument(
                markdown=self.convert_plain_text(markup),
                used_fallback=True,
                errors=[e],
            )

        document = self.emitter.emit(tree)
        if document.unknown_tags:
            logger.info(
                f"Unrecognized elements kept as containers: {', '.join(document.unknown_tags)}"
            )
        return document

    def convert_plain_text(self, markup: str) -> str:
        """Fallback rendering: extracted text under a warning banner."""
        text = self.emitter.normalize(self.parser.extract_plain_text(markup))
        if not text:
            return FALLBACK_BANNER
        return f'{FALLBACK_BANNER}\n\n{text}'
