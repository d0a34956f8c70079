"""Per-note conversion: markup to Markdown with resolved images."""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..config.models import ConverterConfig
from ..error_handling.errors import NotesExportError
from ..images.image_coordinator import ImageResolutionCoordinator
from ..images.models import ImageFailure, ImageStats
from ..markup.converter import RichTextConverter

logger = logging.getLogger(__name__)


@dataclass
class NoteConversionResult:
    """Everything produced for one note.

    Attributes:
        content: Header followed by the converted body, images resolved
        body: Converted body alone, with the same image references as content
        stats: Image counters for this note
        image_failures: Failed images in first-occurrence order
        errors: Recoverable failures raised while converting this note
        used_fallback: True when the body came from plain-text extraction
        unknown_tags: Unrecognized element names met in the markup
    """
    content: str
    body: str
    stats: ImageStats = field(default_factory=ImageStats)
    image_failures: List[ImageFailure] = field(default_factory=list)
    errors: List[NotesExportError] = field(default_factory=list)
    used_fallback: bool = False
    unknown_tags: List[str] = field(default_factory=list)


class NoteConverter:
    """Converts a single note's rich markup into final Markdown.

    Args:
        config: Converter configuration
        converter: Markup converter; built from config when omitted
        coordinator: Image coordinator; built from config when omitted. Share
            one coordinator across notes of a run so image names stay unique.
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        converter: Optional[RichTextConverter] = None,
        coordinator: Optional[ImageResolutionCoordinator] = None,
    ):
        self.config = config or ConverterConfig()
        self.converter = converter or RichTextConverter(self.config)
        self.coordinator = coordinator or ImageResolutionCoordinator(self.config)

    def convert_note(
        self,
        markup: str,
        output_directory: Optional[str] = None,
        note_filename: Optional[str] = None,
        header: str = '',
    ) -> NoteConversionResult:
        """Convert one note.

        Images are resolved once; the resulting placeholder mapping is applied
        to both the full content and the body.

        Args:
            markup: Raw rich-markup string of the note
            output_directory: Export root for images (None skips downloads)
            note_filename: Output file name of the note
            header: Text placed before the body (e.g. frontmatter)

        Returns:
            NoteConversionResult for the note

        Raises:
            MarkupConversionError: If the markup is malformed and plain-text
                fallback is disabled
        """
        document = self.converter.convert(markup)
        body = document.markdown
        content = header + body

        resolution = self.coordinator.resolve_images(
            dataclasses.replace(document, markdown=content),
            output_directory=output_directory,
            note_filename=note_filename,
            secondary=[body],
        )

        errors = list(document.errors)
        errors.extend(failure.error for failure in resolution.failures if failure.error)
        if resolution.failures:
            logger.info(
                f"{note_filename or 'note'}: {len(resolution.failures)} image(s) unavailable"
            )

        return NoteConversionResult(
            content=resolution.content,
            body=resolution.secondary[0],
            stats=resolution.stats,
            image_failures=resolution.failures,
            errors=errors,
            used_fallback=document.used_fallback,
            unknown_tags=list(document.unknown_tags),
        )
